"""Jigsaw board HTTP API."""
