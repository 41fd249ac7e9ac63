"""Test module for configuration validation."""

import os
import sys
from typing import Generator

import pytest


@pytest.fixture
def cleanup_imports() -> Generator[None, None, None]:
    """Clean up app.config imports after each test."""
    yield
    # Remove app.config modules from sys.modules to allow fresh imports
    modules_to_remove = [key for key in sys.modules.keys() if key.startswith("app.config")]
    for module in modules_to_remove:
        del sys.modules[module]


def test_defaults(cleanup_imports: None) -> None:
    """Test that defaults match the board's own constants."""
    from app.config import Settings

    settings = Settings()
    assert settings.SNAP_FRACTION == 0.22
    assert settings.KNOB_SCALE == 0.25
    assert settings.DEFAULT_SEED == 42
    assert settings.LOG_LEVEL == "INFO"


def test_snap_fraction_from_environment(cleanup_imports: None) -> None:
    """Test that SNAP_FRACTION can be overridden from the environment."""
    os.environ["SNAP_FRACTION"] = "0.3"

    try:
        from app.config import Settings

        settings = Settings()
        assert settings.SNAP_FRACTION == pytest.approx(0.3)
    finally:
        os.environ.pop("SNAP_FRACTION", None)


def test_snap_fraction_out_of_range(cleanup_imports: None) -> None:
    """Test that a snap fraction reaching into the next cell is rejected."""
    os.environ["SNAP_FRACTION"] = "0.6"

    try:
        from pydantic import ValidationError

        with pytest.raises(ValidationError, match="SNAP_FRACTION must be in"):
            from app.config import Settings

            Settings()
    finally:
        os.environ.pop("SNAP_FRACTION", None)


def test_knob_scale_must_be_positive(cleanup_imports: None) -> None:
    """Test that a zero knob scale is rejected."""
    os.environ["KNOB_SCALE"] = "0"

    try:
        from pydantic import ValidationError

        with pytest.raises(ValidationError, match="KNOB_SCALE must be in"):
            from app.config import Settings

            Settings()
    finally:
        os.environ.pop("KNOB_SCALE", None)


def test_log_level_is_normalized(cleanup_imports: None) -> None:
    """Test that LOG_LEVEL is accepted in any case."""
    os.environ["LOG_LEVEL"] = "debug"

    try:
        from app.config import Settings

        settings = Settings()
        assert settings.LOG_LEVEL == "DEBUG"
    finally:
        os.environ.pop("LOG_LEVEL", None)


def test_unknown_log_level(cleanup_imports: None) -> None:
    """Test that an unknown LOG_LEVEL is rejected."""
    os.environ["LOG_LEVEL"] = "chatty"

    try:
        from pydantic import ValidationError

        with pytest.raises(ValidationError, match="Unknown LOG_LEVEL"):
            from app.config import Settings

            Settings()
    finally:
        os.environ.pop("LOG_LEVEL", None)
