"""Setup configuration for the jigsaw-board package."""

from setuptools import find_packages, setup

setup(
    name="jigsaw-board",
    version="0.1.0",
    packages=find_packages(include=["puzzle_shapes", "puzzle_shapes.*", "puzzle_board", "puzzle_board.*", "app", "app.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "numpy",
        "pillow",
        "pydantic",
        "pydantic-settings",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-cov",
            "httpx",
            "black",
            "flake8",
            "mypy",
            "isort",
        ],
    },
)
