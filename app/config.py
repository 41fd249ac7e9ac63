from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings

from puzzle_board import SNAP_FRACTION
from puzzle_shapes import DEFAULT_SEED, KNOB_SCALE, MAX_GRID_DIMENSION


class Settings(BaseSettings):
    """Application settings configuration."""

    # API settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Jigsaw Board API"

    # CORS settings
    BACKEND_CORS_ORIGINS: list[str] = ["*"]

    # Puzzle settings
    SNAP_FRACTION: float = SNAP_FRACTION
    KNOB_SCALE: float = KNOB_SCALE
    DEFAULT_SEED: int = DEFAULT_SEED
    MAX_GRID_DIMENSION: int = MAX_GRID_DIMENSION
    OUTLINE_POINTS_PER_CURVE: int = 12
    MASK_PADDING: int = 4

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("SNAP_FRACTION")
    @classmethod
    def validate_snap_fraction(cls, v: float) -> float:
        """Keep snaps forgiving but local: pieces two cells apart must never snap."""
        if not 0 < v <= 0.5:
            raise ValueError("SNAP_FRACTION must be in (0, 0.5]")
        return v

    @field_validator("KNOB_SCALE")
    @classmethod
    def validate_knob_scale(cls, v: float) -> float:
        """Knobs deeper than this run into the knobs of the other sides."""
        if not 0 < v <= 0.45:
            raise ValueError("KNOB_SCALE must be in (0, 0.45]")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL {v!r}")
        return level

    class Config:
        """Pydantic configuration class."""

        case_sensitive = True
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Create instance
settings = get_settings()
