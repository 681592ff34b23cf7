"""
Motion Core Configuration

Settings class using pydantic-settings for environment variable loading.
Defines canvas geometry, playback limits and motion path generation defaults.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Motion core settings loaded from environment variables.

    All settings can be overridden via environment variables with the
    MOTIONCORE_ prefix. For example, export_fps can be set via
    MOTIONCORE_EXPORT_FPS.
    """

    model_config = SettingsConfigDict(
        env_prefix="MOTIONCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level for the CLI")

    # Canvas (logical space used by motion predictions)
    canvas_width: int = Field(default=800, gt=0, description="Logical canvas width in pixels")
    canvas_height: int = Field(default=450, gt=0, description="Logical canvas height in pixels")
    canvas_horiz_offset: float = Field(
        default=0.0,
        description="Horizontal origin of the canvas inside the editor viewport",
    )
    canvas_vert_offset: float = Field(
        default=0.0,
        description="Vertical origin of the canvas inside the editor viewport",
    )

    # Playback
    default_object_duration_ms: int = Field(
        default=20_000,
        gt=0,
        description="Animation duration for non-video objects (milliseconds)",
    )
    max_catch_up_frames: int = Field(
        default=5,
        ge=1,
        description="Maximum video frames decoded in a single step when behind",
    )
    uv_grid_size: int = Field(
        default=20,
        ge=2,
        description="Rows and columns of the UV mesh written for zoomed video quads",
    )
    export_fps: int = Field(default=60, ge=1, le=240, description="Offline export frame rate")

    # Motion path generation
    max_objects: int = Field(
        default=7,
        ge=1,
        description="Maximum number of objects sent to the motion predictor",
    )
    generation_count: int = Field(default=6, description="Keyframes per generated path (4 or 6)")
    generation_choreographed: bool = Field(
        default=False,
        description="Reuse the longest predicted path for every object",
    )
    generation_curved: bool = Field(
        default=False,
        description="Insert default Bezier curves between generated keyframes",
    )
    generation_fade: bool = Field(
        default=False,
        description="Fade generated objects in at the first slot and out at the last",
    )

    @field_validator("generation_count")
    @classmethod
    def _check_generation_count(cls, v: int) -> int:
        if v not in (4, 6):
            raise ValueError(f"generation_count must be 4 or 6, got {v}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once per process.

    Returns:
        Settings: Motion core settings instance
    """
    return Settings()
