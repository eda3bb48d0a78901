"""Configuration management using Pydantic Settings."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment presets."""

    DEV = "dev"
    PROD = "prod"
    TEST = "test"


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SIGHTLINE_",
        case_sensitive=False,
    )

    # Collapse Resolution
    collapse_accumulate: bool = Field(
        default=True,
        description="Later collapsed ids see nodes hidden by earlier ones in the same call"
    )

    # Viewport Culling Stages
    culling_enable_frustum: bool = True
    culling_enable_viewport: bool = True
    culling_enable_distance: bool = True
    culling_enable_occlusion: bool = False
    culling_buffer_zone: float = 100.0
    culling_max_render_distance: float = 2000.0
    culling_occlusion_samples: int = 8
    culling_viewport_depth: float = Field(
        default=1000.0,
        description="Half-depth used when a viewport has a z centre but no depth"
    )

    # Adaptive Culling
    culling_adaptive: bool = True
    culling_performance_target: float = Field(
        default=60.0,
        description="Target frame rate for adaptive culling"
    )
    culling_render_distance_floor: float = 500.0
    culling_render_distance_ceiling: float = 3000.0
    culling_buffer_zone_floor: float = 50.0
    culling_buffer_zone_ceiling: float = 200.0

    # Label LOD Parameters
    label_max_distance: float = Field(
        default=8000.0,
        description="Labels farther than this from the camera are never candidates"
    )
    label_ndc_margin: float = Field(
        default=1.2,
        description="Tolerated NDC extent for projected label anchors (1.0 = screen edge)"
    )
    label_min_projected_size: float = Field(
        default=10.0,
        description="Minimum projected node size in pixels for a legible label"
    )
    label_ortho_size_multiplier: float = 2.0
    label_cap: int = Field(
        default=500,
        description="Hard cap on labels rendered per frame"
    )
    label_refresh_interval: int = Field(
        default=30,
        description="Frames between forced label recomputes"
    )

    # Edge LOD Parameters
    edge_lod_max_render_distance: float = 2000.0
    edge_lod_adaptive: bool = True


def get_dev_settings() -> Settings:
    """Get development environment settings."""
    return Settings(
        culling_adaptive=False,
        culling_enable_occlusion=False,
    )


def get_prod_settings() -> Settings:
    """Get production environment settings.

    Tuned for large graphs (tens of thousands of edges).
    """
    return Settings(
        culling_adaptive=True,
        culling_enable_occlusion=True,
        culling_occlusion_samples=4,
        culling_max_render_distance=1500.0,
        label_cap=300,
    )


def get_test_settings() -> Settings:
    """Get test environment settings."""
    return Settings(
        culling_adaptive=False,
        culling_enable_frustum=True,
        culling_enable_viewport=True,
        culling_enable_distance=True,
        culling_enable_occlusion=False,
    )


def get_settings(environment: Environment | str) -> Settings:
    """Get settings for a named environment preset."""
    presets = {
        Environment.DEV: get_dev_settings,
        Environment.PROD: get_prod_settings,
        Environment.TEST: get_test_settings,
    }
    return presets[Environment(environment)]()


# Global settings instance
settings = Settings()
