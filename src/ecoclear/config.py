"""Environment-based configuration for EcoClear."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from ECOCLEAR_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ECOCLEAR_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8080
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Authentication (None = disabled)
    api_key: str | None = None

    # ML device
    device: Literal["cpu", "cuda", "openvino"] = "cpu"

    # Model selection
    classifier_model: str = "mobilenetv2_imagenet"
    models_dir: str = "models"

    # ONNX Runtime threading
    intra_op_threads: int = Field(default=0, ge=0)
    inter_op_threads: int = Field(default=1, ge=1)

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)

    # Input limits
    max_image_pixels: int = Field(default=16_777_216, ge=1)
    max_file_size: int = Field(default=20_971_520, ge=1)

    # Model management
    model_ttl: int = Field(default=0, ge=0)
    gpu_mem_limit: int = Field(default=2_147_483_648, ge=0)

    # Classification sessions
    session_ttl: int = Field(default=1800, ge=0)
    max_sessions: int = Field(default=256, ge=1)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
