"""
FrameSlicer configuration using Pydantic Settings.
Every section reads its own environment prefix; values may also come from .env.
"""

from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load .env before any BaseSettings subclass reads env vars
load_dotenv()

STORAGE_BACKENDS = ("local", "gcs", "memory")


class StorageSettings(BaseSettings):
    backend: str = "local"  # "local", "gcs" or "memory"
    base_dir: str = "./media/frames"
    key_prefix: str = "input_folder"
    view_name: str = "viewA"
    max_concurrent_uploads: int = 8
    upload_retries: int = 2
    retry_backoff_seconds: float = 0.5
    allocation_attempts: int = 50

    model_config = {"env_prefix": "STORAGE_"}


class GCSSettings(BaseSettings):
    bucket_name: str = ""
    credentials_path: str = ""

    model_config = {"env_prefix": "GCS_"}


class DecoderSettings(BaseSettings):
    ffmpeg_path: str = ""
    input_format: str = "webm"
    frame_rate: float = 20.0
    queue_size: int = 32
    read_chunk_size: int = 64 * 1024

    model_config = {"env_prefix": "DECODER_"}


class PipelineSettings(BaseSettings):
    timeout_seconds: float = 300.0
    persist_source_video: bool = False

    model_config = {"env_prefix": "PIPELINE_"}


class WebSettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_size_mb: int = 500


class LoggingSettings(BaseSettings):
    level: str = "INFO"

    model_config = {"env_prefix": "LOG_"}


class Settings(BaseSettings):
    """Root settings aggregating all configuration sections."""

    app_env: str = "development"

    storage: StorageSettings = Field(default_factory=StorageSettings)
    gcs: GCSSettings = Field(default_factory=GCSSettings)
    decoder: DecoderSettings = Field(default_factory=DecoderSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    web: WebSettings = Field(default_factory=WebSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def validate_production(self) -> None:
        """Validate critical settings before serving requests."""
        if self.storage.backend not in STORAGE_BACKENDS:
            raise RuntimeError(
                f"FATAL: unknown storage backend '{self.storage.backend}'. "
                f"Expected one of: {', '.join(STORAGE_BACKENDS)}"
            )
        if self.storage.backend == "gcs" and not self.gcs.bucket_name:
            raise RuntimeError(
                "FATAL: GCS storage selected but no bucket configured. "
                "Set the GCS_BUCKET_NAME environment variable."
            )
        if self.app_env == "production" and self.storage.backend == "memory":
            raise RuntimeError("FATAL: the memory storage backend is not allowed in production.")


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
