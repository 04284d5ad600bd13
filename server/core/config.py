"""Environment-driven configuration with Pydantic v2."""

from typing import List, Literal, Optional
from pathlib import Path
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings driven entirely by environment variables."""

    # Server Configuration
    host: str = Field(default="0.0.0.0", env="HOST")
    port: int = Field(default=3010, env="PORT", ge=1024, le=65535)
    debug: bool = Field(default=False, env="DEBUG")
    workers: int = Field(default=1, env="WORKERS", ge=1, le=8)

    # Security
    cors_origins: List[str] = Field(default=["*"], env="CORS_ORIGINS")

    # Database Configuration
    database_path: str = Field(default="data/database.sqlite", env="DATABASE_PATH")
    database_echo: bool = Field(default=False, env="DATABASE_ECHO")
    database_busy_timeout_ms: int = Field(default=5000, env="DATABASE_BUSY_TIMEOUT_MS", ge=0, le=60000)
    database_cache_size_kb: int = Field(default=10000, env="DATABASE_CACHE_SIZE_KB", ge=100)
    database_mmap_size: int = Field(default=1_000_000_000, env="DATABASE_MMAP_SIZE", ge=0)

    # Benchmark
    benchmark_phase_duration: float = Field(default=3.0, env="BENCHMARK_PHASE_DURATION", gt=0, le=60)
    benchmark_chunk_size: int = Field(default=100, env="BENCHMARK_CHUNK_SIZE", ge=1, le=10000)
    benchmark_cache_window: int = Field(default=300, env="BENCHMARK_CACHE_WINDOW", ge=0)
    benchmark_author_length: int = Field(default=7, env="BENCHMARK_AUTHOR_LENGTH", ge=1, le=255)
    benchmark_content_min_length: int = Field(default=7, env="BENCHMARK_CONTENT_MIN_LENGTH", ge=1)
    benchmark_content_max_length: int = Field(default=64, env="BENCHMARK_CONTENT_MAX_LENGTH", ge=1, le=65536)
    benchmark_stale_record_age: int = Field(default=600, env="BENCHMARK_STALE_RECORD_AGE", ge=60)
    benchmark_single_flight: bool = Field(default=True, env="BENCHMARK_SINGLE_FLIGHT")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", env="LOG_FORMAT")
    log_file: Optional[str] = Field(default=None, env="LOG_FILE")

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, v):
        """Ensure database directory exists for SQLite."""
        if v and v != ":memory:":
            Path(v).parent.mkdir(parents=True, exist_ok=True)
        return v

    @model_validator(mode="after")
    def validate_content_lengths(self):
        if self.benchmark_content_min_length > self.benchmark_content_max_length:
            raise ValueError("BENCHMARK_CONTENT_MIN_LENGTH must not exceed BENCHMARK_CONTENT_MAX_LENGTH")
        return self

    @property
    def database_url(self) -> str:
        """Async SQLAlchemy URL (aiosqlite driver)."""
        return f"sqlite+aiosqlite:///{self.database_path}"

    @property
    def sync_database_url(self) -> str:
        """Blocking SQLAlchemy URL used by benchmark runs."""
        return f"sqlite:///{self.database_path}"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "env_parse_none_str": "none",
        "env_nested_delimiter": "__",
    }
