"""
Pipeline settings read from the environment.

The CLIs call load_dotenv() before PipelineConfig.from_env(), so values can
come from a .env file as well as the process environment.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from booking_pipeline.core.errors import ConfigurationError

DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent / "config" / "ruleset.yaml"


class DatabaseSettings(BaseModel):
    """Connection settings for the PostgreSQL warehouse."""

    host: str = "localhost"
    port: int = Field(default=5432, gt=0, lt=65536)
    database: str = "bookings"
    user: str = "pipeline"
    password: str | None = None
    min_size: int = Field(default=2, ge=1)
    max_size: int = Field(default=10, ge=1)

    def connection_kwargs(self) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
            "password": self.password,
            "min_size": self.min_size,
            "max_size": self.max_size,
        }


class PipelineConfig(BaseModel):
    """
    Runtime configuration for the booking pipeline.

    Attributes:
        database: Warehouse connection settings
        max_workers: Threads used to classify and normalize records (1 = sequential)
        rules_path: YAML ruleset file; built-in defaults when the file does not exist
        metrics_port: Port for the Prometheus endpoint, None to disable it
    """

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    max_workers: int = Field(default=1, ge=1, le=64)
    rules_path: Path = DEFAULT_RULES_PATH
    metrics_port: int | None = None

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "PipelineConfig":
        """
        Build configuration from environment variables.

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        raw = {
            "database": {
                "host": env.get("DB_HOST", "localhost"),
                "port": env.get("DB_PORT", "5432"),
                "database": env.get("DB_NAME", "bookings"),
                "user": env.get("DB_USER", "pipeline"),
                "password": env.get("DB_PASSWORD"),
            },
            "max_workers": env.get("PIPELINE_MAX_WORKERS", "1"),
            "rules_path": env.get("PIPELINE_RULES_PATH", str(DEFAULT_RULES_PATH)),
            "metrics_port": env.get("METRICS_PORT") or None,
        }
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid pipeline configuration: {e}") from e
