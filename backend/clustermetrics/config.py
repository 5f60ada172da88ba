import os
import tempfile
from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=(".env",), env_file_encoding="utf-8", extra="ignore")

    app_env: Literal["development", "production", "test"] = "development"
    log_level: str = "INFO"
    log_json: bool = False
    log_file: str | None = None
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"

    host: str = "0.0.0.0"
    port: int = 8089
    database_url: str = "sqlite+aiosqlite:///./metrics.db"

    # Collection loop
    collector_enabled: bool = Field(default=True, description="Run the collector inside the API process")
    collect_interval_seconds: float = Field(default=1.0, gt=0, description="Seconds between collection cycles")
    shutdown_timeout_seconds: float = Field(default=10.0, gt=0, description="Max wait for the in-flight cycle on stop")
    collector_lockfile: str = Field(
        default_factory=lambda: os.path.join(tempfile.gettempdir(), "cluster_metrics_collector.lock"),
        description="Host-local lock ensuring a single collector per machine",
    )

    # Cluster access
    kube_in_cluster: bool = Field(default=True, description="Use the pod service account instead of a kubeconfig")
    kube_config_path: str | None = Field(default=None, alias="KUBE_CONFIG_PATH")
    kube_context: str | None = None
    kube_request_timeout_seconds: float = Field(default=5.0, gt=0)

    @computed_field
    @property
    def is_debug(self) -> bool:
        return self.app_env == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
