"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file and override existing env vars
load_dotenv(override=True)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Working tree
    project_root: Path = Field(default_factory=Path.cwd)
    stores_dir: str = "stores"
    project_manifest: str = "package.json"
    runtime_command: str = "node"

    # Version control
    git_binary: str = "git"
    deploy_branch: str = "main"
    git_remote: str = "origin"
    git_user_name: str = "Store Automation"
    git_user_email: str = "automation@stores.dev"

    # Hosting platform
    host_binary: str = "vercel"
    host_token: str = Field(default="")
    host_scope: str | None = None
    host_manifest: str = "vercel.json"
    host_function_entry: str = "api/serverless.js"
    host_function_max_duration: int = 30

    # Command timeouts (seconds)
    inspect_timeout: float = 10.0
    command_timeout: float = 30.0
    domain_add_timeout: float = 15.0
    deploy_timeout: float = 300.0

    # Admission queue
    queue_capacity: int = Field(default=1, ge=1)
    queue_cooldown: float = 1.0

    # Liveness
    liveness_attempts: int = Field(default=3, ge=1)
    liveness_delay: float = 2.0
    liveness_timeout: float = 8.0
    monitor_wait: float = 5.0
    monitor_check_timeout: float = 5.0

    # Finished task results
    result_ttl_hours: int = 24

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_directory: str = "logs"
    log_file_name: str = "storedeploy.log"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
