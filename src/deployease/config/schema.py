"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BuildConfig(BaseModel):
    """Build command configuration."""

    command: str | None = Field(None, description="Build command; detected if unset")
    timeout: int = Field(900, ge=60, le=7200, description="Build timeout in seconds")
    max_output_bytes: int = Field(10 * 1024 * 1024, ge=1024)
    error_log: Path = Path(".deployease-build-error.log")

    @field_validator("command")
    @classmethod
    def validate_command(cls, v: str | None) -> str | None:
        """Reject blank build commands."""
        if v is not None and not v.strip():
            raise ValueError("Build command must not be empty")
        return v


class AutoFixConfig(BaseModel):
    """Automatic remediation configuration."""

    enabled: bool = True
    assume_yes: bool = False
    memory_limit_mb: int = Field(4096, ge=512, le=65536, description="Heap size for memory fixes")


class DeployConfig(BaseModel):
    """GitHub Pages deployment target."""

    owner: str | None = None
    repo: str | None = None
    branch: str = "gh-pages"
    deploy_dir: str | None = Field(None, description="Defaults to the build dir")

    @field_validator("owner", "repo")
    @classmethod
    def validate_segment(cls, v: str | None) -> str | None:
        """Validate GitHub owner and repository names."""
        from ..utils.security import validate_name_segment

        if v is not None and not validate_name_segment(v):
            raise ValueError(f"Invalid GitHub name: {v}")
        return v


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path(".deployease.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "console"
    file: FileLoggingConfig = FileLoggingConfig()


class DeployEaseConfig(BaseSettings):
    """Root configuration for DeployEase."""

    build: BuildConfig = BuildConfig()
    auto_fix: AutoFixConfig = AutoFixConfig()
    deploy: DeployConfig = DeployConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_prefix="DEPLOYEASE_",
        env_nested_delimiter="__",
    )
