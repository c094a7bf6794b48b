"""Harness settings with Pydantic validation and environment loading."""

from __future__ import annotations

import shlex
from functools import lru_cache
from typing import Annotated, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class HarnessSettings(BaseSettings):
    """Harness settings loaded from COMPOSE_HARNESS_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="COMPOSE_HARNESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Mode
    short: bool = Field(
        default=False, description="Skip every harnessed test (fast/short mode)"
    )

    # Orchestrator CLI
    compose_command: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["docker-compose"],
        description="Orchestrator executable and leading arguments",
    )
    compose_file: Optional[str] = Field(
        default=None, description="Compose file passed with -f"
    )
    project_name: Optional[str] = Field(
        default=None, description="Compose project name passed with -p"
    )
    build_command: Annotated[Optional[List[str]], NoDecode] = Field(
        default=None,
        description="One-time build command; None means '<compose> build', [] disables it",
    )

    # Address resolution
    machine_command: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["docker-machine"],
        description="Named-host query tool",
    )
    target_address: Optional[str] = Field(
        default=None, description="Skip resolution and use this address"
    )
    loopback_address: str = Field(
        default="127.0.0.1", description="Fallback when no named host is active"
    )

    # Readiness
    readiness_probe: Literal["http", "containers"] = "http"
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    health_path: str = "/health_check"
    health_status: int = 204
    probe_timeout: float = Field(default=2.0, description="Per-request HTTP timeout")
    readiness_interval: float = 0.25
    readiness_timeout: float = 30.0

    # Shutdown
    shutdown_timeout: float = Field(
        default=5.0, description="Grace period between interrupt and kill"
    )
    end_marker_delay: float = Field(
        default=0.1, ge=0, description="Pause before writing the end marker"
    )
    command_timeout: float = Field(
        default=300.0,
        description="Limit for one-shot commands such as build, pull and rm",
    )

    # Logging
    log_path: str = Field(default="test.log", description="Orchestrator log file")
    log_level: str = Field(
        default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR"
    )
    log_format: Literal["text", "json"] = "text"

    @field_validator("compose_command", "machine_command", "build_command", mode="before")
    @classmethod
    def parse_command(cls, v):
        if isinstance(v, str):
            return shlex.split(v)
        return v

    @field_validator("compose_command", "machine_command")
    @classmethod
    def require_executable(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("command must name an executable")
        return v

    @field_validator(
        "probe_timeout",
        "readiness_interval",
        "readiness_timeout",
        "shutdown_timeout",
        "command_timeout",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts and intervals must be positive")
        return v

    @field_validator("health_path")
    @classmethod
    def validate_health_path(cls, v: str) -> str:
        return v if v.startswith("/") else f"/{v}"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return upper


@lru_cache
def get_settings() -> HarnessSettings:
    """Cached settings factory."""
    return HarnessSettings()
