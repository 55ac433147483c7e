"""Strongly typed application configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Runtime configuration loaded from environment variables and `.env` files."""

    model_config = SettingsConfigDict(
        env_prefix="LOCALIZER_", env_file=".env", env_nested_delimiter="__", extra="ignore"
    )

    service_name: str = Field(default="localizer", description="Service identifier")
    environment: str = Field(default="local", description="Deployment environment name")
    version: str = Field(default="0.1.0", description="Service semantic version")

    grpc_host: str = Field(default="127.0.0.1", description="gRPC bind host")
    grpc_port: int = Field(
        default=50051, description="gRPC bind port, 0 picks a free port", ge=0, le=65535
    )
    shutdown_grace_period: float = Field(
        default=5.0, description="Seconds to wait on shutdown", ge=0.0
    )

    log_level: str = Field(default="INFO", description="Application log level")
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log renderer"
    )

    metrics_enabled: bool = Field(
        default=False, description="Expose Prometheus metrics over HTTP"
    )
    metrics_port: int = Field(
        default=9000, description="Prometheus metrics port", ge=1, le=65535
    )
    tracing_enabled: bool = Field(
        default=False, description="Toggle OpenTelemetry tracing"
    )
    tracing_endpoint: str = Field(
        default="http://localhost:4317", description="OTLP collector endpoint"
    )

    kubeconfig: str | None = Field(
        default=None, description="Path to a kubeconfig file"
    )
    kube_context: str | None = Field(
        default=None, description="Kubeconfig context to use"
    )
    page_size: int = Field(
        default=500,
        description="Services requested per list call, 0 lets the API server decide",
        ge=0,
    )
    request_timeout: float | None = Field(
        default=None, description="Per-page request timeout in seconds", gt=0
    )
    discovery_timeout: float = Field(
        default=60.0, description="Deadline for a complete discovery scan", gt=0
    )
    remap_port_bits: int = Field(
        default=16,
        description="Bit width accepted for remap annotation values",
        ge=1,
        le=64,
    )
    console_buffer_size: int = Field(
        default=64, description="Console messages buffered per stream", ge=1
    )

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper_value = value.upper()
        if upper_value not in allowed:
            msg = f"Invalid log level '{value}'. Choose one of: {', '.join(sorted(allowed))}."
            raise ValueError(msg)
        return upper_value

    @property
    def grpc_bind(self) -> str:
        """Return `host:port` string for gRPC bind."""
        return f"{self.grpc_host}:{self.grpc_port}"

    @property
    def metrics_bind(self) -> tuple[str, int]:
        """Return separate host/port for metrics server."""
        return self.grpc_host, self.metrics_port
