"""Configuration for shopguard.

Pydantic-validated settings for logging and for where the permission
matrix comes from. The matrix is configuration data: it changes only by
redeploying configuration, never at runtime.

``load_config_from_env()`` is the only place that reads environment
variables; everything else takes an ``EngineConfig``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .permissions.constants import Role
from .permissions.matrix import DEFAULT_MATRIX, PermissionMatrix


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EngineConfig(BaseModel):
    """Settings for the permission engine and its logging.

    Environment variables:
        LOG_LEVEL: logging level
        LOG_JSON: JSON log format (true/false)
        SERVICE_NAME: logger name to tune alongside root
        SHOPGUARD_MATRIX_PATH: JSON permission matrix file
        SHOPGUARD_LEGACY_DEFAULT_ROLE: global role for users without one
    """

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )
    service_name: Optional[str] = Field(
        default=None,
        description="Service name for logger identification",
    )
    matrix_path: Optional[str] = Field(
        default=None,
        description="Path to a JSON permission matrix. None = built-in matrix.",
    )
    legacy_default_role: str = Field(
        default=Role.VIEWER,
        description="Legacy global role assumed when a user record has none",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @field_validator("matrix_path")
    @classmethod
    def validate_matrix_path(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        if not v.lower().endswith(".json"):
            raise ValueError("Permission matrix path must point to a .json file")
        return v

    @field_validator("legacy_default_role")
    @classmethod
    def normalize_legacy_role(cls, v: str) -> str:
        return Role.normalize(v) or Role.VIEWER

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",
    }


def load_config_from_env() -> EngineConfig:
    """Load configuration from environment variables.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - SERVICE_NAME: Service name for logging
    - SHOPGUARD_MATRIX_PATH: Permission matrix JSON file
    - SHOPGUARD_LEGACY_DEFAULT_ROLE: Default legacy global role

    Returns:
        EngineConfig instance with values from environment or defaults.
    """
    import os

    return EngineConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=os.getenv("LOG_JSON", "false").lower() in ("true", "1", "yes"),
        service_name=os.getenv("SERVICE_NAME"),
        matrix_path=os.getenv("SHOPGUARD_MATRIX_PATH"),
        legacy_default_role=os.getenv("SHOPGUARD_LEGACY_DEFAULT_ROLE", Role.VIEWER),
    )


def load_matrix(config: Optional[EngineConfig] = None) -> PermissionMatrix:
    """Return the permission matrix selected by ``config``.

    Raises:
        ConfigurationError: The configured file is unreadable or malformed.
    """
    if config is None or config.matrix_path is None:
        return DEFAULT_MATRIX
    return PermissionMatrix.from_json_file(config.matrix_path)


__all__ = [
    "EngineConfig",
    "LogLevel",
    "load_config_from_env",
    "load_matrix",
]
