"""Centralized logging utilities for shopguard.

This module provides:
- Logging configuration from EngineConfig
- Safe preview utility for bounded log values
- Structured (JSON or plain) formatting with uid / shop_id context
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .config import EngineConfig, LogLevel

# Attributes every LogRecord carries; anything else came in via ``extra``
_RECORD_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName", "uid", "shop_id",
    }
)


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a single-line, length-bounded preview of a value for logging.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


class AuthzFormatter(logging.Formatter):
    """Formatter that adds uid / shop_id context and optional JSON output."""

    def __init__(self, json_format: bool = True, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        uid = getattr(record, "uid", None)
        shop_id = getattr(record, "shop_id", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if uid:
            log_data["uid"] = uid
        if shop_id:
            log_data["shop_id"] = shop_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS:
                log_data[key] = safe_preview(value)

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        if uid:
            parts.append(f"uid={uid}")
        if shop_id:
            parts.append(f"shop_id={shop_id}")
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class AuthzLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds uid and shop_id to log records.

    Usage:
        logger = get_authz_logger(__name__, uid=user.uid)
        logger.info("Assigned", shop_id="shop_001")
    """

    def __init__(
        self,
        logger: logging.Logger,
        uid: Optional[str] = None,
        shop_id: Optional[str] = None,
    ):
        super().__init__(logger, {})
        self.uid = uid
        self.shop_id = shop_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        uid = kwargs.pop("uid", self.uid)
        shop_id = kwargs.pop("shop_id", self.shop_id)

        extra = dict(kwargs.get("extra") or {})
        if uid:
            extra["uid"] = uid
        if shop_id:
            extra["shop_id"] = shop_id
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[EngineConfig] = None,
    json_format: Optional[bool] = None,
) -> None:
    """Configure the root logger.

    Args:
        config: EngineConfig instance (if None, loads from environment)
        json_format: Override ``config.log_json`` when given
    """
    if config is None:
        from .config import load_config_from_env

        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(LogLevel(config.log_level), logging.INFO)
    if json_format is None:
        json_format = config.log_json

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(AuthzFormatter(json_format=json_format))
    root_logger.addHandler(console_handler)

    if config.service_name:
        logging.getLogger(config.service_name).setLevel(log_level)


def get_authz_logger(
    name: str,
    uid: Optional[str] = None,
    shop_id: Optional[str] = None,
) -> AuthzLoggerAdapter:
    """Get a logger adapter bound to a user and/or shop.

    Example:
        logger = get_authz_logger(__name__, uid="u1")
        logger.info("Role changed", shop_id="shop_001")
    """
    return AuthzLoggerAdapter(logging.getLogger(name), uid=uid, shop_id=shop_id)


__all__ = [
    "AuthzFormatter",
    "AuthzLoggerAdapter",
    "get_authz_logger",
    "safe_preview",
    "setup_logging",
]
