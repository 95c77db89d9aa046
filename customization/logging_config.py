"""
Logging configuration utilities for the customization engine.

The host either passes its own settings dict (keys mirror the ones the
editor integration stores) or lets the engine read them from the
environment.

Usage:
    from customization.logging_config import configure_from_settings

    configure_from_settings({
        'loggingEnabled': True,
        'logLevel': 'DEBUG',
        'logDirectory': '/path/to/logs',
    })
"""

import os
from typing import Any, Dict, Optional

from customization.logger import configure_logger, get_logger


def configure_from_settings(settings: Dict[str, Any]) -> None:
    """Configure logger from a host settings dict.

    Args:
        settings: Dictionary with host settings.
            Expected keys (all optional):
            - loggingEnabled: bool
            - logLevel: str ('ERROR', 'WARN', 'INFO', 'DEBUG', 'TRACE')
            - logDirectory: str (path to log directory)
            - logSensitiveData: bool
            - logMaxFileSize: int (bytes)
            - logMaxFiles: int
            - sessionId: str
    """
    configure_logger(
        enabled=settings.get("loggingEnabled", True),
        level=settings.get("logLevel", "INFO"),
        log_directory=settings.get("logDirectory") or None,
        log_sensitive_data=settings.get("logSensitiveData", False),
        max_file_size=settings.get("logMaxFileSize", 10485760),
        max_files=settings.get("logMaxFiles", 10),
        session_id=settings.get("sessionId"),
    )


def configure_from_environment() -> None:
    """Configure logger from environment variables.

    Environment variables:
        CUSTOMIZATION_LOG_ENABLED: '0', '1', 'true', 'false'
        CUSTOMIZATION_LOG_LEVEL: 'ERROR', 'WARN', 'INFO', 'DEBUG', 'TRACE'
        CUSTOMIZATION_LOG_DIR: Path to log directory
        CUSTOMIZATION_LOG_SENSITIVE: '0', '1', 'true', 'false'
        CUSTOMIZATION_SESSION_ID: Session ID for correlation
    """
    configure_logger(
        enabled=_parse_bool(os.environ.get("CUSTOMIZATION_LOG_ENABLED"), True),
        level=os.environ.get("CUSTOMIZATION_LOG_LEVEL", "INFO"),
        log_directory=os.environ.get("CUSTOMIZATION_LOG_DIR"),
        log_sensitive_data=_parse_bool(os.environ.get("CUSTOMIZATION_LOG_SENSITIVE"), False),
        session_id=os.environ.get("CUSTOMIZATION_SESSION_ID"),
    )


def _parse_bool(value: Optional[str], default: bool) -> bool:
    """Parse string to boolean."""
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


def get_session_id() -> str:
    return get_logger().session_id


def set_session_id(session_id: str) -> None:
    """Set session ID for cross-component correlation."""
    get_logger().session_id = session_id


__all__ = [
    "configure_from_settings",
    "configure_from_environment",
    "get_session_id",
    "set_session_id",
]
