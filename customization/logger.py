"""
Structured JSON-lines logger for the customization engine.

Each record is one JSON object per line, tagged with a session ID so that
records from the engine can be correlated with the host's own logs. Nothing
is written until the host calls configure_logger() (or one of the helpers in
logging_config).

Usage:
    from customization.logger import get_logger

    logger = get_logger()
    logger.info("config", "load_complete", {"templates": 12})
    logger.warn("command", "rejected", {"id": "bugs"})

    # Timed operations
    with logger.span("config", "reload", {"source": "user"}) as span:
        merged = reload()
        span.set_data({"prompts": len(merged.prompts)})
"""

import json
import tempfile
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Generator, Optional


class LogLevel(IntEnum):
    """Log level enumeration."""
    TRACE = 5
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40

    @classmethod
    def from_string(cls, level_str: str) -> "LogLevel":
        """Parse string to LogLevel."""
        mapping = {
            "TRACE": cls.TRACE,
            "DEBUG": cls.DEBUG,
            "INFO": cls.INFO,
            "WARN": cls.WARN,
            "WARNING": cls.WARN,
            "ERROR": cls.ERROR,
        }
        return mapping.get(level_str.upper(), cls.INFO)


class LogSpan:
    """Context manager for timed operations."""

    def __init__(
        self,
        logger: "StructuredLogger",
        level: LogLevel,
        component: str,
        event: str,
        data: Optional[Dict[str, Any]] = None,
    ):
        self.logger = logger
        self.level = level
        self.component = component
        self.event = event
        self.data = data or {}
        self.start_time: Optional[float] = None

    def __enter__(self) -> "LogSpan":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        duration_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is not None:
            self.data["error"] = str(exc_val)
            self.data["error_type"] = exc_type.__name__
            self.logger._log(
                LogLevel.ERROR,
                self.component,
                f"{self.event}_error",
                self.data,
                duration_ms=duration_ms,
            )
        else:
            self.logger._log(
                self.level,
                self.component,
                f"{self.event}_complete",
                self.data,
                duration_ms=duration_ms,
            )

        return False  # Don't suppress exceptions

    def set_data(self, data: Dict[str, Any]) -> None:
        """Update span data before completion."""
        self.data.update(data)


class StructuredLogger:
    """Thread-safe structured JSON-lines logger."""

    # Keys whose values are replaced when sensitive logging is off.
    # Selected code and expanded prompt text fall under "content"/"code".
    SENSITIVE_KEYS = {
        "message",
        "content",
        "code",
        "selection",
        "args",
        "password",
        "token",
        "secret",
    }

    def __init__(self):
        self._lock = threading.RLock()
        self._session_id: str = self._generate_session_id()
        self._level: LogLevel = LogLevel.INFO
        self._enabled: bool = False  # until the host calls configure()
        self._log_sensitive_data: bool = False
        self._log_directory: Optional[Path] = None
        self._file_handle: Optional[Any] = None
        self._current_file_path: Optional[Path] = None
        self._max_file_size: int = 10 * 1024 * 1024  # 10 MB
        self._max_files: int = 10
        self._write_count: int = 0
        self._console_output: bool = False

    def _generate_session_id(self) -> str:
        """Generate unique session identifier."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_part = format(int(time.time() * 1000000) % 65536, "04X")
        return f"{timestamp}_{random_part}"

    @property
    def session_id(self) -> str:
        return self._session_id

    @session_id.setter
    def session_id(self, value: str) -> None:
        with self._lock:
            self._session_id = value
            self._close_file()  # Will reopen with new session ID

    @property
    def level(self) -> LogLevel:
        return self._level

    @property
    def enabled(self) -> bool:
        return self._enabled

    def configure(
        self,
        enabled: bool = True,
        level: str = "INFO",
        log_directory: Optional[str] = None,
        log_sensitive_data: bool = False,
        max_file_size: int = 10485760,
        max_files: int = 10,
        session_id: Optional[str] = None,
        console_output: bool = False,
    ) -> None:
        """Configure logger from settings."""
        with self._lock:
            self._enabled = enabled
            self._level = LogLevel.from_string(level)
            self._log_sensitive_data = log_sensitive_data
            self._max_file_size = max_file_size
            self._max_files = max_files
            self._console_output = console_output
            self._log_directory = Path(log_directory) if log_directory else None

            if session_id:
                self._session_id = session_id

            self._close_file()

    def error(self, component: str, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.ERROR, component, event, data)

    def warn(self, component: str, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.WARN, component, event, data)

    def info(self, component: str, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.INFO, component, event, data)

    def debug(self, component: str, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.DEBUG, component, event, data)

    @contextmanager
    def span(
        self,
        component: str,
        event: str,
        data: Optional[Dict[str, Any]] = None,
        level: LogLevel = LogLevel.DEBUG,
    ) -> Generator[LogSpan, None, None]:
        """Create a timed span for an operation.

        Usage:
            with logger.span("command", "run") as span:
                messages = run()
                span.set_data({"messages": len(messages)})
        """
        span_obj = LogSpan(self, level, component, event, data)
        with span_obj:
            yield span_obj

    def close(self) -> None:
        """Close log file."""
        with self._lock:
            self._close_file()

    def _log(
        self,
        level: LogLevel,
        component: str,
        event: str,
        data: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
    ) -> None:
        """Core logging method."""
        if not self._enabled or level < self._level:
            return

        entry = self._create_entry(level, component, event, data, duration_ms)
        json_str = json.dumps(entry, default=str)

        if self._console_output:
            print(f"[{level.name}] {component}.{event}: {json_str}")

        self._write_to_file(json_str)

    def _create_entry(
        self,
        level: LogLevel,
        component: str,
        event: str,
        data: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Create structured log entry."""
        entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": level.name,
            "session_id": self._session_id,
            "component": component,
            "event": event,
        }

        if data:
            if self._log_sensitive_data:
                entry["data"] = self._sanitize_data(data)
            else:
                entry["data"] = self._redact_sensitive(data)

        if duration_ms is not None:
            entry["duration_ms"] = round(duration_ms, 3)

        return entry

    def _sanitize_data(self, data: Any) -> Any:
        """Sanitize data for JSON encoding."""
        if isinstance(data, dict):
            return {k: self._sanitize_data(v) for k, v in data.items()}
        elif isinstance(data, (list, tuple)):
            return [self._sanitize_data(v) for v in data]
        elif isinstance(data, (str, int, float, bool, type(None))):
            return data
        elif isinstance(data, Exception):
            return {"type": type(data).__name__, "message": str(data)}
        return str(data)

    def _redact_sensitive(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Redact potentially sensitive fields."""
        result = {}
        for k, v in data.items():
            if k.lower() in self.SENSITIVE_KEYS:
                if isinstance(v, str):
                    result[k] = f"<redacted:{len(v)} chars>"
                else:
                    result[k] = "<redacted>"
            elif isinstance(v, dict):
                result[k] = self._redact_sensitive(v)
            else:
                result[k] = self._sanitize_data(v)
        return result

    def _write_to_file(self, json_str: str) -> None:
        """Write JSON string to log file."""
        with self._lock:
            if self._file_handle is None:
                self._open_file()

            if self._file_handle is None:
                return

            try:
                self._file_handle.write(json_str + "\n")
                self._file_handle.flush()
            except OSError as e:
                if self._console_output:
                    print(f"Logger write failed: {e}")
                return

            self._write_count += 1
            if self._write_count % 100 == 0:
                self._check_rotation()

    def _open_file(self) -> None:
        """Open log file for writing."""
        log_path = self._get_log_path()

        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(log_path, "a", encoding="utf-8")
            self._current_file_path = log_path
        except OSError as e:
            if self._console_output:
                print(f"Failed to open log file {log_path}: {e}")

    def _close_file(self) -> None:
        """Close log file."""
        if self._file_handle:
            try:
                self._file_handle.close()
            except OSError:
                pass
            self._file_handle = None
            self._current_file_path = None

    def _get_log_path(self) -> Path:
        """Get path to log file."""
        log_dir = self._log_directory or Path(tempfile.gettempdir()) / "customization_logs"
        return log_dir / f"customization_{self._session_id}.jsonl"

    def _check_rotation(self) -> None:
        """Check if log rotation is needed."""
        if self._current_file_path and self._current_file_path.exists():
            if self._current_file_path.stat().st_size > self._max_file_size:
                self._rotate_files()

    def _rotate_files(self) -> None:
        """Rotate log files, dropping the oldest beyond the limit."""
        current = self._current_file_path
        self._close_file()

        if not current:
            return

        log_dir = current.parent
        stem = current.stem
        suffix = current.suffix

        existing = list(log_dir.glob(f"{stem}.*{suffix}"))

        if len(existing) >= self._max_files:
            existing.sort(key=lambda p: p.stat().st_mtime)
            for old_file in existing[: len(existing) - self._max_files + 1]:
                try:
                    old_file.unlink()
                except OSError:
                    pass

        rotated_path = log_dir / f"{stem}.{len(existing) + 1}{suffix}"
        try:
            current.rename(rotated_path)
        except OSError:
            pass

        self._session_id = self._generate_session_id()
        self._open_file()


# Module-level singleton instance
_logger_instance: Optional[StructuredLogger] = None
_logger_lock = threading.Lock()


def get_logger() -> StructuredLogger:
    """Get the global logger instance."""
    global _logger_instance
    with _logger_lock:
        if _logger_instance is None:
            _logger_instance = StructuredLogger()
        return _logger_instance


def configure_logger(
    enabled: bool = True,
    level: str = "INFO",
    log_directory: Optional[str] = None,
    log_sensitive_data: bool = False,
    max_file_size: int = 10485760,
    max_files: int = 10,
    session_id: Optional[str] = None,
    console_output: bool = False,
) -> None:
    """Configure the global logger."""
    get_logger().configure(
        enabled=enabled,
        level=level,
        log_directory=log_directory,
        log_sensitive_data=log_sensitive_data,
        max_file_size=max_file_size,
        max_files=max_files,
        session_id=session_id,
        console_output=console_output,
    )
