"""
Centralized logging configuration for dnsLookup.

Provides structured JSONL logging with rotation, context injection,
and component-specific loggers. Enabled by default with environment
variable configuration.

Request ID Propagation:
    The HTTP middleware calls `set_request_id()` for every inbound request.
    The request ID is automatically included in all log records emitted
    while that request is being handled.

    Example:
        from dnsLookup.logging_config import set_request_id, get_logger

        token = set_request_id(str(uuid.uuid4()))
        logger.info("Planning lookup", extra={"domain": "example.com"})
        # Log will include: "request_id": "<uuid>"
"""
import contextvars
import json
import logging
import logging.handlers
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Context variable for request ID propagation across async boundaries
_request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default=""
)


def set_request_id(request_id: str) -> contextvars.Token:
    """
    Set the current request ID for this async context.

    Args:
        request_id: The request ID to set

    Returns:
        Token that can be used to reset the context variable
    """
    return _request_id_var.set(request_id)


def get_request_id() -> str:
    """Return the current request ID, or empty string if not set."""
    return _request_id_var.get()


def reset_request_id(token: contextvars.Token) -> None:
    """Reset the request ID context variable to its previous state."""
    _request_id_var.reset(token)


class JSONLFormatter(logging.Formatter):
    """
    Formatter that outputs logs in JSON Lines format.
    Each log entry is a single-line JSON object with standardized fields.
    Automatically includes request_id from contextvars if set.
    """

    # Extra attributes copied into the JSON object when present on a record
    EXTRA_ATTRS = (
        "request_id", "method", "path", "status_code", "duration",
        "domain", "nameserver", "transport", "dnssec", "record_types",
        "authoritative", "target_server", "query_time", "record_count",
        "error_code", "record_type", "outcome", "state", "user_input",
    )

    def __init__(self, component: str = "dnslookup"):
        super().__init__()
        self.component = component
        self.hostname = os.getenv("HOSTNAME", os.getenv("COMPUTERNAME", "unknown"))

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "component": self.component,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self.hostname,
            "process_id": record.process,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        for attr in self.EXTRA_ATTRS:
            if hasattr(record, attr):
                log_data[attr] = getattr(record, attr)

        return json.dumps(log_data, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """
    Logger adapter that automatically injects context into log records.
    Useful for pinning a domain or nameserver to every log line of a lookup.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(
    component: str = "dnslookup",
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: Optional[int] = None,
    backup_count: int = 10,
    enable_console: bool = True
) -> logging.Logger:
    """
    Set up logging configuration for a dnsLookup component.

    Args:
        component: Component name (api, lookup, resolver, client)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (default: logs/dnslookup.jsonl, "" disables)
        max_bytes: Max bytes per log file before rotation (default: 100MB)
        backup_count: Number of backup files to keep (default: 10)
        enable_console: Whether to enable console logging (default: True)

    Returns:
        Configured logger instance
    """
    log_level = (log_level or os.getenv("DNSLOOKUP_LOG_LEVEL", "INFO")).upper()
    if log_file is None:
        log_file = os.getenv("DNSLOOKUP_LOG_FILE", "logs/dnslookup.jsonl")
    max_bytes = max_bytes or int(os.getenv("DNSLOOKUP_LOG_MAX_BYTES", str(100 * 1024 * 1024)))

    numeric_level = getattr(logging, log_level, logging.INFO)

    logger = logging.getLogger(f"dnslookup.{component}")
    logger.setLevel(numeric_level)
    logger.propagate = False
    logger.handlers.clear()

    formatter = JSONLFormatter(component=component)

    if log_file:
        log_dir = os.path.dirname(log_file)
        try:
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8"
            )
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except (IOError, OSError) as e:
            # If we can't write to file, log to stderr
            sys.stderr.write(f"Failed to set up file logging to {log_file}: {e}\n")

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger.debug(
        "Logging configured",
        extra={
            "state": "configured",
            "user_input": {
                "log_level": log_level,
                "log_file": log_file,
                "max_bytes": max_bytes,
                "backup_count": backup_count,
                "console_enabled": enable_console,
            },
        }
    )

    return logger


def get_logger(component: str, context: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """
    Get or create a logger for a component with optional context.

    Args:
        component: Component name (api, lookup, resolver, client)
        context: Optional context dictionary to inject into all logs

    Returns:
        Logger or ContextAdapter if context is provided
    """
    logger = logging.getLogger(f"dnslookup.{component}")

    if not logger.handlers:
        logger = setup_logging(component)

    if context:
        return ContextAdapter(logger, context)

    return logger


def sanitize_log_data(data: Dict[str, Any], sensitive_keys: Optional[list] = None) -> Dict[str, Any]:
    """
    Sanitize sensitive data from log dictionaries.

    Args:
        data: Dictionary containing log data
        sensitive_keys: List of keys to redact (case-insensitive)

    Returns:
        Sanitized dictionary with sensitive values replaced
    """
    sensitive_keys = sensitive_keys or [
        "password", "passwd", "pwd", "token", "secret", "api_key",
        "apikey", "auth", "authorization", "cookie"
    ]

    sanitized = {}
    for key, value in data.items():
        if any(sensitive in key.lower() for sensitive in sensitive_keys):
            sanitized[key] = "***REDACTED***"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value, sensitive_keys)
        elif isinstance(value, list) and value and isinstance(value[0], dict):
            sanitized[key] = [sanitize_log_data(item, sensitive_keys) for item in value]
        else:
            sanitized[key] = value

    return sanitized
