"""
Structured Logging Configuration

Configures structlog on top of the stdlib logging module: timestamps, log
levels, the per-connection correlation ID, secret redaction, and JSON (default)
or colorized console rendering selected by environment.
"""

import contextvars
import logging
import os
import sys
import time
import uuid
from logging.handlers import RotatingFileHandler

import structlog
from structlog import dev as structlog_dev

# Correlation ID of the device connection currently being served
correlation_id_var = contextvars.ContextVar('correlation_id', default=None)

SERVICE_NAME = 'voice-relay'

SENSITIVE_KEYS = {
    'api_key', 'apikey', 'appid',
    'token', 'access_token', 'auth_token', 'bearer',
    'password', 'passwd',
    'authorization', 'auth',
    'credential', 'credentials', 'secret', 'secrets',
}


def get_correlation_id():
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(value=None):
    """Set the correlation ID, generating one when none is given."""
    if value is None:
        value = uuid.uuid4().hex
    correlation_id_var.set(value)
    return value


def add_correlation_id(logger, method_name, event_dict):
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict['correlation_id'] = correlation_id
    return event_dict


def add_service_context(logger, method_name, event_dict):
    event_dict['service'] = SERVICE_NAME
    component = event_dict.get('logger')
    if not component:
        component = getattr(getattr(logger, 'logger', None), 'name', None) or getattr(logger, 'name', 'unknown')
    event_dict['component'] = component
    return event_dict


def _redact(value):
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        if not value:
            return ''
        # Keep a two character prefix so key families stay recognisable
        if len(value) > 4:
            return f"{value[:2]}***REDACTED***"
        return "***REDACTED***"
    if isinstance(value, (list, tuple)):
        return [_redact(v) for v in value]
    return "***REDACTED***"


def _is_sensitive(key) -> bool:
    normalized = str(key).lower().replace('_', '').replace('-', '')
    for pattern in SENSITIVE_KEYS:
        candidate = pattern.replace('_', '')
        if normalized == candidate or normalized.endswith(candidate):
            return True
    return False


def sanitize_secrets(logger, method_name, event_dict):
    """
    Redact API keys, tokens and passwords from log events.

    Matching is on the key name (case and separator insensitive, exact or
    suffix match), recursing into nested dicts and lists of dicts.
    """
    def sanitize(d):
        if not isinstance(d, dict):
            return d
        clean = {}
        for key, value in d.items():
            if _is_sensitive(key):
                clean[key] = _redact(value)
            elif isinstance(value, dict):
                clean[key] = sanitize(value)
            elif isinstance(value, (list, tuple)):
                clean[key] = [sanitize(v) if isinstance(v, dict) else v for v in value]
            else:
                clean[key] = value
        return clean

    return sanitize(event_dict)


def configure_logging(log_level="INFO", log_to_file=False, log_file_path="logs/", service_name=SERVICE_NAME):
    """
    Set up structured logging for the relay.

    Environment overrides (optional):
      - LOG_LEVEL: debug|info|warning|error|critical
      - LOG_FORMAT: json|console (default: json)
      - LOG_COLOR: 0|1 (console only; default: 1)
      - LOG_TO_FILE: 0|1 (default: 0)
      - LOG_FILE_PATH: file path or directory (default: logs/)
    """
    env_level = os.getenv("LOG_LEVEL")
    if env_level:
        log_level = env_level
    if os.getenv("LOG_TO_FILE") is not None:
        log_to_file = os.getenv("LOG_TO_FILE", "0").strip().lower() in ("1", "true", "yes")
    log_file_path = os.getenv("LOG_FILE_PATH", log_file_path)
    log_format = os.getenv("LOG_FORMAT", "json").strip().lower()
    log_color = os.getenv("LOG_COLOR", "1").strip() not in ("0", "false", "False")

    level_name = str(log_level).upper()
    level_value = getattr(logging, level_name, logging.INFO)
    show_tracebacks = level_value <= logging.DEBUG

    def suppress_exc_info_if_disabled(logger, method_name, event_dict):
        """Drop exc_info outside of debug level."""
        if not show_tracebacks and event_dict.get("exc_info"):
            event_dict.pop("exc_info", None)
        return event_dict

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_service_context,
            add_correlation_id,
            sanitize_secrets,
            suppress_exc_info_if_disabled,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = structlog_dev.ConsoleRenderer(colors=log_color) if log_format == "console" else structlog.processors.JSONRenderer()

    processor_formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ],
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level_value)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(processor_formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        path = log_file_path
        if path.endswith(os.sep) or os.path.isdir(path):
            path = os.path.join(path, f"{service_name}-{time.strftime('%Y%m%d-%H%M%S')}.log")
        try:
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            file_handler = RotatingFileHandler(path, maxBytes=10 * 1024 * 1024, backupCount=5)
            file_handler.setFormatter(processor_formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning("File logging disabled (%s); continuing with console only", e)

    # Reduce noisy third-party loggers
    for name in ('websockets', 'websockets.server', 'aiohttp', 'asyncio'):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str):
    """Get a structlog logger."""
    return structlog.get_logger(name)
