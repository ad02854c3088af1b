"""Centralized logging configuration for dashboard sessions."""

import json
import logging
import logging.config
import uuid
from typing import Any, Dict, List, Optional

from .config_models import SystemConfig

# Attributes every LogRecord carries; anything else was passed via extra=
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class ContextFilter(logging.Filter):
    """Inject the dashboard session id into log records."""

    def __init__(self, session_id: str):
        """
        Initialize the context filter.

        Args:
            session_id: Unique identifier for the dashboard session
        """
        super().__init__()
        self.session_id = session_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = self.session_id
        return True


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "logger": record.name,
            "level": record.levelname,
            "session_id": getattr(record, "session_id", "unknown"),
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in log_data and key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(config: SystemConfig, session_id: Optional[str] = None) -> str:
    """
    Configure the logging system.

    Args:
        config: System configuration
        session_id: Dashboard session identifier. If None, a new UUID is generated.

    Returns:
        The session_id used for logging
    """
    if session_id is None:
        session_id = str(uuid.uuid4())

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": config.logging.level,
            "formatter": "console",
            "filters": ["context"],
            "stream": "ext://sys.stdout"
        }
    }

    log_file = None
    if config.logging.log_to_file:
        log_dir = config.paths.log_dir
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"session_{session_id}.log"
        handlers["file"] = {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "json",
            "filters": ["context"],
            "filename": str(log_file),
            "mode": "w"
        }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "format": config.logging.format_console,
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "json": {
                "()": JSONFormatter,
                "datefmt": "%Y-%m-%d %H:%M:%S"
            }
        },
        "filters": {
            "context": {
                "()": ContextFilter,
                "session_id": session_id
            }
        },
        "handlers": handlers,
        "root": {
            "level": "DEBUG",
            "handlers": list(handlers)
        },
        "loggers": {
            "powerdash": {
                "level": "DEBUG",
                "propagate": True
            },
            # Request lines from the development server are noise at INFO
            "werkzeug": {
                "level": "WARNING",
                "propagate": True
            }
        }
    }

    logging.config.dictConfig(logging_config)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized for dashboard session {session_id}")
    if log_file is not None:
        logger.debug(f"Log file: {log_file}")

    return session_id


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


class LogCapture(logging.Handler):
    """Collect the records one logger emits while the context is active.

    The logger is lowered to DEBUG for the duration so debug-only paths,
    such as dropped stream messages, can be asserted on.
    """

    def __init__(self, logger_name: str = ""):
        super().__init__(level=logging.DEBUG)
        self.logger_name = logger_name
        self.records: List[logging.LogRecord] = []
        self._previous_level = logging.NOTSET

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def __enter__(self) -> "LogCapture":
        logger = logging.getLogger(self.logger_name)
        self._previous_level = logger.level
        logger.setLevel(logging.DEBUG)
        logger.addHandler(self)
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        logger = logging.getLogger(self.logger_name)
        logger.removeHandler(self)
        logger.setLevel(self._previous_level)

    def get_logs(self, level: Optional[str] = None) -> List[Dict[str, Any]]:
        """Captured records as dicts, optionally only those at ``level``."""
        return [
            {
                "level": record.levelname,
                "message": record.getMessage(),
                "logger": record.name,
                "module": record.module
            }
            for record in self.records
            if level is None or record.levelname == level
        ]
