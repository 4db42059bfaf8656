"""
Logging setup for the CareerOS audit service.

One ``dictConfig`` call wires a console handler and, outside tests, a rotating
service log plus a separate error log under ``LOG_DIR``. The profile is picked
by ``ENVIRONMENT``; ``LOG_LEVEL`` only applies to production.
"""
import functools
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)-30s | %(funcName)-20s:%(lineno)-4d | %(message)s",
}

# environment -> (level, write files, format); None level means LOG_LEVEL
PROFILES = {
    "production": (None, True, "detailed"),
    "development": ("DEBUG", True, "detailed"),
    "testing": ("WARNING", False, "simple"),
}

# third-party loggers that drown out pipeline stage warnings
QUIET_LOGGERS = {
    "pdfminer": "ERROR",  # malformed fonts on real-world resumes
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "pymongo": "WARNING",
}

LOG_FILE_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _rotating_file(path: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(path),
        "maxBytes": LOG_FILE_BYTES,
        "backupCount": LOG_FILE_BACKUPS,
        "encoding": "utf8",
    }


def setup_logging(
    level: str = "INFO",
    enable_file: bool = True,
    format_style: str = "detailed",
    log_dir: Optional[str] = None,
) -> None:
    """
    Configure the root, uvicorn and third-party loggers.

    Args:
        level: Level for the root logger and its handlers
        enable_file: Write ``careeros_<date>.log`` and ``careeros_errors_<date>.log``
        format_style: 'simple' or 'detailed'
        log_dir: Directory for log files (defaults to ``LOG_DIR`` or ``logs``)
    """
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": format_style if format_style in FORMATS else "detailed",
            "stream": "ext://sys.stdout",
        }
    }

    log_file = None
    if enable_file:
        directory = Path(log_dir or os.getenv("LOG_DIR", "logs"))
        directory.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d")
        log_file = directory / f"careeros_{stamp}.log"
        handlers["file"] = _rotating_file(log_file, level)
        handlers["error_file"] = _rotating_file(directory / f"careeros_errors_{stamp}.log", "ERROR")

    names = list(handlers)
    loggers: Dict[str, Any] = {
        "": {"level": level, "handlers": names, "propagate": False},
        "uvicorn": {"level": "INFO", "handlers": [n for n in names if n != "error_file"], "propagate": False},
        "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
    }
    for name, quiet_level in QUIET_LOGGERS.items():
        loggers[name] = {"level": quiet_level}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            style: {"format": fmt, "datefmt": "%Y-%m-%d %H:%M:%S"} for style, fmt in FORMATS.items()
        },
        "handlers": handlers,
        "loggers": loggers,
    })

    logger = logging.getLogger("careeros.logging")
    logger.info(f"Logging configured - level {level}, file: {log_file or 'disabled'}")


def configure_for_environment() -> None:
    environment = os.getenv("ENVIRONMENT", "development").lower()
    level, enable_file, format_style = PROFILES.get(environment, (None, True, "detailed"))
    setup_logging(
        level=level or os.getenv("LOG_LEVEL", "INFO").upper(),
        enable_file=enable_file,
        format_style=format_style,
    )


def get_logger(name: str) -> logging.Logger:
    """Logger namespaced under ``careeros.``"""
    if name.startswith("careeros"):
        return logging.getLogger(name)
    return logging.getLogger(f"careeros.{name}")


def log_api_call(operation: str):
    """Log start, finish and failure of a route handler with its request id."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(f"api.{func.__module__}")
            request = kwargs.get("request")
            extra = {}
            if request is not None:
                extra = {
                    "request_id": getattr(request.state, "request_id", None),
                    "method": request.method,
                    "path": request.url.path,
                }

            logger.info(f"API {operation} started", extra=extra)
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                elapsed = time.perf_counter() - start_time
                logger.error(f"API {operation} failed after {elapsed:.3f}s: {e}",
                             extra={**extra, "execution_time": elapsed})
                raise
            elapsed = time.perf_counter() - start_time
            logger.info(f"API {operation} completed in {elapsed:.3f}s", extra={**extra, "execution_time": elapsed})
            return result

        return wrapper
    return decorator


class PerformanceMonitor:
    """Times a block and logs it, warning past ``threshold_ms``."""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.elapsed_ms: Optional[float] = None
        self._start = None

    def __enter__(self):
        self._start = time.perf_counter()
        self.logger.debug(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000

        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {self.elapsed_ms:.2f}ms: {exc_val}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms (over {self.threshold_ms:g}ms)"
            )
        else:
            self.logger.info(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms")
