"""
Logging configuration for the BoardGuru API.

Every record is stamped with the id of the HTTP request being served (set by
the request logging middleware through `request_id_var`), so a single
request can be followed across services. Output goes to the console and,
when LOG_TO_FILE is on, to rotating files:

    boardguru.log     everything at the configured level
    errors.log        ERROR and above, with source location
    performance.log   psutil memory/CPU snapshots only
"""

import logging
import logging.handlers
import os
import sys
import tracemalloc
from contextvars import ContextVar
from pathlib import Path
from typing import Optional

import psutil

from boardguru.config import settings

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

CONSOLE_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s%(metrics)s"
FILE_FORMAT = "%(asctime)s %(levelname)s [pid %(pid)s] [%(request_id)s] %(name)s: %(message)s%(metrics)s"
ERROR_FORMAT = FILE_FORMAT + "\n    at %(pathname)s:%(lineno)d in %(funcName)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024
QUIET_LOGGERS = ("urllib3", "asyncio", "multipart", "botocore", "boto3", "s3transfer", "passlib")


class PerformanceLogger:
    """psutil snapshots of the current process, logged through the owning logger."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.process = psutil.Process()

    def log_performance_snapshot(self, context: str = ""):
        with self.process.oneshot():
            memory_mb = self.process.memory_info().rss / 1024 / 1024
            threads = self.process.num_threads()
        cpu_percent = self.process.cpu_percent(interval=0.1)

        self.logger.info(
            f"Process snapshot ({context or 'adhoc'}): {threads} threads",
            extra={
                "metric_type": "snapshot",
                "memory_mb": memory_mb,
                "cpu_percent": cpu_percent,
            }
        )


class RequestContextFilter(logging.Filter):
    """Adds request_id, pid and a metrics suffix to every record."""

    def filter(self, record):
        record.request_id = request_id_var.get()
        record.pid = os.getpid()
        metrics = []
        if hasattr(record, "memory_mb"):
            metrics.append(f"mem={record.memory_mb:.1f}MB")
        if hasattr(record, "cpu_percent"):
            metrics.append(f"cpu={record.cpu_percent:.1f}%")
        record.metrics = f" [{' '.join(metrics)}]" if metrics else ""
        return True


class ColoredFormatter(logging.Formatter):
    """Colours the level name when writing to a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        text = super().format(record)
        if sys.stdout.isatty() and record.levelname in self.COLORS:
            text = text.replace(record.levelname, f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}", 1)
        return text


def _file_handler(path: Path, level: int, fmt: str, backup_count: int = 5) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=backup_count)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    handler.addFilter(RequestContextFilter())
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[str] = None,
    enable_file_logging: Optional[bool] = None,
    enable_performance_logging: bool = False
) -> None:
    """
    Configure the root logger. Arguments default to the LOG_* settings.
    enable_performance_logging also starts tracemalloc.
    """
    level_name = (log_level or settings.LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.INFO)
    if enable_file_logging is None:
        enable_file_logging = settings.LOG_TO_FILE

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    console.addFilter(RequestContextFilter())
    root.addHandler(console)

    if enable_file_logging:
        directory = Path(log_dir or settings.LOG_DIR)
        directory.mkdir(parents=True, exist_ok=True)
        root.addHandler(_file_handler(directory / "boardguru.log", level, FILE_FORMAT))
        root.addHandler(_file_handler(directory / "errors.log", logging.ERROR, ERROR_FORMAT))

        performance = _file_handler(directory / "performance.log", logging.INFO, FILE_FORMAT, backup_count=3)
        performance.addFilter(lambda record: hasattr(record, "metric_type"))
        root.addHandler(performance)

    if enable_performance_logging and not tracemalloc.is_tracing():
        tracemalloc.start()

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(f"Logging configured: level={level_name} files={'on' if enable_file_logging else 'off'}")


def get_logger(name: str) -> logging.Logger:
    """Named logger with a `perf` PerformanceLogger attached."""
    logger = logging.getLogger(name)
    if not hasattr(logger, "perf"):
        logger.perf = PerformanceLogger(logger)
    return logger


def log_operation_start(logger: logging.Logger, operation: str, **context):
    logger.info(f"{operation}: started", extra={"operation": operation, "phase": "start", **context})


def log_operation_end(logger: logging.Logger, operation: str, success: bool = True, **context):
    logger.log(
        logging.INFO if success else logging.ERROR,
        f"{operation}: {'completed' if success else 'failed'}",
        extra={"operation": operation, "phase": "end", "success": success, **context}
    )


def log_api_request(logger: logging.Logger, method: str, path: str, status_code: int, duration_ms: float):
    level = logging.WARNING if status_code >= 500 else logging.INFO
    logger.log(
        level,
        f"{method} {path} -> {status_code} ({duration_ms:.1f}ms)",
        extra={"method": method, "path": path, "status_code": status_code, "duration_ms": duration_ms}
    )
