"""Configure application logging using the Python standard library.

Every component logs through an injected ``logging.Logger`` (or its module
logger).  ``configure_logging`` attaches the two sinks the store writes to:
the console and a rotating log file.  Records are formatted as one JSON
object per line with the timestamp, level, module and message, plus the
``customer`` and ``category`` context fields and any ``extra`` dict passed by
the caller.
"""

import json
import logging
import logging.handlers
import os
from datetime import datetime, UTC


class JsonFormatter(logging.Formatter):
    """Format log records as JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "module": record.module,
            "message": record.getMessage(),
        }
        for context_field in ("customer", "category"):
            if hasattr(record, context_field):
                log_record[context_field] = getattr(record, context_field)
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            log_record.update(extra)
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False, default=str)


def configure_logging(
    log_dir: str = "logs",
    level: int = logging.INFO,
    filename: str = "store.log",
    console: bool = True,
) -> logging.Logger:
    """Configure the root logger with console and rotating file sinks.

    Args:
        log_dir: Directory where log files are written.  Created if missing.
        level: Logging level for the root logger and both handlers.
        filename: Name of the log file inside ``log_dir``.
        console: Attach the stdout sink as well as the file sink.

    Returns:
        The configured root logger.
    """
    os.makedirs(log_dir, exist_ok=True)
    logger = logging.getLogger()
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    formatter = JsonFormatter()
    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(level)
        logger.addHandler(console_handler)
    file_handler = logging.handlers.RotatingFileHandler(
        filename=os.path.join(log_dir, filename),
        maxBytes=5 * 1024 * 1024,  # 5 MB per log file
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)
    logger.addHandler(file_handler)
    return logger
