"""
Logging Setup Module.

Provides the application-wide logger. Callers log structured dictionaries,
e.g. ``logger.info({"message": "...", "pr_number": 42})``, which are rendered
as single-line JSON records in production and as plain text in development.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict


class JsonLogFormatter(logging.Formatter):
    """Render each record as one JSON object, merging dict messages."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


class LogManager:
    """
    Configures and owns the application logger.

    Attributes:
        logger (logging.Logger): Configured logger instance
    """

    def __init__(
        self,
        app_name: str,
        log_dir: str = "logs",
        development: bool = False,
        level: int = logging.INFO,
    ):
        """
        Initialize logging handlers.

        Args:
            app_name (str): Logger name, also used for the log file name
            log_dir (str): Directory for the rotating log file
            development (bool): Log plain text to the console only
            level (int): Logging level
        """
        self.logger = logging.getLogger(app_name)
        self.logger.setLevel(level)
        self.logger.propagate = False

        # Re-creating the manager must not duplicate handlers
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        console = logging.StreamHandler()
        if development:
            console.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
            )
            self.logger.addHandler(console)
            return

        console.setFormatter(JsonLogFormatter())
        self.logger.addHandler(console)

        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, f"{app_name}.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(JsonLogFormatter())
        self.logger.addHandler(file_handler)
