"""Logging setup shared by the webhook and the CLI.

``setup_logging()`` runs once per entrypoint; every other module just
asks for ``logging.getLogger(__name__)``.

  LOG_LEVEL   root level name (default INFO)
  LOG_FORMAT  ``text`` for terminals, ``json`` for one object per line
"""

from __future__ import annotations

import json
import logging
import os
import sys

DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


class JsonFormatter(logging.Formatter):
    """Serialize each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging() -> None:
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    if os.getenv("LOG_FORMAT", "text").lower() == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, DATE_FORMAT)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler], force=True)

    # One httpx line per Bot API call would drown the interview logs.
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)
