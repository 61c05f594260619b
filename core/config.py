# core/config.py
# Settings come from the environment; defaults point inside the project.

from __future__ import annotations

import logging
import os
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]

DATA_FILE = Path(os.environ.get("QUOTE_DATA_FILE", ROOT_DIR / "data" / "catalog.json"))
HISTORY_DIR = Path(os.environ.get("QUOTE_HISTORY_DIR", ROOT_DIR / "data" / "history"))

LOG_LEVEL = os.environ.get("QUOTE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

HOST = os.environ.get("QUOTE_HOST", "127.0.0.1")
PORT = int(os.environ.get("QUOTE_PORT", "8000"))
RELOAD = os.environ.get("QUOTE_RELOAD", "0").strip().lower() in ("1", "true", "yes")

# comma separated; "*" while the UI domain is not fixed
CORS_ORIGINS = [o.strip() for o in os.environ.get("QUOTE_CORS_ORIGINS", "*").split(",") if o.strip()]


def configure_logging(level: str | None = None) -> None:
    """Root logger setup for the CLI and the web server."""
    logging.basicConfig(
        level=(level or LOG_LEVEL),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
