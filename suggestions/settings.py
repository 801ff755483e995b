"""
Suggestion Engine Settings

Environment-driven configuration. Values are read once at import time,
after loading a local .env file if present.
"""

import os
import logging
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./suggestions.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SUGGESTION_SURFACE_LIMIT = int(os.getenv("SUGGESTION_SURFACE_LIMIT", "3"))


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
