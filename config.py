"""Runtime configuration for the syllabus parser and its entry points.

The parser itself never looks at the environment: entry points call
``ParserConfig.from_env()`` (after ``load_dotenv()``) and hand the result in.
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
FALLBACK_GEMINI_MODELS = ("gemini-2.0-flash", "gemini-flash-latest")


@dataclass
class ParserConfig:
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_fallback_models: Tuple[str, ...] = field(default=FALLBACK_GEMINI_MODELS)
    enhancement_timeout: float = 10.0
    context_chars: int = 2000
    timezone: str = "America/New_York"
    default_start_hour: int = 9
    event_duration_minutes: int = 60

    @property
    def enhancement_enabled(self) -> bool:
        return bool(self.gemini_api_key)

    @classmethod
    def from_env(cls) -> "ParserConfig":
        return cls(
            gemini_api_key=os.environ.get("GEMINI_API_KEY") or None,
            gemini_model=os.environ.get("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            enhancement_timeout=float(os.environ.get("GEMINI_TIMEOUT", "10")),
            timezone=os.environ.get("SYLLABUS_TIMEZONE", "America/New_York"),
        )


def configure_logging(level: Optional[str] = None, stream=None) -> None:
    """Send log records to ``stream`` (stdout by default) with a single consistent format."""
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
    root_logger.addHandler(handler)
