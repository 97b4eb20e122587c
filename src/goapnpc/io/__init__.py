"""Input/output helpers for goapnpc."""

from .logging import StructuredLogger, quiet_logger
from .config import load_config

__all__ = ["StructuredLogger", "load_config", "quiet_logger"]
