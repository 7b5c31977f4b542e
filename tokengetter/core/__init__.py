"""Process-wide plumbing: settings, logging and the run deadline."""

from tokengetter.core.config import Settings, get_settings
from tokengetter.core.deadline import Deadline
from tokengetter.core.logging import configure_structlog

__all__ = ["Settings", "get_settings", "Deadline", "configure_structlog"]
