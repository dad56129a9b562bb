"""CLI helpers for PODHARNESS.

Message emitters that write to stderr with emoji to ASCII fallbacks, the
``NAME=LEVEL`` logger-level option parser and the ``module:attribute`` test
plan loader.
"""

from .log_level_parser import parse_log_level
from .messages import error, success, warn
from .targets import load_plan

__all__ = ["error", "load_plan", "parse_log_level", "success", "warn"]
