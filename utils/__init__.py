"""
Utility modules for the onboarding service.
"""

from .formatting import format_currency, format_percent, format_square_footage
from .config import Config
from .log import configure_logging

__all__ = ["format_currency", "format_percent", "format_square_footage", "Config", "configure_logging"]
