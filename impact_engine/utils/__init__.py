"""
Utility modules for the policy impact engine.
"""

from .logging_utils import setup_logger, get_logger
from .data_validation import range_text, require_in_range, require_seed, validate_baseline

__all__ = [
    "setup_logger",
    "get_logger",
    "range_text",
    "require_in_range",
    "require_seed",
    "validate_baseline",
]
