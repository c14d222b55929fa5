"""SVG canvas validation and sanitization."""

from .config import ValidatorLimits, load_limits
from .report import ElementStats, ValidationIssue, ValidationResult
from .validate import get_svg_stats, is_valid_svg_structure, sanitize_svg, validate_svg

__all__ = [
    "ElementStats",
    "ValidationIssue",
    "ValidationResult",
    "ValidatorLimits",
    "get_svg_stats",
    "is_valid_svg_structure",
    "load_limits",
    "sanitize_svg",
    "validate_svg",
]
