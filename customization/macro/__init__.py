"""
Macro Language - %NAME% placeholder expansion.

Provides:
- MacroExpander: Bounded recursive expander with cycle detection
- expand: One-shot convenience wrapper
- find_placeholders: List the placeholder names in a template
"""

from .expander import (
    MAX_EXPANSION_DEPTH,
    MAX_EXPANSION_LENGTH,
    PLACEHOLDER_PATTERN,
    MacroExpander,
    expand,
    find_placeholders,
    normalize_context,
)

__all__ = [
    "MAX_EXPANSION_DEPTH",
    "MAX_EXPANSION_LENGTH",
    "PLACEHOLDER_PATTERN",
    "MacroExpander",
    "expand",
    "find_placeholders",
    "normalize_context",
]
