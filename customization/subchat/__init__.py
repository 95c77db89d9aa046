"""
Subchat System - Per-tool model routing parameters.
"""

from .parameters import SubchatParameterResolver

__all__ = ["SubchatParameterResolver"]
