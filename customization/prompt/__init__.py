"""
Prompt System - Expanded system prompts with visibility metadata.
"""

from .resolver import PromptResolver, ResolvedPrompt

__all__ = ["PromptResolver", "ResolvedPrompt"]
