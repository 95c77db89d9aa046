"""
Configuration System - Load and merge the customization documents.

Provides:
- ConfigLoader: Locate and read the compiled-in and user YAML documents
- ConfigStore: Merge them into an immutable MergedConfig, reload atomically
- Entry types: PromptEntry, ToolParameterEntry, CommandEntry, CodeLensEntry

Merge precedence (low → high):
1. Compiled-in document shipped with the package
2. User document (whole-value shadowing, per-entry inside record tables)
"""

from .entries import (
    CONTAINER_KEYS,
    DEFAULT_SUBCHAT_PARAMETERS,
    CodeLensEntry,
    CommandEntry,
    MessageRole,
    MessageTemplate,
    PromptEntry,
    ReasoningEffort,
    SelectionConstraint,
    ToolParameterEntry,
    Visibility,
)
from .loader import COMPILED_IN_PATH, ConfigLoader, CustomizationSettings, parse_document
from .store import ConfigStore, MergedConfig, merge_documents

__all__ = [
    "CONTAINER_KEYS",
    "COMPILED_IN_PATH",
    "DEFAULT_SUBCHAT_PARAMETERS",
    "CodeLensEntry",
    "CommandEntry",
    "ConfigLoader",
    "ConfigStore",
    "CustomizationSettings",
    "MergedConfig",
    "MessageRole",
    "MessageTemplate",
    "PromptEntry",
    "ReasoningEffort",
    "SelectionConstraint",
    "ToolParameterEntry",
    "Visibility",
    "merge_documents",
    "parse_document",
]
