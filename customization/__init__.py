"""
Agent Customization - Prompt and command template engine for a coding agent.

This package merges the compiled-in customization document with the user's
override document and answers three kinds of questions against the result:
- the expanded text of a system prompt (PromptResolver)
- the messages a toolbox command or code lens action produces (CommandRouter)
- the model parameters for a tool's subchat (SubchatParameterResolver)

All three are built on the %NAME% macro language (MacroExpander).
"""

from .command import CommandRouter, ResolvedMessage
from .config import (
    ConfigLoader,
    ConfigStore,
    MergedConfig,
    ToolParameterEntry,
    Visibility,
    merge_documents,
)
from .engine import Customization
from .errors import (
    CommandError,
    CommandNotFoundError,
    ConfigError,
    CustomizationError,
    CycleDetectedError,
    DepthExceededError,
    ExpansionError,
    ExpansionTooLargeError,
    MalformedConfigError,
    PromptError,
    PromptNotFoundError,
    SelectionOutOfRangeError,
    TypeMismatchError,
    UnknownKeyError,
)
from .macro import MacroExpander, expand
from .prompt import PromptResolver, ResolvedPrompt
from .subchat import SubchatParameterResolver

__version__ = "0.1.0"
__all__ = [
    "CommandError",
    "CommandNotFoundError",
    "CommandRouter",
    "ConfigError",
    "ConfigLoader",
    "ConfigStore",
    "Customization",
    "CustomizationError",
    "CycleDetectedError",
    "DepthExceededError",
    "ExpansionError",
    "ExpansionTooLargeError",
    "MacroExpander",
    "MalformedConfigError",
    "MergedConfig",
    "PromptError",
    "PromptNotFoundError",
    "PromptResolver",
    "ResolvedMessage",
    "ResolvedPrompt",
    "SelectionOutOfRangeError",
    "SubchatParameterResolver",
    "ToolParameterEntry",
    "TypeMismatchError",
    "UnknownKeyError",
    "Visibility",
    "expand",
    "merge_documents",
]
