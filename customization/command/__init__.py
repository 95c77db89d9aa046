"""
Command System - Toolbox commands and code lens actions.

Provides:
- CommandRouter: Run a command or code lens action into a message list
- ResolvedMessage: Role/content pair sent to the model backend
- ParsedCommand / RoutedCommand: Slash-command parsing and routing results
"""

from .router import (
    CommandRouter,
    ParsedCommand,
    ResolvedMessage,
    RoutedCommand,
    count_selection_lines,
)

__all__ = [
    "CommandRouter",
    "ParsedCommand",
    "ResolvedMessage",
    "RoutedCommand",
    "count_selection_lines",
]
