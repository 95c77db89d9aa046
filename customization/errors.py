"""
Error Types - Typed failures raised by the customization engine.

Every failure is returned to the immediate caller as one of these
exceptions. Nothing is swallowed and no partially expanded output is
ever returned alongside an error.

Hierarchy:
    CustomizationError
    ├── ConfigError
    │   ├── MalformedConfigError
    │   └── TypeMismatchError
    ├── ExpansionError
    │   ├── UnknownKeyError
    │   ├── CycleDetectedError
    │   └── DepthExceededError
    ├── PromptError
    │   └── PromptNotFoundError
    └── CommandError
        ├── CommandNotFoundError
        └── SelectionOutOfRangeError
"""

from typing import List, Optional


class CustomizationError(Exception):
    """Base class for all customization engine errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(CustomizationError):
    """A configuration document could not be loaded or merged."""


class MalformedConfigError(ConfigError):
    """A document cannot be parsed into the expected shape.

    Attributes:
        source: Which document failed ('compiled' or 'user')
        location: Dotted path to the offending value, if known
    """

    def __init__(self, source: str, reason: str, location: Optional[str] = None):
        self.source = source
        self.reason = reason
        self.location = location
        where = f" at '{location}'" if location else ""
        super().__init__(f"Malformed {source} config{where}: {reason}")


class TypeMismatchError(ConfigError):
    """A key present in both documents has incompatible kinds."""

    def __init__(self, key: str, compiled_kind: str, user_kind: str):
        self.key = key
        self.compiled_kind = compiled_kind
        self.user_kind = user_kind
        super().__init__(
            f"User config overrides '{key}' with a {user_kind}, "
            f"but the compiled-in value is a {compiled_kind}"
        )


# =============================================================================
# Macro expansion
# =============================================================================


class ExpansionError(CustomizationError):
    """A template could not be fully expanded."""


class UnknownKeyError(ExpansionError):
    """A placeholder matches neither the context nor a template key."""

    def __init__(self, name: str, path: Optional[List[str]] = None):
        self.name = name
        self.path = list(path or [])
        via = f" (while expanding {' -> '.join(self.path)})" if self.path else ""
        super().__init__(f"Unknown placeholder %{name}%{via}")


class CycleDetectedError(ExpansionError):
    """Expanding a key transitively re-entered itself."""

    def __init__(self, path: List[str]):
        self.path = list(path)
        super().__init__(f"Cyclic placeholder reference: {' -> '.join(self.path)}")


class DepthExceededError(ExpansionError):
    """Placeholder nesting went deeper than the expander allows."""

    def __init__(self, max_depth: int, path: List[str]):
        self.max_depth = max_depth
        self.path = list(path)
        super().__init__(
            f"Placeholder nesting exceeds depth {max_depth}: {' -> '.join(self.path)}"
        )


class ExpansionTooLargeError(ExpansionError):
    """Expanded text grew past the expander's size ceiling."""

    def __init__(self, max_length: int, path: List[str]):
        self.max_length = max_length
        self.path = list(path)
        where = f" (while expanding {' -> '.join(self.path)})" if self.path else ""
        super().__init__(f"Expanded text exceeds {max_length} characters{where}")


# =============================================================================
# Prompts and commands
# =============================================================================


class PromptError(CustomizationError):
    """A system prompt could not be resolved."""


class PromptNotFoundError(PromptError):
    def __init__(self, prompt_id: str):
        self.prompt_id = prompt_id
        super().__init__(f"Unknown system prompt: {prompt_id}")


class CommandError(CustomizationError):
    """A toolbox command or code lens action could not be run."""


class CommandNotFoundError(CommandError):
    def __init__(self, command_id: str, kind: str = "command"):
        self.command_id = command_id
        self.kind = kind
        super().__init__(f"Unknown {kind}: {command_id}")


class SelectionOutOfRangeError(CommandError):
    """The selected code has too few or too many lines for the command.

    Attributes:
        min_lines: Smallest accepted selection
        max_lines: Largest accepted selection
        actual: Line count of the supplied selection
    """

    def __init__(self, command_id: str, min_lines: int, max_lines: int, actual: int):
        self.command_id = command_id
        self.min_lines = min_lines
        self.max_lines = max_lines
        self.actual = actual
        super().__init__(
            f"Command '{command_id}' needs a selection of {min_lines}..{max_lines} "
            f"lines, got {actual}"
        )
