"""
Configuration Entries - Typed records derived from the merged document.

The merged YAML document holds four tables of structured records:

```yaml
system_prompts:
  agentic_tools:
    text: "%PROMPT_AGENTIC_TOOLS%"
    show: never

subchat_tool_parameters:
  locate:
    subchat_model_type: "thinking"
    subchat_n_ctx: 200000

toolbox_commands:
  bugs:
    selection_needed: [1, 50]
    description: "Find and fix bugs"
    messages:
    - role: "user"
      content: "..."

code_lens:
  explain:
    label: Explain
    auto_submit: true
    messages: [...]
```

Each record is parsed into a frozen dataclass. Shape errors raise
MalformedConfigError naming the document and the offending location.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from ..errors import MalformedConfigError


# Top-level keys whose values are tables of records. User entries in these
# tables shadow compiled entries one record at a time.
SYSTEM_PROMPTS = "system_prompts"
SUBCHAT_TOOL_PARAMETERS = "subchat_tool_parameters"
TOOLBOX_COMMANDS = "toolbox_commands"
CODE_LENS = "code_lens"

CONTAINER_KEYS = (SYSTEM_PROMPTS, SUBCHAT_TOOL_PARAMETERS, TOOLBOX_COMMANDS, CODE_LENS)


class Visibility(Enum):
    """Whether a host should show the raw system prompt to the user.

    This is metadata only. Nothing in the engine enforces it.
    """
    ALWAYS = "always"
    NEVER = "never"
    ON_REQUEST = "on_request"


class ReasoningEffort(Enum):
    """Reasoning effort requested from a subchat model."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MessageRole(Enum):
    """Role of a message produced by a command."""
    USER = "user"
    CD_INSTRUCTION = "cd_instruction"
    ASSISTANT = "assistant"


def _require_mapping(value: Any, source: str, location: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedConfigError(
            source, f"expected a mapping, got {type(value).__name__}", location
        )
    return value


def _require_str(value: Any, source: str, location: str) -> str:
    if not isinstance(value, str):
        raise MalformedConfigError(
            source, f"expected a string, got {type(value).__name__}", location
        )
    return value


def _require_bool(value: Any, source: str, location: str) -> bool:
    if not isinstance(value, bool):
        raise MalformedConfigError(
            source, f"expected true/false, got {value!r}", location
        )
    return value


def _require_positive_int(value: Any, source: str, location: str) -> int:
    # bool is an int subclass; YAML "yes" must not pass as 1
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise MalformedConfigError(
            source, f"expected a positive integer, got {value!r}", location
        )
    return value


def _parse_enum(enum_cls, value: Any, source: str, location: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise MalformedConfigError(
            source, f"expected one of [{allowed}], got {value!r}", location
        ) from None


# =============================================================================
# Messages
# =============================================================================


@dataclass(frozen=True)
class MessageTemplate:
    """One message of a command, before placeholder expansion.

    Attributes:
        role: Who the message is attributed to
        content: Template text containing %NAME% placeholders
    """
    role: MessageRole
    content: str

    @classmethod
    def from_dict(cls, data: Any, source: str, location: str) -> "MessageTemplate":
        data = _require_mapping(data, source, location)
        if "role" not in data or "content" not in data:
            raise MalformedConfigError(
                source, "message needs both 'role' and 'content'", location
            )
        return cls(
            role=_parse_enum(MessageRole, data["role"], source, f"{location}.role"),
            content=_require_str(data["content"], source, f"{location}.content"),
        )


def _parse_messages(data: Mapping[str, Any], source: str, location: str) -> Tuple[MessageTemplate, ...]:
    raw = data.get("messages", [])
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise MalformedConfigError(
            source, f"expected a list of messages, got {type(raw).__name__}", f"{location}.messages"
        )
    return tuple(
        MessageTemplate.from_dict(item, source, f"{location}.messages[{index}]")
        for index, item in enumerate(raw)
    )


# =============================================================================
# System prompts
# =============================================================================


@dataclass(frozen=True)
class PromptEntry:
    """A named system prompt.

    Attributes:
        id: Prompt identifier (e.g. 'agentic_tools')
        template: Template text, usually a single reference such as
            '%PROMPT_AGENTIC_TOOLS%'
        visibility: Whether hosts may display the raw prompt
        description: Optional human-readable description
    """
    id: str
    template: str
    visibility: Visibility = Visibility.ALWAYS
    description: str = ""

    @classmethod
    def from_dict(cls, prompt_id: str, data: Any, source: str) -> "PromptEntry":
        location = f"{SYSTEM_PROMPTS}.{prompt_id}"
        data = _require_mapping(data, source, location)
        if "text" not in data:
            raise MalformedConfigError(source, "system prompt needs 'text'", location)

        return cls(
            id=prompt_id,
            template=_require_str(data["text"], source, f"{location}.text"),
            visibility=_parse_enum(
                Visibility, data.get("show", "always"), source, f"{location}.show"
            ),
            description=_require_str(
                data.get("description", ""), source, f"{location}.description"
            ),
        )


# =============================================================================
# Subchat tool parameters
# =============================================================================


@dataclass(frozen=True)
class ToolParameterEntry:
    """Model routing parameters for a tool's nested subchat.

    Attributes:
        tool_name: Tool the parameters apply to
        model_type: Model family to route to ('thinking', 'light', ...)
        tokens_for_rag: Token budget for retrieved context
        n_ctx: Context window size
        max_new_tokens: Maximum output tokens
        reasoning_effort: Requested reasoning effort
    """
    tool_name: str
    model_type: str
    tokens_for_rag: int
    n_ctx: int
    max_new_tokens: int
    reasoning_effort: ReasoningEffort

    @classmethod
    def from_dict(cls, tool_name: str, data: Any, source: str) -> "ToolParameterEntry":
        """Parse a tool entry. Fields missing from the entry take the default
        record's value.
        """
        location = f"{SUBCHAT_TOOL_PARAMETERS}.{tool_name}"
        data = _require_mapping(data, source, location)
        defaults = DEFAULT_SUBCHAT_PARAMETERS

        entry = cls(
            tool_name=tool_name,
            model_type=_require_str(
                data.get("subchat_model_type", defaults.model_type),
                source, f"{location}.subchat_model_type",
            ),
            tokens_for_rag=_require_positive_int(
                data.get("subchat_tokens_for_rag", defaults.tokens_for_rag),
                source, f"{location}.subchat_tokens_for_rag",
            ),
            n_ctx=_require_positive_int(
                data.get("subchat_n_ctx", defaults.n_ctx),
                source, f"{location}.subchat_n_ctx",
            ),
            max_new_tokens=_require_positive_int(
                data.get("subchat_max_new_tokens", defaults.max_new_tokens),
                source, f"{location}.subchat_max_new_tokens",
            ),
            reasoning_effort=_parse_enum(
                ReasoningEffort,
                data.get("subchat_reasoning_effort", defaults.reasoning_effort.value),
                source, f"{location}.subchat_reasoning_effort",
            ),
        )

        if entry.max_new_tokens >= entry.n_ctx:
            raise MalformedConfigError(
                source,
                f"subchat_max_new_tokens ({entry.max_new_tokens}) must be smaller "
                f"than subchat_n_ctx ({entry.n_ctx})",
                location,
            )
        return entry

    def for_tool(self, tool_name: str) -> "ToolParameterEntry":
        """Copy of this record attributed to another tool."""
        return replace(self, tool_name=tool_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool_name": self.tool_name,
            "subchat_model_type": self.model_type,
            "subchat_tokens_for_rag": self.tokens_for_rag,
            "subchat_n_ctx": self.n_ctx,
            "subchat_max_new_tokens": self.max_new_tokens,
            "subchat_reasoning_effort": self.reasoning_effort.value,
        }


# Used for every tool without an explicit entry: a small budget, a
# non-thinking model and low effort.
DEFAULT_SUBCHAT_PARAMETERS = ToolParameterEntry(
    tool_name="",
    model_type="light",
    tokens_for_rag=8000,
    n_ctx=16000,
    max_new_tokens=2048,
    reasoning_effort=ReasoningEffort.LOW,
)


# =============================================================================
# Toolbox commands and code lens actions
# =============================================================================


@dataclass(frozen=True)
class SelectionConstraint:
    """Accepted line-count range for the selected code, inclusive."""
    min_lines: int
    max_lines: int

    def accepts(self, line_count: int) -> bool:
        return self.min_lines <= line_count <= self.max_lines

    @classmethod
    def from_value(cls, value: Any, source: str, location: str) -> "SelectionConstraint":
        if (
            not isinstance(value, list)
            or len(value) != 2
            or not all(isinstance(v, int) and not isinstance(v, bool) for v in value)
        ):
            raise MalformedConfigError(
                source, f"expected [min_lines, max_lines], got {value!r}", location
            )
        min_lines, max_lines = value
        if min_lines < 0 or min_lines > max_lines:
            raise MalformedConfigError(
                source, f"invalid line range [{min_lines}, {max_lines}]", location
            )
        return cls(min_lines=min_lines, max_lines=max_lines)


@dataclass(frozen=True)
class CommandEntry:
    """A toolbox command (the lamp menu / slash command in the editor).

    An empty message list is valid: it marks a command the host presents
    itself (for example a help listing) instead of sending to a model.
    """
    id: str
    description: str = ""
    selection_constraint: Optional[SelectionConstraint] = None
    messages: Tuple[MessageTemplate, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, command_id: str, data: Any, source: str) -> "CommandEntry":
        location = f"{TOOLBOX_COMMANDS}.{command_id}"
        data = _require_mapping(data, source, location)

        constraint = None
        if data.get("selection_needed") is not None:
            constraint = SelectionConstraint.from_value(
                data["selection_needed"], source, f"{location}.selection_needed"
            )

        return cls(
            id=command_id,
            description=_require_str(
                data.get("description", ""), source, f"{location}.description"
            ),
            selection_constraint=constraint,
            messages=_parse_messages(data, source, location),
        )


@dataclass(frozen=True)
class CodeLensEntry:
    """An action shown inline above code in the editor.

    Attributes:
        id: Action identifier
        label: Text shown in the editor
        auto_submit: Send the messages without letting the user edit them
        new_tab: Open the chat in a new tab
        messages: Message templates; empty means "just open the chat"
    """
    id: str
    label: str
    auto_submit: bool = False
    new_tab: bool = False
    messages: Tuple[MessageTemplate, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, lens_id: str, data: Any, source: str) -> "CodeLensEntry":
        location = f"{CODE_LENS}.{lens_id}"
        data = _require_mapping(data, source, location)

        return cls(
            id=lens_id,
            label=_require_str(data.get("label", lens_id), source, f"{location}.label"),
            auto_submit=_require_bool(
                data.get("auto_submit", False), source, f"{location}.auto_submit"
            ),
            new_tab=_require_bool(data.get("new_tab", False), source, f"{location}.new_tab"),
            messages=_parse_messages(data, source, location),
        )


# Container key -> record parser
ENTRY_PARSERS = {
    SYSTEM_PROMPTS: PromptEntry.from_dict,
    SUBCHAT_TOOL_PARAMETERS: ToolParameterEntry.from_dict,
    TOOLBOX_COMMANDS: CommandEntry.from_dict,
    CODE_LENS: CodeLensEntry.from_dict,
}
