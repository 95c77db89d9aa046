"""
Command Router - Turn toolbox commands and code lens actions into messages.

A command is a list of message templates. Running it:
1. Checks the selection size against `selection_needed` (before expansion)
2. Expands every message with the same context and config
3. Returns role/content pairs, all or nothing

Commands are triggered from the editor menu or typed in the chat:
    /bugs focus on the loop  →  command 'bugs', ARGS='focus on the loop'

A command with no messages (such as 'help') returns an empty list: the host
presents something itself instead of calling a model.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..config.entries import CodeLensEntry, CommandEntry, MessageRole, MessageTemplate
from ..config.store import MergedConfig
from ..errors import CommandNotFoundError, SelectionOutOfRangeError
from ..macro import MacroExpander


SELECTION_KEY = "CODE_SELECTION"
ARGS_KEY = "ARGS"

COMMAND_PATTERN = re.compile(r"^/([A-Za-z_][\w-]*)(?:\s+(.*))?$", re.DOTALL)


@dataclass(frozen=True)
class ResolvedMessage:
    """A message ready to be sent to the model backend."""
    role: MessageRole
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class ParsedCommand:
    """A slash command recognised in a chat message.

    Attributes:
        command_id: Command name without the slash
        args: Everything after the command name, stripped
    """
    command_id: str
    args: str


@dataclass(frozen=True)
class RoutedCommand:
    """Result of routing a chat message to a toolbox command."""
    command_id: str
    args: str
    messages: List[ResolvedMessage]


def count_selection_lines(ctx: Optional[Mapping[str, Any]]) -> int:
    """Line count of the selected code; 0 when nothing is selected."""
    if not ctx:
        return 0
    selection = ctx.get(SELECTION_KEY)
    if selection is None:
        return 0
    return len(str(selection).splitlines())


class CommandRouter:
    """Resolve toolbox commands and code lens actions.

    Example:
        router = CommandRouter()
        messages = router.run("bugs", {
            "CURRENT_FILE": "main.py",
            "CURSOR_LINE": 42,
            "CODE_SELECTION": "x = 1 / 0",
        }, config)
    """

    def __init__(self, expander: Optional[MacroExpander] = None):
        self.expander = expander or MacroExpander()

    def get(self, command_id: str, config: MergedConfig) -> CommandEntry:
        """Look up a toolbox command.

        Raises:
            CommandNotFoundError: If the id is not configured
        """
        entry = config.toolbox_commands.get(command_id)
        if entry is None:
            raise CommandNotFoundError(command_id)
        return entry

    def get_code_lens(self, lens_id: str, config: MergedConfig) -> CodeLensEntry:
        entry = config.code_lens.get(lens_id)
        if entry is None:
            raise CommandNotFoundError(lens_id, kind="code lens")
        return entry

    def run(
        self,
        command_id: str,
        ctx: Optional[Mapping[str, Any]],
        config: MergedConfig,
    ) -> List[ResolvedMessage]:
        """Run a toolbox command.

        Args:
            command_id: Command identifier (e.g. 'bugs')
            ctx: Per-call context; CODE_SELECTION is checked against the
                command's selection range
            config: Merged configuration

        Returns:
            Expanded messages in order; empty for commands without messages

        Raises:
            CommandNotFoundError: If the id is not configured
            SelectionOutOfRangeError: If the selection size is outside the range
            ExpansionError: If any message cannot be expanded
        """
        entry = self.get(command_id, config)
        self.check_selection(entry, ctx)
        return self._expand_messages(entry.messages, ctx, config)

    def run_code_lens(
        self,
        lens_id: str,
        ctx: Optional[Mapping[str, Any]],
        config: MergedConfig,
    ) -> List[ResolvedMessage]:
        """Run a code lens action. Same contract as run(), without a selection range."""
        entry = self.get_code_lens(lens_id, config)
        return self._expand_messages(entry.messages, ctx, config)

    def check_selection(self, entry: CommandEntry, ctx: Optional[Mapping[str, Any]]) -> None:
        """Raise SelectionOutOfRangeError if the selection does not fit the command."""
        constraint = entry.selection_constraint
        if constraint is None:
            return

        actual = count_selection_lines(ctx)
        if not constraint.accepts(actual):
            raise SelectionOutOfRangeError(
                entry.id, constraint.min_lines, constraint.max_lines, actual
            )

    def _expand_messages(
        self,
        templates: Sequence[MessageTemplate],
        ctx: Optional[Mapping[str, Any]],
        config: MergedConfig,
    ) -> List[ResolvedMessage]:
        # Build the whole list before returning anything
        return [
            ResolvedMessage(
                role=template.role,
                content=self.expander.expand(template.content, ctx, config),
            )
            for template in templates
        ]

    def parse(self, message: str) -> Optional[ParsedCommand]:
        """Recognise a '/command args' chat message.

        Returns:
            ParsedCommand, or None if the message is not a slash command
        """
        match = COMMAND_PATTERN.match(message.strip())
        if not match:
            return None
        return ParsedCommand(command_id=match.group(1), args=(match.group(2) or "").strip())

    def route(
        self,
        message: str,
        ctx: Optional[Mapping[str, Any]],
        config: MergedConfig,
    ) -> Optional[RoutedCommand]:
        """Run the toolbox command typed in a chat message.

        The text after the command name becomes %ARGS%.

        Returns:
            RoutedCommand, or None if the message is plain chat

        Raises:
            CommandNotFoundError: If the message names an unknown command
            SelectionOutOfRangeError, ExpansionError: As for run()
        """
        parsed = self.parse(message)
        if parsed is None:
            return None

        routed_ctx = dict(ctx or {})
        routed_ctx[ARGS_KEY] = parsed.args
        messages = self.run(parsed.command_id, routed_ctx, config)
        return RoutedCommand(command_id=parsed.command_id, args=parsed.args, messages=messages)

    def list_commands(self, config: MergedConfig) -> List[Tuple[str, str]]:
        """(command_id, description) pairs in configuration order."""
        return [(entry.id, entry.description) for entry in config.toolbox_commands.values()]

    def format_help(self, config: MergedConfig) -> str:
        """Help listing shown for commands without messages."""
        lines = ["Available commands:"]
        for command_id, description in self.list_commands(config):
            lines.append(f"  /{command_id:<12} {description}".rstrip())
        return "\n".join(lines)
