"""
Prompt Resolver - Render a named system prompt.

Returns the fully expanded prompt text together with its visibility flag.
The flag is policy metadata for the host (for example "never show the raw
agentic prompt in the UI"); the resolver never filters on it.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from ..config.entries import PromptEntry, Visibility
from ..config.store import MergedConfig
from ..errors import PromptNotFoundError
from ..macro import MacroExpander


@dataclass(frozen=True)
class ResolvedPrompt:
    """An expanded system prompt.

    Attributes:
        prompt_id: Identifier the prompt was requested by
        text: Expanded prompt text
        visibility: Display policy hint for the host
    """
    prompt_id: str
    text: str
    visibility: Visibility

    @property
    def is_hidden(self) -> bool:
        return self.visibility == Visibility.NEVER


class PromptResolver:
    """Resolve system prompts against a merged configuration.

    Example:
        resolver = PromptResolver()
        prompt = resolver.resolve("agentic_tools", ctx, config)
        send(prompt.text)
    """

    def __init__(self, expander: Optional[MacroExpander] = None):
        self.expander = expander or MacroExpander()

    def get(self, prompt_id: str, config: MergedConfig) -> PromptEntry:
        """Look up a prompt entry.

        Raises:
            PromptNotFoundError: If the id is not configured
        """
        entry = config.prompts.get(prompt_id)
        if entry is None:
            raise PromptNotFoundError(prompt_id)
        return entry

    def resolve(
        self,
        prompt_id: str,
        ctx: Optional[Mapping[str, Any]],
        config: MergedConfig,
    ) -> ResolvedPrompt:
        """Expand a system prompt.

        Args:
            prompt_id: Prompt identifier (e.g. 'agentic_tools')
            ctx: Per-call context values
            config: Merged configuration

        Returns:
            ResolvedPrompt with text and visibility

        Raises:
            PromptNotFoundError: If the id is not configured
            ExpansionError: If the template cannot be expanded
        """
        entry = self.get(prompt_id, config)

        text = self.expander.expand(entry.template, ctx, config)
        return ResolvedPrompt(prompt_id=prompt_id, text=text, visibility=entry.visibility)

    def list_prompts(self, config: MergedConfig) -> List[PromptEntry]:
        """All configured prompts in configuration order, hidden ones included."""
        return list(config.prompts.values())
