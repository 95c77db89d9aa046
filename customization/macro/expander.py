"""
Macro Expander - Resolve %NAME% placeholders in template text.

Resolution order for each placeholder, scanning left to right:
1. The per-call context (current file, selection, arguments, ...).
   Context values are inserted verbatim and never scanned again, so code
   the user selected cannot act as template syntax.
2. A top-level template key of the merged config, expanded recursively.

Expansion of config keys is bounded: re-entering a key on the active chain
raises CycleDetectedError, nesting deeper than `max_depth` raises
DepthExceededError (or CycleDetectedError when the deeper graph loops), and
output longer than `max_length` characters raises ExpansionTooLargeError.
Each config key is expanded once per call and nesting level, so a key
referenced many times does not multiply the work.
Text outside placeholders is preserved byte for byte.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config.loader import DEFAULT_MAX_EXPANSION_DEPTH, DEFAULT_MAX_EXPANSION_LENGTH
from ..config.store import MergedConfig
from ..errors import (
    CycleDetectedError,
    DepthExceededError,
    ExpansionTooLargeError,
    UnknownKeyError,
)


PLACEHOLDER_PATTERN = re.compile(r"%([A-Za-z_][A-Za-z0-9_]*)%")

MAX_EXPANSION_DEPTH = DEFAULT_MAX_EXPANSION_DEPTH

MAX_EXPANSION_LENGTH = DEFAULT_MAX_EXPANSION_LENGTH


def normalize_context(ctx: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Copy a caller context into a name -> string mapping.

    Cursor lines and similar values arrive as ints; they are inserted with str().
    """
    if not ctx:
        return {}
    return {str(name): "" if value is None else str(value) for name, value in ctx.items()}


def find_placeholders(template: str) -> List[str]:
    """Placeholder names in a template, in order of appearance."""
    return PLACEHOLDER_PATTERN.findall(template)


class MacroExpander:
    """Bounded recursive expander for %NAME% templates.

    Example:
        expander = MacroExpander()
        expander.expand("Hi %NAME%, file %CURRENT_FILE%",
                        {"NAME": "Refact", "CURRENT_FILE": "a.rs:10"}, config)
        # 'Hi Refact, file a.rs:10'
    """

    def __init__(
        self,
        max_depth: int = MAX_EXPANSION_DEPTH,
        max_length: int = MAX_EXPANSION_LENGTH,
    ):
        """Initialize the expander.

        Args:
            max_depth: Longest chain of nested config keys allowed
            max_length: Most characters one expansion may produce
        """
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        if max_length < 1:
            raise ValueError(f"max_length must be >= 1, got {max_length}")
        self.max_depth = max_depth
        self.max_length = max_length

    def expand(
        self,
        template: str,
        ctx: Optional[Mapping[str, Any]] = None,
        config: Optional[MergedConfig] = None,
    ) -> str:
        """Expand every placeholder in a template.

        Args:
            template: Text containing %NAME% placeholders
            ctx: Per-call context values (terminal, never re-expanded)
            config: Merged configuration providing template keys

        Returns:
            Fully expanded text

        Raises:
            UnknownKeyError: A placeholder resolves to nothing
            CycleDetectedError: A config key transitively references itself
            DepthExceededError: Nesting exceeds max_depth
            ExpansionTooLargeError: The text grows past max_length
        """
        context = normalize_context(ctx)
        templates = config.templates if config is not None else {}
        return self._expand(template, context, templates, [], {})

    def _expand(
        self,
        template: str,
        context: Mapping[str, str],
        templates: Mapping[str, str],
        chain: List[str],
        expanded: Dict[Tuple[str, int], str],
    ) -> str:
        parts = []
        size = 0
        position = 0
        for match in PLACEHOLDER_PATTERN.finditer(template):
            name = match.group(1)
            literal = template[position:match.start()]
            value = self._resolve(name, context, templates, chain, expanded)
            size += len(literal) + len(value)
            if size > self.max_length:
                raise ExpansionTooLargeError(self.max_length, chain + [name])
            parts.append(literal)
            parts.append(value)
            position = match.end()

        tail = template[position:]
        if size + len(tail) > self.max_length:
            raise ExpansionTooLargeError(self.max_length, chain)
        parts.append(tail)
        return "".join(parts)

    def _resolve(
        self,
        name: str,
        context: Mapping[str, str],
        templates: Mapping[str, str],
        chain: List[str],
        expanded: Dict[Tuple[str, int], str],
    ) -> str:
        if name in context:
            return context[name]

        if name not in templates:
            raise UnknownKeyError(name, chain)

        if name in chain:
            raise CycleDetectedError(chain[chain.index(name):] + [name])

        if len(chain) >= self.max_depth:
            cycle = self.find_cycle(name, context, templates)
            if cycle is not None:
                raise CycleDetectedError(cycle)
            raise DepthExceededError(self.max_depth, chain + [name])

        # A key that expanded cleanly at this nesting level expands the same way again
        memo_key = (name, len(chain))
        if memo_key in expanded:
            return expanded[memo_key]

        chain.append(name)
        try:
            value = self._expand(templates[name], context, templates, chain, expanded)
        finally:
            chain.pop()

        expanded[memo_key] = value
        return value

    def find_cycle(
        self,
        start: str,
        context: Mapping[str, str],
        templates: Mapping[str, str],
    ) -> Optional[List[str]]:
        """Look for a reference cycle reachable from a template key.

        Walks the key reference graph iteratively, so it terminates on any
        configuration regardless of max_depth.

        Returns:
            The cycle as a key path ending with the repeated key, or None
        """
        visiting = {start}
        done = set()
        path = [start]
        stack = [iter(self._references(start, context, templates))]

        while stack:
            for child in stack[-1]:
                if child in visiting:
                    return path[path.index(child):] + [child]
                if child not in done:
                    visiting.add(child)
                    path.append(child)
                    stack.append(iter(self._references(child, context, templates)))
                    break
            else:
                node = path.pop()
                visiting.discard(node)
                done.add(node)
                stack.pop()

        return None

    def _references(
        self,
        name: str,
        context: Mapping[str, str],
        templates: Mapping[str, str],
    ) -> List[str]:
        return [
            ref for ref in find_placeholders(templates[name])
            if ref not in context and ref in templates
        ]


def expand(
    template: str,
    ctx: Optional[Mapping[str, Any]] = None,
    config: Optional[MergedConfig] = None,
    max_depth: int = MAX_EXPANSION_DEPTH,
    max_length: int = MAX_EXPANSION_LENGTH,
) -> str:
    """Convenience function: expand a template with a fresh expander."""
    return MacroExpander(max_depth=max_depth, max_length=max_length).expand(template, ctx, config)
