"""
Subchat Parameters - Model routing parameters for tool subchats.

Some tools spin up a nested chat against a model backend (locate,
strategic_planning, ...). Each may have an entry in
`subchat_tool_parameters`; every other tool gets DEFAULT_SUBCHAT_PARAMETERS.
A missing entry is the common case, not an error.
"""

from typing import Dict, List

from ..config.entries import DEFAULT_SUBCHAT_PARAMETERS, ToolParameterEntry
from ..config.store import MergedConfig


class SubchatParameterResolver:
    """Look up subchat parameters by tool name.

    Example:
        params = SubchatParameterResolver().resolve("locate", config)
        params.n_ctx  # 200000
    """

    def __init__(self, default: ToolParameterEntry = DEFAULT_SUBCHAT_PARAMETERS):
        self.default = default

    def resolve(self, tool_name: str, config: MergedConfig) -> ToolParameterEntry:
        """Parameters for a tool.

        Args:
            tool_name: Tool spinning up the subchat
            config: Merged configuration

        Returns:
            The configured entry, or the default record attributed to tool_name
        """
        entry = config.subchat_parameters.get(tool_name)
        if entry is not None:
            return entry
        return self.default.for_tool(tool_name)

    def has_override(self, tool_name: str, config: MergedConfig) -> bool:
        return tool_name in config.subchat_parameters

    def list_tools(self, config: MergedConfig) -> List[str]:
        """Tools with an explicit entry."""
        return list(config.subchat_parameters.keys())

    def describe(self, config: MergedConfig) -> Dict[str, Dict]:
        """All explicit entries as plain dicts, for display."""
        return {name: entry.to_dict() for name, entry in config.subchat_parameters.items()}
