"""
Customization Engine - Namespace singleton bundling the store and resolvers.

The host loads the configuration once at startup, reloads it when its file
watcher sees the user document change, and otherwise only asks questions:

    Customization.load_default()
    prompt = Customization.system_prompt("agentic_tools", ctx)
    messages = Customization.run_command("bugs", ctx)
    params = Customization.subchat_parameters("locate")
    Customization.reload_from_file()

Every question is answered against the snapshot that was live when the call
started; a reload in between does not affect it.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from .command import CommandRouter, ResolvedMessage, RoutedCommand
from .config import ConfigLoader, ConfigStore, MergedConfig, PromptEntry, ToolParameterEntry
from .config.store import DocumentInput
from .errors import CustomizationError
from .logger import get_logger
from .macro import MacroExpander
from .prompt import PromptResolver, ResolvedPrompt
from .subchat import SubchatParameterResolver


class _CustomizationRegistry:
    """Global customization engine (singleton).

    Example:
        Customization.load(compiled_yaml, user_yaml)
        Customization.run_command("shorter", {"CODE_SELECTION": code})
    """

    _instance: Optional["_CustomizationRegistry"] = None

    def __new__(cls) -> "_CustomizationRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self) -> None:
        """Initialize the registry."""
        self._store = ConfigStore()
        self._loader: Optional[ConfigLoader] = None
        self._configure_resolvers(MacroExpander())

    def _configure_resolvers(self, expander: MacroExpander) -> None:
        self.expander = expander
        self.prompts = PromptResolver(expander)
        self.commands = CommandRouter(expander)
        self.subchat = SubchatParameterResolver()

    # =========================================================================
    # Loading
    # =========================================================================

    def load(self, compiled: DocumentInput, user: DocumentInput = None) -> MergedConfig:
        """Load explicit documents (YAML text or parsed mappings)."""
        return self._store.load(compiled, user)

    def load_default(self, loader: Optional[ConfigLoader] = None) -> MergedConfig:
        """Load the compiled-in document and the user file named by the settings.

        Args:
            loader: Loader to use (default: one built from the environment); its
                settings also set the expansion ceilings
        """
        self._loader = loader or ConfigLoader()
        settings = self._loader.settings
        self._configure_resolvers(
            MacroExpander(settings.max_expansion_depth, settings.max_expansion_length)
        )
        with get_logger().span("config", "read_documents", {
            "compiled_path": settings.compiled_path,
            "user_path": settings.user_path,
        }):
            compiled = self._loader.load_compiled()
            user = self._loader.load_user()
        return self._store.load(compiled, user)

    def reload(self, user: DocumentInput = None) -> MergedConfig:
        """Install a new user document; the previous snapshot stays live on error."""
        return self._store.reload(user)

    def reload_from_file(self) -> MergedConfig:
        """Re-read the user file named by the settings and reload."""
        loader = self._loader or ConfigLoader()
        with get_logger().span("config", "read_documents", {"user_path": loader.settings.user_path}):
            user = loader.load_user()
        return self._store.reload(user)

    @property
    def config(self) -> MergedConfig:
        return self._store.current

    @property
    def version(self) -> int:
        return self._store.version

    def is_loaded(self) -> bool:
        return self._store.is_loaded()

    # =========================================================================
    # Questions
    # =========================================================================
    # The resolvers are pure; rejected requests are logged here, at the edge.

    def system_prompt(self, prompt_id: str, ctx: Optional[Mapping[str, Any]] = None) -> ResolvedPrompt:
        try:
            return self.prompts.resolve(prompt_id, ctx, self._store.current)
        except CustomizationError as e:
            self._log_rejected("prompt", prompt_id, e)
            raise

    def list_prompts(self) -> List[PromptEntry]:
        return self.prompts.list_prompts(self._store.current)

    def run_command(self, command_id: str, ctx: Optional[Mapping[str, Any]] = None) -> List[ResolvedMessage]:
        try:
            return self.commands.run(command_id, ctx, self._store.current)
        except CustomizationError as e:
            self._log_rejected("command", command_id, e)
            raise

    def run_code_lens(self, lens_id: str, ctx: Optional[Mapping[str, Any]] = None) -> List[ResolvedMessage]:
        try:
            return self.commands.run_code_lens(lens_id, ctx, self._store.current)
        except CustomizationError as e:
            self._log_rejected("code_lens", lens_id, e)
            raise

    def route(self, message: str, ctx: Optional[Mapping[str, Any]] = None) -> Optional[RoutedCommand]:
        try:
            return self.commands.route(message, ctx, self._store.current)
        except CustomizationError as e:
            parsed = self.commands.parse(message)
            self._log_rejected("command", parsed.command_id if parsed else "", e)
            raise

    def _log_rejected(self, component: str, subject_id: str, error: CustomizationError) -> None:
        get_logger().warn(component, "rejected", {
            "id": subject_id,
            "error_type": type(error).__name__,
            "error": str(error),
        })

    def list_commands(self) -> List[Tuple[str, str]]:
        return self.commands.list_commands(self._store.current)

    def subchat_parameters(self, tool_name: str) -> ToolParameterEntry:
        return self.subchat.resolve(tool_name, self._store.current)

    def get_info(self) -> Dict[str, Any]:
        """Summary of the live snapshot for UI display."""
        config = self._store.current
        return {
            "version": self._store.version,
            "fingerprint": config.fingerprint(),
            "prompts": [
                {"id": p.id, "visibility": p.visibility.value, "description": p.description}
                for p in config.prompts.values()
            ],
            "commands": [
                {"id": command_id, "description": description}
                for command_id, description in self.list_commands()
            ],
            "code_lens": [
                {"id": lens.id, "label": lens.label, "auto_submit": lens.auto_submit}
                for lens in config.code_lens.values()
            ],
            "subchat_tools": self.subchat.list_tools(config),
        }

    def clear(self) -> None:
        """Drop everything. Used for testing."""
        self._initialize()


# Global singleton instance
Customization = _CustomizationRegistry()
