"""
Configuration Loader - Locate and parse the two customization documents.

Two documents are merged by the ConfigStore:
1. The compiled-in document shipped with this package (read-only)
2. An optional user document the end user edits

Settings precedence (low → high):
1. Built-in defaults
2. Environment variables (CUSTOMIZATION_*)
3. Runtime overrides passed to ConfigLoader

Watching the user file for changes is the host's job. It calls
`ConfigLoader.load_user()` and hands the result to `ConfigStore.reload()`.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..errors import MalformedConfigError


COMPILED_IN_PATH = Path(__file__).parent / "customization_compiled_in.yaml"

DEFAULT_MAX_EXPANSION_DEPTH = 16

# Characters of expanded text one expand() call may produce
DEFAULT_MAX_EXPANSION_LENGTH = 1_000_000


def parse_document(
    content: Union[str, bytes, None],
    source: str,
    allow_empty: bool = False,
) -> Dict[str, Any]:
    """Parse YAML text into a configuration document.

    Args:
        content: YAML text
        source: Document name used in error messages ('compiled' or 'user')
        allow_empty: Treat empty content as an empty document instead of
            an error (the user document may be blank)

    Returns:
        Parsed document

    Raises:
        MalformedConfigError: If the text is not YAML or not a mapping
    """
    try:
        data = yaml.safe_load(content) if content is not None else None
    except yaml.YAMLError as e:
        raise MalformedConfigError(source, f"invalid YAML: {e}") from e

    if data is None:
        if allow_empty:
            return {}
        raise MalformedConfigError(source, "document is empty")

    if not isinstance(data, dict):
        raise MalformedConfigError(
            source, f"top level must be a mapping, got {type(data).__name__}"
        )
    return data


@dataclass
class CustomizationSettings:
    """Where the documents live and how the engine behaves.

    Attributes:
        compiled_path: Compiled-in YAML document
        user_path: User YAML document (may not exist)
        max_expansion_depth: Nesting ceiling for %KEY% expansion
        max_expansion_length: Size ceiling, in characters, for one expansion
    """
    compiled_path: str = str(COMPILED_IN_PATH)
    user_path: str = str(Path.home() / ".config" / "agent-customization" / "customization.yaml")
    max_expansion_depth: int = DEFAULT_MAX_EXPANSION_DEPTH
    max_expansion_length: int = DEFAULT_MAX_EXPANSION_LENGTH

    def to_dict(self) -> Dict[str, Any]:
        return {
            "compiled_path": self.compiled_path,
            "user_path": self.user_path,
            "max_expansion_depth": self.max_expansion_depth,
            "max_expansion_length": self.max_expansion_length,
        }


class ConfigLoader:
    """Read the compiled-in and user documents from disk.

    Example:
        loader = ConfigLoader(user_path="/path/to/customization.yaml")
        compiled = loader.load_compiled()
        user = loader.load_user()  # None when the file does not exist
    """

    ENV_MAPPINGS = {
        "CUSTOMIZATION_COMPILED_CONFIG": "compiled_path",
        "CUSTOMIZATION_USER_CONFIG": "user_path",
        "CUSTOMIZATION_MAX_DEPTH": "max_expansion_depth",
        "CUSTOMIZATION_MAX_LENGTH": "max_expansion_length",
    }

    def __init__(
        self,
        compiled_path: Optional[str] = None,
        user_path: Optional[str] = None,
        max_expansion_depth: Optional[int] = None,
        max_expansion_length: Optional[int] = None,
    ):
        """Initialize the config loader.

        Args:
            compiled_path: Override for the compiled-in document location
            user_path: Override for the user document location
            max_expansion_depth: Override for the expansion depth ceiling
            max_expansion_length: Override for the expanded text size ceiling
        """
        self._overrides: Dict[str, Any] = {}
        if compiled_path is not None:
            self._overrides["compiled_path"] = str(compiled_path)
        if user_path is not None:
            self._overrides["user_path"] = str(user_path)
        if max_expansion_depth is not None:
            self._overrides["max_expansion_depth"] = max_expansion_depth
        if max_expansion_length is not None:
            self._overrides["max_expansion_length"] = max_expansion_length

        self.settings = self._build_settings()

    def _build_settings(self) -> CustomizationSettings:
        settings_dict = CustomizationSettings().to_dict()
        settings_dict.update(self._apply_env_vars())
        settings_dict.update(self._overrides)

        for key in ("max_expansion_depth", "max_expansion_length"):
            settings_dict[key] = self._positive_int(key, settings_dict[key])

        return CustomizationSettings(**settings_dict)

    @staticmethod
    def _positive_int(key: str, value: Any) -> int:
        label = key.replace("_", " ")
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise MalformedConfigError(
                "settings", f"{label} must be an integer, got {value!r}"
            ) from None
        if number < 1:
            raise MalformedConfigError("settings", f"{label} must be >= 1, got {number}")
        return number

    def _apply_env_vars(self) -> Dict[str, Any]:
        """Collect environment variable overrides.

        Examples:
            CUSTOMIZATION_USER_CONFIG -> settings.user_path
            CUSTOMIZATION_MAX_DEPTH -> settings.max_expansion_depth
        """
        result: Dict[str, Any] = {}
        for env_var, key in self.ENV_MAPPINGS.items():
            value = os.environ.get(env_var)
            if value:
                result[key] = value
        return result

    @property
    def compiled_path(self) -> Path:
        return Path(self.settings.compiled_path)

    @property
    def user_path(self) -> Path:
        return Path(self.settings.user_path).expanduser()

    def load_compiled(self) -> Dict[str, Any]:
        """Load the compiled-in document.

        Raises:
            MalformedConfigError: If the document is missing or invalid
        """
        try:
            content = self.compiled_path.read_text(encoding="utf-8")
        except OSError as e:
            raise MalformedConfigError(
                "compiled", f"cannot read {self.compiled_path}: {e}"
            ) from e
        return parse_document(content, "compiled")

    def load_user(self) -> Optional[Dict[str, Any]]:
        """Load the user document.

        Returns:
            Parsed document, or None if the file does not exist

        Raises:
            MalformedConfigError: If the file exists but cannot be read or parsed
        """
        path = self.user_path
        if not path.exists():
            return None

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise MalformedConfigError("user", f"cannot read {path}: {e}") from e
        return parse_document(content, "user", allow_empty=True)
