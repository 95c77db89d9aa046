"""
Config Store - Merge the compiled-in and user documents into one snapshot.

Merge rule (per top-level key):
1. Key only in compiled → kept
2. Key only in user → added after the compiled keys
3. Key in both → the user value replaces the compiled value entirely

The record tables (system_prompts, subchat_tool_parameters,
toolbox_commands, code_lens) are merged one level down: a user record
replaces the compiled record with the same id, other compiled records stay.
Fields inside one record are never merged.

The result is an immutable MergedConfig. Reloading builds a new snapshot
and swaps the reference, so readers always see a whole snapshot.
"""

import copy
import hashlib
import json
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from ..errors import ConfigError, MalformedConfigError, TypeMismatchError
from ..logger import get_logger
from .entries import (
    CODE_LENS,
    CONTAINER_KEYS,
    ENTRY_PARSERS,
    SUBCHAT_TOOL_PARAMETERS,
    SYSTEM_PROMPTS,
    TOOLBOX_COMMANDS,
    CodeLensEntry,
    CommandEntry,
    PromptEntry,
    ToolParameterEntry,
)
from .loader import parse_document


DocumentInput = Union[str, bytes, Mapping[str, Any], None]


def _freeze(value: Any) -> Any:
    """Recursively convert a parsed document into read-only containers."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


def _kind(value: Any) -> str:
    if isinstance(value, str):
        return "template string"
    if isinstance(value, Mapping):
        return "mapping"
    if value is None:
        return "null"
    return type(value).__name__


@dataclass(frozen=True)
class MergedConfig:
    """Read-only result of merging the compiled-in and user documents.

    Attributes:
        templates: Top-level string keys, usable as %KEY% placeholders
        prompts: System prompts by id
        subchat_parameters: Subchat tool parameters by tool name
        toolbox_commands: Toolbox commands by id
        code_lens: Code lens actions by id
        document: The merged document itself
    """
    templates: Mapping[str, str]
    prompts: Mapping[str, PromptEntry]
    subchat_parameters: Mapping[str, ToolParameterEntry]
    toolbox_commands: Mapping[str, CommandEntry]
    code_lens: Mapping[str, CodeLensEntry]
    document: Mapping[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Mutable deep copy of the merged document."""
        return _thaw(self.document)

    def canonical_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False)

    def fingerprint(self) -> str:
        """SHA-256 of the canonical JSON form of the merged document."""
        return hashlib.sha256(self.canonical_json().encode("utf-8")).hexdigest()


def _coerce_document(document: DocumentInput, source: str) -> Dict[str, Any]:
    if isinstance(document, Mapping):
        parsed = copy.deepcopy(dict(document))
    elif document is None or isinstance(document, (str, bytes)):
        parsed = parse_document(document, source, allow_empty=(source == "user"))
    else:
        raise MalformedConfigError(
            source, f"top level must be a mapping, got {type(document).__name__}"
        )
    _reject_recursion(parsed, source)
    return parsed


def _reject_recursion(
    value: Any,
    source: str,
    location: str = "",
    active: Optional[set] = None,
) -> None:
    """Raise MalformedConfigError if a container holds itself.

    YAML anchors can build such documents (`FOO: &x {b: *x}`). Containers
    shared by several aliases without looping back are fine.
    """
    if not isinstance(value, (Mapping, list)):
        return
    if active is None:
        active = set()
    if id(value) in active:
        raise MalformedConfigError(source, "recursive alias", location or None)

    active.add(id(value))
    items = value.items() if isinstance(value, Mapping) else enumerate(value)
    for key, child in items:
        _reject_recursion(child, source, f"{location}.{key}" if location else str(key), active)
    active.discard(id(value))


def _check_kinds(compiled: Mapping[str, Any], user: Mapping[str, Any]) -> None:
    """Reject user keys whose kind differs from the compiled value."""
    for key, user_value in user.items():
        if key not in compiled:
            continue
        compiled_value = compiled[key]
        if _kind(compiled_value) != _kind(user_value):
            raise TypeMismatchError(key, _kind(compiled_value), _kind(user_value))

        if key in CONTAINER_KEYS:
            for entry_id, user_entry in user_value.items():
                if entry_id in compiled_value:
                    compiled_entry = compiled_value[entry_id]
                    if _kind(compiled_entry) != _kind(user_entry):
                        raise TypeMismatchError(
                            f"{key}.{entry_id}", _kind(compiled_entry), _kind(user_entry)
                        )


def _parse_entries(document: Mapping[str, Any], source: str) -> Dict[str, Dict[str, Any]]:
    """Validate the shape of one document and parse its record tables."""
    tables: Dict[str, Dict[str, Any]] = {key: {} for key in CONTAINER_KEYS}

    for key, value in document.items():
        if not isinstance(key, str):
            raise MalformedConfigError(source, f"keys must be strings, got {key!r}")

        if key in CONTAINER_KEYS:
            if not isinstance(value, Mapping):
                raise MalformedConfigError(
                    source, f"expected a mapping of entries, got {_kind(value)}", key
                )
            parser = ENTRY_PARSERS[key]
            for entry_id, entry_data in value.items():
                if not isinstance(entry_id, str):
                    raise MalformedConfigError(
                        source, f"entry ids must be strings, got {entry_id!r}", key
                    )
                tables[key][entry_id] = parser(entry_id, entry_data, source)
        elif not isinstance(value, (str, Mapping)):
            raise MalformedConfigError(
                source, f"expected a template string or a mapping, got {_kind(value)}", key
            )

    return tables


def _merge_documents(compiled: Mapping[str, Any], user: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for key, value in compiled.items():
        if key in user and key in CONTAINER_KEYS:
            table = dict(value)
            table.update(user[key])
            merged[key] = table
        elif key in user:
            merged[key] = user[key]
        else:
            merged[key] = value

    for key, value in user.items():
        if key not in merged:
            merged[key] = value
    return merged


def merge_documents(compiled: DocumentInput, user: DocumentInput = None) -> MergedConfig:
    """Build a MergedConfig from a compiled-in and an optional user document.

    Args:
        compiled: Compiled-in document (YAML text or parsed mapping)
        user: User document (YAML text, parsed mapping, or None)

    Returns:
        The merged, read-only configuration

    Raises:
        MalformedConfigError: If either document has the wrong shape
        TypeMismatchError: If a user key changes the kind of a compiled value
    """
    if compiled is None:
        raise MalformedConfigError("compiled", "document is missing")

    compiled_doc = _coerce_document(compiled, "compiled")
    user_doc = _coerce_document(user, "user")

    _check_kinds(compiled_doc, user_doc)

    compiled_tables = _parse_entries(compiled_doc, "compiled")
    user_tables = _parse_entries(user_doc, "user")

    tables = {}
    for key in CONTAINER_KEYS:
        table = dict(compiled_tables[key])
        table.update(user_tables[key])
        tables[key] = MappingProxyType(table)

    merged = _merge_documents(compiled_doc, user_doc)
    templates = {k: v for k, v in merged.items() if isinstance(v, str)}

    return MergedConfig(
        templates=MappingProxyType(templates),
        prompts=tables[SYSTEM_PROMPTS],
        subchat_parameters=tables[SUBCHAT_TOOL_PARAMETERS],
        toolbox_commands=tables[TOOLBOX_COMMANDS],
        code_lens=tables[CODE_LENS],
        document=_freeze(merged),
    )


class ConfigStore:
    """Holds the live MergedConfig and swaps it atomically on reload.

    Example:
        store = ConfigStore()
        store.load(compiled_doc, user_doc)
        config = store.current          # hand this snapshot to resolvers
        store.reload(new_user_doc)      # readers of `config` are unaffected
    """

    def __init__(self):
        self._reload_lock = threading.Lock()
        self._compiled: Optional[Dict[str, Any]] = None
        self._current: Optional[MergedConfig] = None
        self._version: int = 0

    @property
    def current(self) -> MergedConfig:
        """The live snapshot.

        Raises:
            ConfigError: If nothing has been loaded yet
        """
        current = self._current
        if current is None:
            raise ConfigError("Customization config has not been loaded")
        return current

    @property
    def version(self) -> int:
        """Number of snapshots installed so far."""
        return self._version

    def is_loaded(self) -> bool:
        return self._current is not None

    def load(self, compiled: DocumentInput, user: DocumentInput = None) -> MergedConfig:
        """Merge both documents and install the result.

        Raises:
            ConfigError: If either document is rejected. Nothing is installed.
        """
        logger = get_logger()
        with self._reload_lock:
            try:
                compiled_doc = _coerce_document(compiled, "compiled") if compiled is not None else None
                merged = merge_documents(compiled_doc, user)
            except ConfigError as e:
                logger.error("config", "load_rejected", {"error": str(e)})
                raise

            self._compiled = compiled_doc
            self._install(merged)

        logger.info("config", "load_complete", self._summary(merged))
        return merged

    def reload(self, user: DocumentInput = None) -> MergedConfig:
        """Re-merge the retained compiled-in document with a new user document.

        The previous snapshot stays live if the new user document is rejected.

        Raises:
            ConfigError: If nothing was loaded yet or the user document is rejected
        """
        logger = get_logger()
        with self._reload_lock:
            if self._compiled is None:
                raise ConfigError("Cannot reload before the compiled-in config is loaded")

            try:
                merged = merge_documents(self._compiled, user)
            except ConfigError as e:
                logger.warn("config", "reload_rejected", {
                    "error": str(e),
                    "live_version": self._version,
                })
                raise

            self._install(merged)

        logger.info("config", "reload_complete", self._summary(merged))
        return merged

    def _install(self, merged: MergedConfig) -> None:
        # single reference assignment; readers holding the old snapshot keep it
        self._current = merged
        self._version += 1

    def _summary(self, merged: MergedConfig) -> Dict[str, Any]:
        return {
            "version": self._version,
            "templates": len(merged.templates),
            "prompts": len(merged.prompts),
            "subchat_tools": len(merged.subchat_parameters),
            "toolbox_commands": len(merged.toolbox_commands),
            "code_lens": len(merged.code_lens),
            "fingerprint": merged.fingerprint()[:12],
        }

    def clear(self) -> None:
        """Drop the loaded snapshot. Used for testing."""
        with self._reload_lock:
            self._compiled = None
            self._current = None
            self._version = 0
