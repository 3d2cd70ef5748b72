"""Permission files — TOML/YAML declarations of tool permissions.

A permission file looks like::

    inherit_from = "~/.agent-sandbox/base.toml"   # optional

    [[tools]]
    name = "make"
    level = "execute"
    allowed_args = ["build", "test"]
    denied_paths = ["/etc"]
    requires_approval = false

Parents named by ``inherit_from`` are loaded first so the child file can
override them; re-registration under the same name replaces the record.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from agent_sandbox.errors import ConfigError
from agent_sandbox.permissions.gate import PermissionGate
from agent_sandbox.types.permissions import PermissionLevel, ToolPermission

logger = logging.getLogger(__name__)


class PermissionFileLoader:
    """Loads permission files into :class:`ToolPermission` records."""

    def __init__(self) -> None:
        self._loaded_paths: set[str] = set()

    def load_file(self, path: str | Path) -> list[ToolPermission]:
        """Parse *path* (and its parents) into an ordered list of records."""
        path = Path(path).expanduser().resolve()
        path_str = str(path)

        if path_str in self._loaded_paths:
            logger.warning("Skipping already loaded permission file %s", path)
            return []
        self._loaded_paths.add(path_str)

        if not path.exists():
            raise ConfigError(f"Permission file not found: {path}")

        raw = self._parse_file(path)
        records: list[ToolPermission] = []

        parent = raw.get("inherit_from")
        if parent:
            parent_path = Path(str(parent)).expanduser()
            if not parent_path.is_absolute():
                parent_path = path.parent / parent_path
            records.extend(self.load_file(parent_path))

        tools = raw.get("tools", [])
        if not isinstance(tools, list):
            raise ConfigError(f"'tools' must be a list in {path}")
        for entry in tools:
            records.append(build_permission(entry, source=path_str))

        logger.debug("Loaded %d permission records from %s", len(records), path)
        return records

    def load_files(self, paths: list[str | Path]) -> list[ToolPermission]:
        records: list[ToolPermission] = []
        for p in paths:
            records.extend(self.load_file(p))
        return records

    @staticmethod
    def _parse_file(path: Path) -> dict[str, Any]:
        """Parse a YAML or TOML file into a dict."""
        suffix = path.suffix.lower()
        try:
            text = path.read_text()
        except OSError as exc:
            raise ConfigError(f"Cannot read permission file {path}: {exc}") from exc

        if suffix in (".yml", ".yaml"):
            try:
                import yaml
            except ImportError as exc:
                raise ConfigError(
                    f"pyyaml is required to load {path} (pip install agent-sandbox[yaml])"
                ) from exc
            try:
                data = yaml.safe_load(text)
            except yaml.YAMLError as exc:
                raise ConfigError(f"Failed to parse YAML permission file {path}: {exc}") from exc
        elif suffix == ".toml":
            import tomllib
            try:
                data = tomllib.loads(text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"Failed to parse TOML permission file {path}: {exc}") from exc
        else:
            raise ConfigError(f"Unsupported permission file extension: {path}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Permission file {path} must contain a mapping")
        return data


def _str_tuple(value: Any, key: str, source: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list of strings in {source}")
    return tuple(str(v) for v in value)


def build_permission(entry: Any, *, source: str = "<memory>") -> ToolPermission:
    """Build a ToolPermission from one ``[[tools]]`` table."""
    if not isinstance(entry, dict):
        raise ConfigError(f"Tool entries must be tables in {source}")
    name = entry.get("name")
    if not name:
        raise ConfigError(f"Tool entry without a name in {source}")

    level_str = str(entry.get("level", PermissionLevel.DENIED.value))
    try:
        level = PermissionLevel(level_str)
    except ValueError as exc:
        raise ConfigError(f"Unknown level '{level_str}' for tool '{name}' in {source}") from exc

    return ToolPermission(
        name=str(name),
        level=level,
        allowed_paths=_str_tuple(entry.get("allowed_paths"), "allowed_paths", source),
        denied_paths=_str_tuple(entry.get("denied_paths"), "denied_paths", source),
        allowed_args=_str_tuple(entry.get("allowed_args"), "allowed_args", source),
        requires_approval=bool(entry.get("requires_approval", False)),
    )


def apply_permission_files(gate: PermissionGate, paths: list[str | Path]) -> int:
    """Register every record from *paths* on *gate*. Returns the count."""
    records = PermissionFileLoader().load_files(paths)
    for record in records:
        gate.register(record)
    return len(records)
