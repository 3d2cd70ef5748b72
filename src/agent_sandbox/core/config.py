"""Configuration loading (TOML, env vars) and session construction."""

from __future__ import annotations

import logging
import os
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from agent_sandbox.core.engine import Sandbox
from agent_sandbox.errors import ConfigError
from agent_sandbox.permissions.defaults import default_gate
from agent_sandbox.permissions.policy import apply_permission_files
from agent_sandbox.sandbox.executor import SubprocessExecutor
from agent_sandbox.types.config import ApprovalPolicy, SandboxConfig
from agent_sandbox.types.execution import ExecutionMode
from agent_sandbox.types.permissions import PermissionLevel
from agent_sandbox.vfs.shadow import FilesystemShadow

logger = logging.getLogger(__name__)

CONFIG_DIR = ".agent-sandbox"
CONFIG_FILE = "config.toml"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    raise ConfigError(f"Invalid boolean for {name}: {value!r}")


def _parse_enum(name: str, enum_cls: Any, value: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(m.value for m in enum_cls)
        raise ConfigError(f"Invalid {name}: {value!r} (expected one of {choices})") from exc


def _parse_timeout(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid timeout: {value!r}") from exc
    return timeout if timeout > 0 else None


def load_toml_config(cwd: str | None = None) -> dict[str, Any]:
    """Load ``.agent-sandbox/config.toml`` from *cwd*, the current directory or home."""
    import tomllib

    search = []
    if cwd:
        search.append(Path(cwd) / CONFIG_DIR / CONFIG_FILE)
    search.append(Path.cwd() / CONFIG_DIR / CONFIG_FILE)
    search.append(Path.home() / CONFIG_DIR / CONFIG_FILE)

    for path in search:
        if not path.is_file():
            continue
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"Cannot load {path}: {exc}") from exc
        logger.debug("Loaded config from %s", path)
        section = data.get("sandbox", data)
        return dict(section) if isinstance(section, dict) else {}
    return {}


def load_env_config() -> dict[str, Any]:
    """Read ``AGENT_SANDBOX_*`` variables (after loading ``.env``)."""
    # .env from the current directory (and parents); existing env vars win
    load_dotenv(find_dotenv(usecwd=True))
    config: dict[str, Any] = {}
    if mode := os.environ.get("AGENT_SANDBOX_MODE"):
        config["mode"] = mode
    if (allow_all := os.environ.get("AGENT_SANDBOX_ALLOW_ALL")) is not None:
        config["allow_all"] = allow_all
    if (allow_unknown := os.environ.get("AGENT_SANDBOX_ALLOW_UNKNOWN")) is not None:
        config["allow_unknown"] = allow_unknown
    if timeout := os.environ.get("AGENT_SANDBOX_TIMEOUT"):
        config["timeout_sec"] = timeout
    return config


def config_from_mapping(raw: dict[str, Any], base: SandboxConfig | None = None) -> SandboxConfig:
    """Overlay *raw* key/values onto *base*, validating each value."""
    config = base or SandboxConfig()
    known = {f.name for f in fields(SandboxConfig)}
    updates: dict[str, Any] = {}

    for key, value in raw.items():
        if key not in known:
            logger.warning("Ignoring unknown config key '%s'", key)
            continue
        match key:
            case "mode":
                updates[key] = _parse_enum(key, ExecutionMode, value)
            case "default_level":
                updates[key] = _parse_enum(key, PermissionLevel, value)
            case "approval_policy":
                updates[key] = _parse_enum(key, ApprovalPolicy, value)
            case "allow_all" | "allow_unknown" | "record_blocked" | "mount":
                updates[key] = _parse_bool(key, value)
            case "timeout_sec":
                updates[key] = _parse_timeout(value)
            case "permission_files":
                if isinstance(value, str) or not isinstance(value, (list, tuple)):
                    raise ConfigError("permission_files must be a list of paths")
                updates[key] = tuple(str(v) for v in value)
            case "working_dir":
                updates[key] = str(value)

    return replace(config, **updates)


def load_config(cwd: str | None = None, **overrides: Any) -> SandboxConfig:
    """Merge defaults < config.toml < environment < explicit *overrides*."""
    config = SandboxConfig(working_dir=cwd or ".")
    config = config_from_mapping(load_toml_config(cwd), config)
    config = config_from_mapping(load_env_config(), config)
    explicit = {k: v for k, v in overrides.items() if v is not None}
    return config_from_mapping(explicit, config)


def build_sandbox(config: SandboxConfig) -> Sandbox:
    """Construct a :class:`Sandbox` from *config*."""
    gate = default_gate(default_level=config.default_level, allow_unknown=config.allow_unknown)
    if config.permission_files:
        count = apply_permission_files(gate, list(config.permission_files))
        logger.info("Registered %d tools from permission files", count)

    working_dir = Path(config.working_dir).expanduser().resolve()
    shadow = FilesystemShadow()
    if config.mount:
        shadow.mount(working_dir)

    return Sandbox(
        gate=gate,
        shadow=shadow,
        executor=SubprocessExecutor(timeout_sec=config.timeout_sec),
        working_dir=working_dir,
        mode=config.mode,
        approval_policy=config.approval_policy,
        record_blocked=config.record_blocked,
        allow_all=config.allow_all,
    )
