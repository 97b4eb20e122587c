"""Load scenario files into validated :class:`ScenarioConfig` models."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from goapnpc.core.models import ScenarioConfig


_ACTION_FIELDS = frozenset({"type", "name", "cost", "exclude_when_unconfigured", "params"})


def load_config(
    *,
    path: Path | str | None = None,
    data: str | bytes | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ScenarioConfig:
    """Parse a TOML scenario and validate it.

    Pass either ``path`` or ``data``, not both. ``overrides`` is merged into
    the parsed tables before validation, nested tables key by key.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the source is ambiguous, unreadable or not valid TOML.
        pydantic.ValidationError: If the scenario does not match the schema.

    """
    if (path is None) == (data is None):
        msg = "Pass exactly one of 'path' or 'data' to load a scenario."
        raise ValueError(msg)

    if path is not None:
        text, source = _read_file(Path(path)), str(path)
    elif isinstance(data, bytes):
        text, source = data.decode("utf-8"), "<data>"
    else:
        text, source = str(data), "<data>"

    try:
        tables: dict[str, Any] = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {source}: {exc}"
        raise ValueError(msg) from exc

    if overrides:
        tables = _deep_merge(tables, overrides)
    return ScenarioConfig.model_validate(_to_schema(tables))


def _read_file(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(path)
    if not path.is_file():
        msg = f"Scenario path is not a file: {path}"
        raise ValueError(msg)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read scenario file {path}: {exc}"
        raise ValueError(msg) from exc


def _deep_merge(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _to_schema(tables: Mapping[str, Any]) -> dict[str, Any]:
    # Files use short table names: [global], [agents.local] and flat action keys.
    scenario = {key: value for key, value in tables.items() if key not in {"global", "agents"}}
    if "global" in tables:
        scenario["global_facts"] = tables["global"]
    scenario["agents"] = [_agent_to_schema(agent) for agent in tables.get("agents", [])]
    return scenario


def _agent_to_schema(table: Mapping[str, Any]) -> dict[str, Any]:
    agent = {key: value for key, value in table.items() if key not in {"local", "actions"}}
    if "local" in table:
        agent["local_facts"] = table["local"]
    agent["actions"] = [_action_to_schema(action) for action in table.get("actions", [])]
    return agent


def _action_to_schema(table: Mapping[str, Any]) -> dict[str, Any]:
    action = {key: value for key, value in table.items() if key in _ACTION_FIELDS}
    params = dict(action.get("params", {}))
    params.update((key, value) for key, value in table.items() if key not in _ACTION_FIELDS)
    action["params"] = params
    return action


__all__ = ["load_config"]
