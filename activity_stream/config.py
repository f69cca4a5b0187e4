"""
activity_stream.config — YAML Configuration Loader
===================================================

The registries (verbs, streams, filters, upgraders) are populated once at
startup from a declarative YAML file and never change afterwards.  The
database URL is **not** part of this file; it comes from the
``DATABASE_URL`` environment variable.

Usage::

    from activity_stream.config import load_config

    cfg = load_config()                  # reads ./activity_stream.yaml
    print(cfg.enabled)                   # True
    print([v.id for v in cfg.verbs])     # ["circle", "tweet", …]

File format::

    enabled: true
    verbs:
      - {id: circle, labelKey: label.activity.circle, aliases: [circled]}
    streams:
      - {name: userActivityStream, verbs: [documentCreated, documentModified]}
    filters:
      - id: tweets
        implementation: activity_stream.engine.audience:SeenByFilter
        options: {verb: tweet}
    upgraders:
      - name: displayActorBackfill
        order: 10
        implementation: activity_stream.engine.upgraders:backfill_display_actor
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from activity_stream.errors import ConfigurationError

DEFAULT_CONFIG_PATH = "activity_stream.yaml"


# ---------------------------------------------------------------------------
# Typed entries: one per declarative list item
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class VerbEntry:
    """``{id, labelKey, aliases[]}`` — aliases are legacy/compat verb ids."""

    id: str
    label_key: str
    aliases: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class StreamEntry:
    """``{name, verbs[]}``."""

    name: str
    verbs: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class FilterEntry:
    """``{id, implementation, options}``.

    *implementation* is either a ``"module:attr"`` reference or the
    filter class / factory itself; it is called as
    ``implementation(id, **options)``.
    """

    id: str
    implementation: str | Callable[..., Any]
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UpgraderEntry:
    """``{name, order, implementation, options}``.

    *implementation* resolves to a transform ``(activity) -> None``, or to
    a factory returning one when *options* is given.
    """

    name: str
    order: int
    implementation: str | Callable[..., Any]
    options: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class ActivityStoreConfig:
    """Immutable store configuration loaded from YAML."""

    enabled: bool = True
    verbs: tuple[VerbEntry, ...] = ()
    streams: tuple[StreamEntry, ...] = ()
    filters: tuple[FilterEntry, ...] = ()
    upgraders: tuple[UpgraderEntry, ...] = ()


# ---------------------------------------------------------------------------
# Entry parsing
# ---------------------------------------------------------------------------
def _require(item: Any, key: str, section: str) -> Any:
    if not isinstance(item, dict):
        raise ConfigurationError(f"{section}: expected a mapping, got {item!r}")
    value = item.get(key)
    if value in (None, ""):
        raise ConfigurationError(f"{section}: missing required key {key!r} in {item!r}")
    return value


def _string_list(value: Any, section: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, list):
        raise ConfigurationError(f"{section}: expected a list of strings, got {value!r}")
    return tuple(str(v) for v in value)


def _parse_verb(item: Any) -> VerbEntry:
    verb_id = str(_require(item, "id", "verbs"))
    # ``label`` is the legacy spelling of ``labelKey``
    label_key = item.get("labelKey") or item.get("label")
    if not label_key:
        raise ConfigurationError(f"verbs: missing required key 'labelKey' in {item!r}")
    return VerbEntry(
        id=verb_id,
        label_key=str(label_key),
        aliases=_string_list(item.get("aliases"), "verbs"),
    )


def _parse_stream(item: Any) -> StreamEntry:
    name = str(_require(item, "name", "streams"))
    return StreamEntry(name=name, verbs=_string_list(item.get("verbs"), "streams"))


def _parse_options(item: dict, section: str) -> dict[str, Any] | None:
    options = item.get("options")
    if options is not None and not isinstance(options, dict):
        raise ConfigurationError(f"{section}: 'options' must be a mapping in {item!r}")
    return options


def _parse_filter(item: Any) -> FilterEntry:
    filter_id = str(_require(item, "id", "filters"))
    implementation = _require(item, "implementation", "filters")
    return FilterEntry(
        id=filter_id,
        implementation=implementation,
        options=_parse_options(item, "filters") or {},
    )


def _parse_upgrader(item: Any) -> UpgraderEntry:
    name = str(_require(item, "name", "upgraders"))
    implementation = _require(item, "implementation", "upgraders")
    raw_order = item.get("order", 0)
    try:
        order = int(raw_order)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"upgraders: 'order' must be an integer for {name!r}, got {raw_order!r}"
        ) from exc
    return UpgraderEntry(
        name=name,
        order=order,
        implementation=implementation,
        options=_parse_options(item, "upgraders"),
    )


def _section(raw: dict, key: str) -> list:
    items = raw.get(key) or []
    if not isinstance(items, list):
        raise ConfigurationError(f"{key}: expected a list, got {type(items).__name__}")
    return items


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def parse_config(raw: dict | None) -> ActivityStoreConfig:
    """Turn an already-decoded mapping into an :class:`ActivityStoreConfig`.

    Raises
    ------
    ConfigurationError
        If a section is not a list or an entry is malformed.
    """
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration root must be a mapping, got {raw!r}")

    return ActivityStoreConfig(
        enabled=bool(raw.get("enabled", True)),
        verbs=tuple(_parse_verb(i) for i in _section(raw, "verbs")),
        streams=tuple(_parse_stream(i) for i in _section(raw, "streams")),
        filters=tuple(_parse_filter(i) for i in _section(raw, "filters")),
        upgraders=tuple(_parse_upgrader(i) for i in _section(raw, "upgraders")),
    )


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> ActivityStoreConfig:
    """Read *path* and return an :class:`ActivityStoreConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ConfigurationError
        If an entry is malformed.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy activity_stream.yaml.example → activity_stream.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    return parse_config(raw)
