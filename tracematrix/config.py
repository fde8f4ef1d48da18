"""Coverage rule graphs and report configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Iterator

import yaml

from .validate import ConfigError, validate_config


class RuleGraph(Mapping):
    """Read-only ordered mapping of type code -> required covering types.

    Key order is the report's column order. A type mapped to an empty tuple,
    or absent from the graph, needs no further coverage.
    """

    def __init__(self, rules: Mapping[str, Iterable[str] | None]) -> None:
        self._rules = {key: tuple(value or ()) for key, value in rules.items()}

    def __getitem__(self, type_code: str) -> tuple[str, ...]:
        return self._rules[type_code]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleGraph({self._rules!r})"

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(self._rules)

    def required(self, type_code: str) -> tuple[str, ...]:
        return self._rules.get(type_code, ())

    def is_terminal(self, type_code: str) -> bool:
        return not self.required(type_code)


TYPE_NAMES = MappingProxyType(
    {
        "H": "Hazard",
        "R": "Requirement Specification",
        "T": "Test Protocol",
        "TR": "Test Record",
        "D": "Design Specification",
        "U": "Unit Test",
        "UR": "Unit Test Record",
        "I": "Implementation",
    }
)

REQUIREMENT_RULES = RuleGraph(
    {
        "H": ["R"],
        "R": ["T"],
        "T": ["TR"],
        "TR": [],
    }
)

DESIGN_RULES = RuleGraph(
    {
        "R": ["D"],
        "D": ["I", "U", "T"],
        "I": [],
        "U": ["UR"],
        "UR": [],
        "T": ["TR"],
        "TR": [],
    }
)

LINKED_TYPES = frozenset({"H", "R", "D", "T"})
IMPLEMENTATION_TYPES = frozenset({"I"})


@dataclass(frozen=True)
class TraceConfig:
    requirement_rules: RuleGraph = field(default_factory=lambda: REQUIREMENT_RULES)
    design_rules: RuleGraph = field(default_factory=lambda: DESIGN_RULES)
    type_names: Mapping[str, str] = field(default_factory=lambda: TYPE_NAMES)
    linked_types: frozenset[str] = LINKED_TYPES
    implementation_types: frozenset[str] = IMPLEMENTATION_TYPES

    def type_name(self, type_code: str) -> str:
        return self.type_names.get(type_code, type_code)


DEFAULT_CONFIG = TraceConfig()


def config_from_mapping(data: Mapping[str, Any], source: str = "<config>") -> TraceConfig:
    validate_config(dict(data), source)
    overrides: dict[str, Any] = {}
    if "requirement_rules" in data:
        overrides["requirement_rules"] = RuleGraph(data["requirement_rules"])
    if "design_rules" in data:
        overrides["design_rules"] = RuleGraph(data["design_rules"])
    if "type_names" in data:
        overrides["type_names"] = MappingProxyType(
            {**TYPE_NAMES, **data["type_names"]}
        )
    if "linked_types" in data:
        overrides["linked_types"] = frozenset(data["linked_types"])
    if "implementation_types" in data:
        overrides["implementation_types"] = frozenset(data["implementation_types"])
    return TraceConfig(**overrides)


def load_config(path: Path | str | None) -> TraceConfig:
    """Load a YAML rules file; ``None`` gives the default configuration."""
    if path is None:
        return DEFAULT_CONFIG
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"missing configuration file: {path}")
    return config_from_mapping(_read_rules_file(path), str(path))


def _read_rules_file(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
    # An empty file keeps every default.
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"{path}: rules file root must be a mapping")
    return data
