from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple


@dataclass(frozen=True)
class Definition:
    document: str
    line: int
    text: str
    partial: bool = False


class Relationship(NamedTuple):
    source: str
    target: str


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    message: str
    document: str = ""
    line: int = 0

    def __str__(self) -> str:
        if self.document:
            return f"{self.document}:{self.line}: {self.message}"
        return self.message


@dataclass(frozen=True)
class ScanResult:
    definitions: dict[str, Definition] = field(default_factory=dict)
    relationships: list[Relationship] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def partial(self) -> frozenset[str]:
        return frozenset(
            tag for tag, definition in self.definitions.items() if definition.partial
        )
