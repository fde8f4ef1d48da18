"""Recursive coverage assessment over a rule graph.

A tag is covered when, for every type its rule requires, at least one tag of
that type covers it, and each of those covering tags is in turn covered.
Whether several covering items are *sufficient* is left to human review;
only the zero-coverage case is flagged here.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .config import RuleGraph
from .grammar import tag_type
from .records import Diagnostic, Relationship

logger = logging.getLogger(__name__)

MISSING_SUFFIX = "? ⚠️"
CYCLE_SUFFIX = "↻ ⚠️"


def missing_marker(type_code: str) -> str:
    return f"{type_code}{MISSING_SUFFIX}"


def cycle_marker(tag: str) -> str:
    return f"{tag}{CYCLE_SUFFIX}"


def is_marker(cell: str) -> bool:
    return cell.endswith(MISSING_SUFFIX) or cell.endswith(CYCLE_SUFFIX)


class CoverageEngine:
    def __init__(
        self,
        relationships: Iterable[Relationship],
        rules: RuleGraph,
        partial: Iterable[str] = (),
    ) -> None:
        self.rules = rules
        self.partial = frozenset(partial)
        self.diagnostics: list[Diagnostic] = []
        self._seen_cycles: set[tuple[str, ...]] = set()
        self._covering: dict[str, list[str]] = {}
        for source, target in relationships:
            self._covering.setdefault(target, []).append(source)

    def required(self, target: str) -> tuple[str, ...]:
        # A partial specification must first be refined by its own type.
        if target in self.partial:
            return (tag_type(target),)
        return self.rules.required(tag_type(target))

    def assess(self, target: str) -> dict[str, list[str]]:
        """Map each required type to the tags of that type covering ``target``."""
        covering = self._covering.get(target, [])
        return {
            type_code: [source for source in covering if tag_type(source) == type_code]
            for type_code in self.required(target)
        }

    def rows(self, target: str, prefix: Sequence[str] = ()) -> list[list[str]]:
        """Flatten the coverage tree below ``target`` into one row per path."""
        if not self.required(target):
            return [[*prefix, target]]

        path = [*prefix, target]
        result: list[list[str]] = []
        for type_code, sources in self.assess(target).items():
            if not sources:
                result.append([*path, missing_marker(type_code)])
                continue
            for source in sources:
                if source in path:
                    self._record_cycle(path, source)
                    result.append([*path, cycle_marker(source)])
                    continue
                result.extend(self.rows(source, path))
        return result

    def _record_cycle(self, path: list[str], source: str) -> None:
        cycle = (*path[path.index(source) :], source)
        if cycle in self._seen_cycles:
            return
        self._seen_cycles.add(cycle)
        diagnostic = Diagnostic(
            "coverage-cycle", "coverage cycle detected: " + " <= ".join(cycle)
        )
        logger.warning("%s", diagnostic)
        self.diagnostics.append(diagnostic)
