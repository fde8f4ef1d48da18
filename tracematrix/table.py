"""Flatten coverage rows into trace matrix tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import DEFAULT_CONFIG, RuleGraph, TraceConfig
from .coverage import CoverageEngine, is_marker
from .grammar import tag_type
from .records import Definition, Diagnostic, ScanResult

REQUIREMENT_TITLE = "Requirements Tracing Rules"
DESIGN_TITLE = "Design Tracing Rules"
CHAIN_SEPARATOR = " › "


@dataclass
class TraceTable:
    title: str
    header: list[str]
    rows: list[list[str]] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def missing_count(self) -> int:
        return sum(1 for row in self.rows for cell in row if is_marker(cell))

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "header": list(self.header),
            "rows": [list(row) for row in self.rows],
        }


def _code_location(tag: str, definition: Definition) -> tuple[str, str]:
    document, sep, line_no = tag[len(tag_type(tag)) + 1 :].rpartition(":")
    if not sep or not line_no.isdigit():
        return definition.document, str(definition.line)
    return document, line_no


def format_cell(
    element: str, definitions: dict[str, Definition], config: TraceConfig
) -> str:
    if not element or is_marker(element):
        return element

    anchor = f'<a name="{element}"></a>'
    definition = definitions.get(element)
    type_code = tag_type(element)
    if definition is not None and type_code in config.linked_types:
        return (
            f"{anchor}[{element}: {definition.text}]"
            f"({definition.document}#{element})"
        )
    if definition is not None and type_code in config.implementation_types:
        document, line_no = _code_location(element, definition)
        return (
            f"{anchor}[{Path(document).name}:{line_no} {definition.text}]"
            f"({definition.document}#cb-{line_no})"
        )
    return anchor + element


def format_column(
    row: list[str],
    type_code: str,
    definitions: dict[str, Definition],
    config: TraceConfig,
) -> str:
    """Format every tag of ``type_code`` in ``row`` as one cell.

    A partial definition and the tags refining it share a type, so they are
    joined in path order: ``D10 › D101 › D1001``.
    """
    return CHAIN_SEPARATOR.join(
        format_cell(element, definitions, config)
        for element in row
        if not is_marker(element) and tag_type(element) == type_code
    )


def _place_marker(cells: list[str], row: list[str], columns: tuple[str, ...]) -> None:
    # The column for a marker may already hold a chain of the same type (a
    # partial definition awaiting refinement, or the start of a cycle); the
    # marker then follows the deepest tag.
    marker = row[-1]
    if not is_marker(marker):
        return
    for element in (marker, *reversed(row[:-1])):
        type_code = tag_type(element)
        if type_code in columns:
            index = columns.index(type_code)
            cells[index] = f"{cells[index]} {marker}".strip()
            return
    cells[-1] = f"{cells[-1]} {marker}".strip()


def build_table(
    scan: ScanResult,
    rules: RuleGraph,
    config: TraceConfig = DEFAULT_CONFIG,
    title: str = "",
) -> TraceTable:
    """Build one trace table with a column per rule graph type.

    Each defined tag starts a chain of rows unless an earlier row already
    passed through it.
    """
    engine = CoverageEngine(scan.relationships, rules, scan.partial)
    columns = rules.columns
    table = TraceTable(title, [config.type_name(column) for column in columns])

    done: set[str] = set()
    for column in columns:
        for tag in scan.definitions:
            if tag in done or tag_type(tag) != column:
                continue
            for row in engine.rows(tag):
                cells = [
                    format_column(row, c, scan.definitions, config)
                    for c in columns
                ]
                _place_marker(cells, row, columns)
                table.rows.append(cells)
                done.update(row)
            done.add(tag)

    table.diagnostics.extend(engine.diagnostics)
    return table


def build_reports(
    scan: ScanResult, config: TraceConfig = DEFAULT_CONFIG
) -> list[TraceTable]:
    return [
        build_table(scan, config.requirement_rules, config, REQUIREMENT_TITLE),
        build_table(scan, config.design_rules, config, DESIGN_TITLE),
    ]
