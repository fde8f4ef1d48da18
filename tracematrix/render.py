from __future__ import annotations

import re
from typing import Any, Iterable

from .grammar import TAG_ID_RE, extract_tags
from .records import Diagnostic
from .table import TraceTable

REPORT_TITLE = "Requirements Trace Report"
REQ_LINK_RE = re.compile(r"\[(?P<label>[^\]]*)\]\(@req\)")
ANCHOR_RE = re.compile(r'<a name="[^"]*"></a>')
LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|")


def plain_cell_text(cell: str) -> str:
    """Reduce a formatted Markdown cell to the text a reader sees."""
    return LINK_RE.sub(r"\1", ANCHOR_RE.sub("", cell)).strip()


def render_markdown_table(table: TraceTable) -> str:
    lines = [
        "| " + " | ".join(_escape_cell(title) for title in table.header) + " |",
        "|" + "|".join(":--" for _ in table.header) + "|",
    ]
    for row in table.rows:
        lines.append("| " + " | ".join(_escape_cell(cell) for cell in row) + " |")
    return "\n".join(lines)


def render_markdown(tables: Iterable[TraceTable], title: str = REPORT_TITLE) -> str:
    lines: list[str] = [f"# {title}", ""]
    for table in tables:
        lines.append(f"## {table.title}")
        lines.append("")
        lines.append(render_markdown_table(table))
        lines.append("")
    return "\n".join(lines)


def render_json(
    tables: Iterable[TraceTable], diagnostics: Iterable[Diagnostic] = ()
) -> dict[str, Any]:
    tables = list(tables)
    return {
        "schema_version": 1,
        "tables": [
            {**table.to_dict(), "missing_count": table.missing_count}
            for table in tables
        ],
        "diagnostics": [
            {
                "kind": item.kind,
                "message": item.message,
                "document": item.document,
                "line": item.line,
            }
            for item in diagnostics
        ],
    }


def _link_target(label: str) -> str | None:
    for left, _, right in extract_tags(f"[{label}]"):
        return right or left
    tag = label.strip("* ")
    return tag if TAG_ID_RE.fullmatch(tag) else None


def rewrite_req_links(text: str, report_href: str) -> str:
    """Point ``[D10?=](@req)`` style links at the tag's row in the report."""

    def _replace(match: re.Match[str]) -> str:
        label = match.group("label")
        tag = _link_target(label)
        if tag is None:
            return match.group(0)
        return f"[{label}]({report_href}#{tag})"

    return REQ_LINK_RE.sub(_replace, text)
