from __future__ import annotations

import posixpath
import re
from pathlib import Path
from typing import Any, Collection, Iterable

from docutils import nodes
from docutils.parsers.rst import directives
from sphinx import addnodes
from sphinx.application import Sphinx
from sphinx.environment import BuildEnvironment
from sphinx.errors import ExtensionError
from sphinx.util import logging
from sphinx.util.docutils import SphinxDirective

from tracematrix.config import TraceConfig, load_config
from tracematrix.scanner import Scanner
from tracematrix.table import DESIGN_TITLE, REQUIREMENT_TITLE, TraceTable, build_table
from tracematrix.validate import ConfigError


LOGGER = logging.getLogger(__name__)

RULE_SETS = ("requirement", "design")
DEFAULT_SOURCES = "**/*.md"


# One formatted tag inside a cell: its anchor, then a Markdown link or the
# bare tag.
CELL_ITEM_RE = re.compile(
    r'<a name="(?P<tag>[^"]*)"></a>'
    r"(?:\[(?P<label>[^\]]*)\]\((?P<document>[^)#]*)(?:#[^)]*)?\)"
    r"|(?P<bare>[^\s<]+))"
)


def _ensure_env(env: BuildEnvironment) -> None:
    if not hasattr(env, "tracematrix_diagnostics"):
        env.tracematrix_diagnostics = {}


def _record_diagnostics(
    env: BuildEnvironment, docname: str, messages: Iterable[str]
) -> None:
    _ensure_env(env)
    env.tracematrix_diagnostics.setdefault(docname, []).extend(messages)


def _rule_set(argument: str) -> str:
    return directives.choice(argument, RULE_SETS)


def _load_trace_config(sphinx_config: Any) -> TraceConfig:
    config_path = str(sphinx_config.tracematrix_config_path).strip()
    try:
        return load_config(config_path or None)
    except ConfigError as exc:
        raise ExtensionError(str(exc)) from exc


def _source_paths(srcdir: Path, patterns: list[str]) -> list[Path]:
    found: set[Path] = set()
    for pattern in patterns:
        found.update(path for path in srcdir.glob(pattern) if path.is_file())
    return sorted(found)


def _doc_reference(label: str, document: str, docname: str) -> addnodes.pending_xref:
    target = posixpath.splitext(document)[0]
    return addnodes.pending_xref(
        "",
        nodes.Text(label),
        refdomain="std",
        reftype="doc",
        reftarget="/" + target,
        refexplicit=True,
        refwarn=True,
        refdoc=docname,
    )


def _cell_paragraph(
    cell: str, docname: str, found_docs: Collection[str], seen: set[str]
) -> nodes.paragraph:
    paragraph = nodes.paragraph()
    position = 0
    for match in CELL_ITEM_RE.finditer(cell):
        if match.start() > position:
            paragraph += nodes.Text(cell[position : match.start()])
        position = match.end()

        tag = match.group("tag")
        if tag not in seen:
            seen.add(tag)
            paragraph += nodes.target("", "", ids=[tag])

        label = match.group("label")
        if label is None:
            paragraph += nodes.Text(match.group("bare"))
        elif posixpath.splitext(match.group("document"))[0] in found_docs:
            paragraph += _doc_reference(label, match.group("document"), docname)
        else:
            paragraph += nodes.Text(label)
    if position < len(cell):
        paragraph += nodes.Text(cell[position:])
    return paragraph


def build_table_node(
    table: TraceTable,
    docname: str = "",
    found_docs: Collection[str] = (),
    seen: set[str] | None = None,
) -> nodes.table:
    """Build a docutils table for ``table``.

    Each tag gets a target carrying its name as id (once per ``seen`` set) and
    tags defined in a document of the project link to that document.
    """
    seen = set() if seen is None else seen
    table_node = nodes.table()
    table_node += nodes.title(text=table.title)
    tgroup = nodes.tgroup(cols=len(table.header))
    table_node += tgroup
    for _ in table.header:
        tgroup += nodes.colspec(colwidth=1)

    thead = nodes.thead()
    header_row = nodes.row()
    for title in table.header:
        entry = nodes.entry()
        entry += nodes.paragraph(text=title)
        header_row += entry
    thead += header_row
    tgroup += thead

    tbody = nodes.tbody()
    for row in table.rows:
        row_node = nodes.row()
        for cell in row:
            entry = nodes.entry()
            entry += _cell_paragraph(cell, docname, found_docs, seen)
            row_node += entry
        tbody += row_node
    tgroup += tbody
    return table_node


class TraceMatrixDirective(SphinxDirective):
    has_content = False
    required_arguments = 0
    option_spec = {
        "rules": _rule_set,
        "sources": directives.unchanged_required,
    }

    def run(self) -> list[nodes.Node]:
        config = _load_trace_config(self.config)
        srcdir = Path(self.env.srcdir)
        patterns = self.options.get("sources", DEFAULT_SOURCES).split()

        scanner = Scanner()
        for path in _source_paths(srcdir, patterns):
            self.env.note_dependency(str(path))
            document = path.relative_to(srcdir).as_posix()
            scanner.scan_text(document, path.read_text(encoding="utf-8"))
        scan = scanner.result()

        if self.options.get("rules", "requirement") == "design":
            table = build_table(scan, config.design_rules, config, DESIGN_TITLE)
        else:
            table = build_table(scan, config.requirement_rules, config, REQUIREMENT_TITLE)

        # Several directives in one document may scan the same sources.
        reported = self.env.temp_data.setdefault("tracematrix_reported", set())
        messages = [str(item) for item in scan.diagnostics if str(item) not in reported]
        reported.update(messages)
        messages.extend(str(item) for item in table.diagnostics)
        for message in messages:
            LOGGER.warning(
                "trace matrix: %s", message, location=(self.env.docname, self.lineno)
            )
        _record_diagnostics(self.env, self.env.docname, messages)

        seen = self.env.temp_data.setdefault("tracematrix_targets", set())
        return [
            build_table_node(table, self.env.docname, self.env.found_docs, seen)
        ]


def _on_env_purge_doc(app: Sphinx, env: BuildEnvironment, docname: str) -> None:
    _ensure_env(env)
    env.tracematrix_diagnostics.pop(docname, None)


def _on_env_merge_info(
    app: Sphinx, env: BuildEnvironment, docnames: list[str], other: BuildEnvironment
) -> None:
    _ensure_env(env)
    _ensure_env(other)
    env.tracematrix_diagnostics.update(other.tracematrix_diagnostics)


def _on_build_finished(app: Sphinx, exception: Exception | None) -> None:
    env = app.builder.env
    _ensure_env(env)
    messages = [
        message
        for docname in sorted(env.tracematrix_diagnostics)
        for message in env.tracematrix_diagnostics[docname]
    ]
    if exception is None and app.config.tracematrix_strict and messages:
        sample = "\n- " + "\n- ".join(messages[:10])
        raise ExtensionError(f"trace matrix diagnostics detected:{sample}")


def setup(app: Sphinx) -> dict[str, Any]:
    app.add_config_value("tracematrix_config_path", "", "env")
    app.add_config_value("tracematrix_strict", False, "env")

    app.add_directive("trace-matrix", TraceMatrixDirective)

    app.connect("env-purge-doc", _on_env_purge_doc)
    app.connect("env-merge-info", _on_env_merge_info)
    app.connect("build-finished", _on_build_finished)

    return {
        "version": "0.1",
        "parallel_read_safe": True,
        "parallel_write_safe": True,
        "env_version": 1,
    }
