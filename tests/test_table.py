from __future__ import annotations

from pathlib import Path

from tracematrix.config import DEFAULT_CONFIG, RuleGraph, TraceConfig
from tracematrix.grammar import tag_type
from tracematrix.records import Definition
from tracematrix.render import plain_cell_text
from tracematrix.scanner import scan_documents, scan_files
from tracematrix.table import (
    DESIGN_TITLE,
    REQUIREMENT_TITLE,
    build_reports,
    build_table,
    format_cell,
)

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_uncovered_hazard_surfaces_requirement_gap() -> None:
    scan = scan_documents([("doc.md", ["[H1:] Water ingress"])])
    table = build_table(scan, DEFAULT_CONFIG.requirement_rules)
    assert table.header == [
        "Hazard",
        "Requirement Specification",
        "Test Protocol",
        "Test Record",
    ]
    assert table.rows == [
        ['<a name="H1"></a>[H1: Water ingress](doc.md#H1)', "R? ⚠️", "", ""]
    ]
    assert table.missing_count == 1


def test_complete_chain_is_a_single_row() -> None:
    scan = scan_documents(
        [
            ("hazards.md", ["[H1:] Water ingress."]),
            ("reqs.md", ["[R1:] Waterproof. [=>H1]"]),
            ("tests.md", ["[T1:] Immerse. [=>R1]", "[TR1:] Passed. [=>T1]"]),
        ]
    )
    table = build_table(scan, DEFAULT_CONFIG.requirement_rules)
    assert table.rows == [
        [
            '<a name="H1"></a>[H1: Water ingress.](hazards.md#H1)',
            '<a name="R1"></a>[R1: Waterproof.](reqs.md#R1)',
            '<a name="T1"></a>[T1: Immerse.](tests.md#T1)',
            '<a name="TR1"></a>TR1',
        ]
    ]
    assert table.missing_count == 0


def test_tags_already_placed_do_not_start_new_chains() -> None:
    scan = scan_documents(
        [("doc.md", ["[H1:] one", "[H2:] two", "[R1:] req [=>H1] [=>H2]"])]
    )
    table = build_table(scan, DEFAULT_CONFIG.requirement_rules)
    assert len(table.rows) == 2
    assert all("R1" in row[1] for row in table.rows)


def test_unreached_terminal_definition_gets_its_own_row() -> None:
    scan = scan_documents([("doc.md", ["[TR9:] orphan record"])])
    table = build_table(scan, DEFAULT_CONFIG.requirement_rules)
    assert table.rows == [["", "", "", '<a name="TR9"></a>TR9']]


def test_design_table_links_implementation_to_code_location() -> None:
    scan = scan_documents(
        [
            ("reqs.md", ["[R1:] Blue."]),
            ("design.md", ["[D7:] Blue paint. [=>R1]"]),
            ("src/widget.py", ["import paint", "", "[I=>D7] paint_widget()"]),
        ]
    )
    table = build_table(scan, DEFAULT_CONFIG.design_rules, title=DESIGN_TITLE)
    assert table.title == DESIGN_TITLE
    assert len(table.rows) == 3
    first, second, third = table.rows
    assert first[2] == (
        '<a name="I:src/widget.py:3"></a>'
        "[widget.py:3 paint_widget()](src/widget.py#cb-3)"
    )
    assert second[3] == "U? ⚠️"
    assert third[5] == "T? ⚠️"
    design_cell = '<a name="D7"></a>[D7: Blue paint.](design.md#D7)'
    assert all(row[1] == design_cell for row in table.rows)


def test_columns_match_type_codes_exactly() -> None:
    scan = scan_documents([("doc.md", ["[T1:] test", "[TR1:] record [=>T1]"])])
    table = build_table(scan, DEFAULT_CONFIG.requirement_rules)
    assert table.rows == [
        ["", "", '<a name="T1"></a>[T1: test](doc.md#T1)', '<a name="TR1"></a>TR1']
    ]


def test_marker_shares_a_column_with_a_partial_definition() -> None:
    scan = scan_documents(
        [("doc.md", ["[R5:] Secure.", "[D10?=] Lock. [=>R5]"])]
    )
    table = build_table(scan, DEFAULT_CONFIG.design_rules)
    assert table.rows == [
        [
            '<a name="R5"></a>[R5: Secure.](doc.md#R5)',
            '<a name="D10"></a>[D10: Lock.](doc.md#D10) D? ⚠️',
            "",
            "",
            "",
            "",
            "",
        ]
    ]
    assert table.missing_count == 1


def test_cycle_marker_is_visible_and_reported() -> None:
    rules = RuleGraph({"D": ["D"]})
    scan = scan_documents([("doc.md", ["[D1:] a [=>D2]", "[D2:] b [=>D1]"])])
    table = build_table(scan, rules)
    assert table.rows == [
        [
            '<a name="D1"></a>[D1: a](doc.md#D1) › '
            '<a name="D2"></a>[D2: b](doc.md#D2) D1↻ ⚠️'
        ],
    ]
    assert [item.kind for item in table.diagnostics] == ["coverage-cycle"]


def test_unknown_type_names_fall_back_to_type_code() -> None:
    scan = scan_documents([("doc.md", ["[X1:] thing"])])
    table = build_table(scan, RuleGraph({"X": ["Y"], "Y": []}))
    assert table.header == ["X", "Y"]
    assert table.rows == [['<a name="X1"></a>X1', "Y? ⚠️"]]


def test_custom_linked_types() -> None:
    config = TraceConfig(linked_types=frozenset({"TR"}))
    definitions = {"TR1": Definition("log.md", 4, "passed")}
    assert format_cell("TR1", definitions, config) == (
        '<a name="TR1"></a>[TR1: passed](log.md#TR1)'
    )
    assert format_cell("", definitions, config) == ""
    assert format_cell("H1", definitions, config) == '<a name="H1"></a>H1'


def test_build_reports_uses_both_rule_graphs(widget_documents) -> None:
    scan = scan_documents(widget_documents)
    requirement, design = build_reports(scan)
    assert requirement.title == REQUIREMENT_TITLE
    assert design.title == DESIGN_TITLE
    assert len(requirement.header) == 4
    assert len(design.header) == 7
    assert requirement.rows[0][3] == '<a name="TR11"></a>TR11'
    # H2 is not covered by any requirement.
    assert requirement.rows[-1][1] == "R? ⚠️"


def test_refinements_of_a_partial_definition_share_its_column() -> None:
    scan = scan_documents(
        [
            (
                "design.md",
                [
                    "[R5:] secure",
                    "[D10?=] lock [=>R5]",
                    "[D101?=] combination [=>D10]",
                    "[D102?=] key [=>D10]",
                    "[D1001:] 1000 combinations [=>D101]",
                ],
            )
        ]
    )
    table = build_table(scan, DEFAULT_CONFIG.design_rules)
    design_cells = [plain_cell_text(row[1]) for row in table.rows]
    assert design_cells == [
        "D10: lock › D101: combination › D1001: 1000 combinations",
        "D10: lock › D101: combination › D1001: 1000 combinations",
        "D10: lock › D101: combination › D1001: 1000 combinations",
        "D10: lock › D102: key D? ⚠️",
    ]
    assert [row[2:] for row in table.rows[:3]] == [
        ["I? ⚠️", "", "", "", ""],
        ["", "U? ⚠️", "", "", ""],
        ["", "", "", "T? ⚠️", ""],
    ]
    assert table.missing_count == 4


def _defining_cells(table, tag: str) -> list[str]:
    anchor = f'<a name="{tag}"></a>'
    return [cell for row in table.rows for cell in row if anchor in cell]


def test_every_definition_of_a_column_type_appears_in_the_sample_docs() -> None:
    paths = sorted(
        path for path in (REPO_ROOT / "docs").glob("*.md") if path.name != "index.md"
    )
    scan = scan_files(paths)
    assert scan.diagnostics == []
    for table, rules in zip(
        build_reports(scan),
        (DEFAULT_CONFIG.requirement_rules, DEFAULT_CONFIG.design_rules),
    ):
        for tag in scan.definitions:
            if tag_type(tag) in rules.columns:
                assert _defining_cells(table, tag), f"{tag} missing from {table.title}"
