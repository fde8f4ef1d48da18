"""Command line interface for building trace matrices."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import TraceConfig, load_config
from .records import Diagnostic, ScanResult
from .render import render_json, render_markdown, rewrite_req_links
from .scanner import scan_files
from .table import TraceTable, build_reports
from .validate import ConfigError


class ExitCode:
    SUCCESS = 0
    DIAGNOSTICS = 1
    USAGE = 2
    CONFIG = 3
    INPUT = 4
    GAPS = 5


def _all_diagnostics(scan: ScanResult, tables: list[TraceTable]) -> list[Diagnostic]:
    diagnostics = list(scan.diagnostics)
    for table in tables:
        diagnostics.extend(table.diagnostics)
    return diagnostics


def _write_output(output: str, destination: str) -> None:
    if destination == "stdout":
        print(output, end="")
        return
    output_path = Path(destination)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(output, encoding="utf-8")
    print(f"Wrote {output_path}", file=sys.stderr)


def cmd_report(args: argparse.Namespace, config: TraceConfig) -> int:
    scan = scan_files(args.paths)
    tables = build_reports(scan, config)
    diagnostics = _all_diagnostics(scan, tables)

    if args.format == "json":
        output = json.dumps(render_json(tables, diagnostics), indent=2, sort_keys=True)
        output += "\n"
    else:
        output = render_markdown(tables)
    _write_output(output, args.output)

    if args.strict and diagnostics:
        return ExitCode.DIAGNOSTICS
    if args.fail_on_gaps and any(table.missing_count for table in tables):
        return ExitCode.GAPS
    return ExitCode.SUCCESS


def cmd_validate(args: argparse.Namespace, config: TraceConfig) -> int:
    scan = scan_files(args.paths)
    tables = build_reports(scan, config)
    diagnostics = _all_diagnostics(scan, tables)
    for diagnostic in diagnostics:
        print(f"- [{diagnostic.kind}] {diagnostic}")
    for table in tables:
        print(f"{table.title}: {len(table.rows)} rows, {table.missing_count} gaps")
    if diagnostics:
        return ExitCode.DIAGNOSTICS
    print("no diagnostics")
    return ExitCode.SUCCESS


def cmd_docx(args: argparse.Namespace, config: TraceConfig) -> int:
    from .docx_builder import build_docx

    scan = scan_files(args.paths)
    tables = build_reports(scan, config)
    template = Path(args.template) if args.template else None
    build_docx(tables, Path(args.output), template)
    print(f"Wrote {args.output}", file=sys.stderr)
    return ExitCode.SUCCESS


def cmd_rewrite(args: argparse.Namespace, config: TraceConfig) -> int:
    del config
    text = Path(args.path).read_text(encoding="utf-8")
    _write_output(rewrite_req_links(text, args.report_href), args.output)
    return ExitCode.SUCCESS


def _add_scan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("paths", nargs="+", help="Annotated documents to scan.")
    parser.add_argument("--config", default=None, help="YAML rules file.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tracematrix",
        description="Build requirements trace matrices from annotated documents",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_report = sub.add_parser("report", help="Write both trace tables.")
    _add_scan_arguments(p_report)
    p_report.add_argument("--format", choices=("md", "json"), default="md")
    p_report.add_argument(
        "--output", default="stdout", help="stdout or a destination file path."
    )
    p_report.add_argument(
        "--strict", action="store_true", help="Fail when any diagnostic is raised."
    )
    p_report.add_argument(
        "--fail-on-gaps",
        action="store_true",
        help="Fail when any tag is missing required coverage.",
    )
    p_report.set_defaults(func=cmd_report)

    p_validate = sub.add_parser("validate", help="List scan and coverage diagnostics.")
    _add_scan_arguments(p_validate)
    p_validate.set_defaults(func=cmd_validate)

    p_docx = sub.add_parser("docx", help="Write both trace tables to a DOCX file.")
    _add_scan_arguments(p_docx)
    p_docx.add_argument("--output", required=True)
    p_docx.add_argument("--template", default="", help="Template DOCX to start from.")
    p_docx.set_defaults(func=cmd_docx)

    p_rewrite = sub.add_parser(
        "rewrite", help="Point (@req) links in a document at the trace report."
    )
    p_rewrite.add_argument("path")
    p_rewrite.add_argument("--report-href", required=True)
    p_rewrite.add_argument("--output", default="stdout")
    p_rewrite.set_defaults(func=cmd_rewrite, config=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return ExitCode.CONFIG

    try:
        return args.func(args, config)
    except (FileNotFoundError, IsADirectoryError, UnicodeDecodeError) as exc:
        print(f"cannot read input: {exc}", file=sys.stderr)
        return ExitCode.INPUT


if __name__ == "__main__":
    raise SystemExit(main())
