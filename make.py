#!/usr/bin/env -S uv run
from __future__ import annotations

import argparse
import importlib
from pathlib import Path

ROOT = Path(__file__).resolve().parent
CONF_DIR = ROOT / "docs"
SOURCE_DIR = ROOT / "docs"
OUT_DIR = ROOT / "build" / "html"
DOCTREE_DIR = ROOT / "build" / "doctrees"
REPORT_PATH = ROOT / "build" / "trace-report.md"
CONFIG_PATH = ROOT / "tracematrix.yaml"


def _source_documents() -> list[Path]:
    return sorted(path for path in SOURCE_DIR.glob("*.md") if path.name != "index.md")


def _run_tracematrix(args: list[str]) -> int:
    try:
        from tracematrix.cli import main as tracematrix_main
    except ModuleNotFoundError as exc:
        raise SystemExit(
            "missing Python dependencies for tracing; run via ./make.py "
            "(uv launcher) or `uv sync` first"
        ) from exc
    return tracematrix_main(args)


def _run_sphinx_html() -> None:
    OUT_DIR.mkdir(parents=True, exist_ok=True)
    DOCTREE_DIR.mkdir(parents=True, exist_ok=True)

    build_module = importlib.import_module("sphinx.cmd.build")

    args = [
        "-b",
        "html",
        "-W",
        "--keep-going",
        "-T",
        "-d",
        str(DOCTREE_DIR),
        str(SOURCE_DIR),
        str(OUT_DIR),
        "-c",
        str(CONF_DIR),
    ]
    code = build_module.build_main(args)
    if code != 0:
        raise SystemExit(code)


def cmd_validate(_: argparse.Namespace) -> None:
    documents = [str(path) for path in _source_documents()]
    code = _run_tracematrix(["validate", "--config", str(CONFIG_PATH), *documents])
    if code != 0:
        raise SystemExit(f"trace validation failed (exit code {code})")


def cmd_report(args: argparse.Namespace) -> None:
    documents = [str(path) for path in _source_documents()]
    command = [
        "report",
        "--config",
        str(CONFIG_PATH),
        "--output",
        str(REPORT_PATH),
        *documents,
    ]
    if args.fail_on_gaps:
        command.insert(1, "--fail-on-gaps")
    code = _run_tracematrix(command)
    if code != 0:
        raise SystemExit(f"trace report failed (exit code {code})")
    print(f"Wrote trace report to: {REPORT_PATH}")


def cmd_build(args: argparse.Namespace) -> None:
    cmd_validate(args)
    _run_sphinx_html()
    print(f"Wrote HTML build to: {OUT_DIR}")


def main() -> None:
    parser_description = (
        "Trace matrix make entrypoint (defaults to build when no command is provided)"
    )
    parser = argparse.ArgumentParser(
        description=parser_description,
    )
    sub = parser.add_subparsers(dest="cmd")
    parser.set_defaults(func=cmd_build, cmd="build", fail_on_gaps=False)

    p_validate = sub.add_parser(
        "validate", help="Scan the docs and fail on any trace diagnostic."
    )
    p_validate.set_defaults(func=cmd_validate)

    p_report = sub.add_parser("report", help="Write the Markdown trace report.")
    p_report.add_argument(
        "--fail-on-gaps",
        action="store_true",
        help="Fail when any tag is missing required coverage.",
    )
    p_report.set_defaults(func=cmd_report)

    p_build = sub.add_parser("build", help="Run strict Sphinx HTML build.")
    p_build.set_defaults(func=cmd_build)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
