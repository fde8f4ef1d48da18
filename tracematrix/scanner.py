"""Collect tag definitions and coverage relationships from documents."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .grammar import (
    COVER_OP,
    PARTIAL_OP,
    extract_tags,
    is_anonymous,
    is_definition_op,
    strip_tags,
)
from .records import Definition, Diagnostic, Relationship, ScanResult

logger = logging.getLogger(__name__)


class Scanner:
    """Line-by-line scanner over one or more documents.

    The last resolved left-hand tag is carried across lines and documents so
    that ``[=>R1]`` attaches to whatever was most recently named.
    """

    def __init__(self) -> None:
        self.definitions: dict[str, Definition] = {}
        self.relationships: list[Relationship] = []
        self.diagnostics: list[Diagnostic] = []
        self.context: str | None = None
        self._target_locations: dict[str, tuple[str, int]] = {}

    def scan_lines(self, document: str, lines: Iterable[str]) -> None:
        for line_no, line in enumerate(lines, start=1):
            self._scan_line(document, line_no, line.rstrip("\n"))

    def scan_text(self, document: str, text: str) -> None:
        self.scan_lines(document, text.splitlines())

    def _diagnose(self, kind: str, message: str, document: str, line: int) -> None:
        diagnostic = Diagnostic(kind, message, document, line)
        logger.warning("%s", diagnostic)
        self.diagnostics.append(diagnostic)

    def _scan_line(self, document: str, line_no: int, line: str) -> None:
        for left, op, right in extract_tags(line):
            if left is None:
                left = self.context
            if left is None:
                self._diagnose(
                    "missing-left",
                    f"can't find left hand side for '{op}{right or ''}'",
                    document,
                    line_no,
                )
                continue

            if is_anonymous(left):
                left = f"{left}:{document}:{line_no}"
                if left not in self.definitions:
                    self.definitions[left] = Definition(
                        document, line_no, strip_tags(line), op == PARTIAL_OP
                    )
            elif is_definition_op(op):
                existing = self.definitions.get(left)
                if existing is not None:
                    self._diagnose(
                        "duplicate-definition",
                        f"duplicate definition of {left} "
                        f"(first defined at {existing.document}:{existing.line})",
                        document,
                        line_no,
                    )
                else:
                    self.definitions[left] = Definition(
                        document, line_no, strip_tags(line), op == PARTIAL_OP
                    )

            if op == COVER_OP:
                if right is None:
                    self._diagnose(
                        "missing-right",
                        f"coverage reference from {left} has no right hand side",
                        document,
                        line_no,
                    )
                else:
                    self.relationships.append(Relationship(left, right))
                    self._target_locations.setdefault(right, (document, line_no))

            logger.debug("%s:%d: %s %s %s", document, line_no, left, op, right or "")
            self.context = left

    def result(self) -> ScanResult:
        diagnostics = list(self.diagnostics)
        for target, (document, line_no) in self._target_locations.items():
            if target not in self.definitions:
                diagnostic = Diagnostic(
                    "undefined-target",
                    f"{target} is referenced but never defined",
                    document,
                    line_no,
                )
                logger.info("%s", diagnostic)
                diagnostics.append(diagnostic)
        return ScanResult(
            definitions=dict(self.definitions),
            relationships=list(self.relationships),
            diagnostics=diagnostics,
        )


def scan_documents(documents: Iterable[tuple[str, Iterable[str]]]) -> ScanResult:
    scanner = Scanner()
    for document, lines in documents:
        scanner.scan_lines(document, lines)
    return scanner.result()


def scan_files(paths: Iterable[Path | str]) -> ScanResult:
    scanner = Scanner()
    for path in paths:
        text = Path(path).read_text(encoding="utf-8")
        scanner.scan_text(str(path), text)
    return scanner.result()
