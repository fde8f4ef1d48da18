"""Requirements trace matrices built from bracket annotations in free text."""

from __future__ import annotations

from .config import DEFAULT_CONFIG, RuleGraph, TraceConfig, load_config
from .coverage import CoverageEngine
from .grammar import extract_tags, strip_tags, tag_id, tag_type
from .records import Definition, Diagnostic, Relationship, ScanResult
from .scanner import Scanner, scan_documents, scan_files
from .table import TraceTable, build_reports, build_table
from .validate import ConfigError

__all__ = [
    "ConfigError",
    "CoverageEngine",
    "DEFAULT_CONFIG",
    "Definition",
    "Diagnostic",
    "Relationship",
    "RuleGraph",
    "ScanResult",
    "Scanner",
    "TraceConfig",
    "TraceTable",
    "build_reports",
    "build_table",
    "extract_tags",
    "load_config",
    "scan_documents",
    "scan_files",
    "strip_tags",
    "tag_id",
    "tag_type",
]
