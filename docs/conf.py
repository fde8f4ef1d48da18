from __future__ import annotations

import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

project = "Trace Matrix"
author = "Trace Matrix contributors"
copyright = "2026, Trace Matrix contributors"

extensions = [
    "myst_parser",
    "exts.tracematrix_sphinx",
]

source_suffix = {
    ".md": "markdown",
}

master_doc = "index"
exclude_patterns = [
    "_build",
]

nitpicky = True
show_warning_types = True
suppress_warnings: list[str] = []

html_theme = "alabaster"
html_static_path: list[str] = []

myst_enable_extensions = [
    "colon_fence",
]

tracematrix_config_path = str(REPO_ROOT / "tracematrix.yaml")
tracematrix_strict = bool(os.environ.get("TRACEMATRIX_STRICT", ""))
