from __future__ import annotations

from pathlib import Path

import pytest

WIDGET_DOCUMENTS = {
    "hazards.md": [
        "# Hazards",
        "",
        "[**H1**:] Water ingress shorts the battery.",
        "",
        "[**H2**:] An unauthorised user opens the Widget.",
    ],
    "requirements.md": [
        "[**R1**:] The Widget is waterproof. [=>**H1**]",
    ],
    "design.md": [
        "[**D8**:] The enclosure is sealed by o-rings. [=>R1]",
    ],
    "tests.md": [
        "[**T11**:] Immerse the Widget in 1m of water. [=>R1] [=>D8]",
        "[**TR11**:] No water found inside the enclosure. [=>T11]",
    ],
    "widget.py": [
        "def seal():",
        "    fit_o_rings()  # [I=>D8]",
    ],
}


@pytest.fixture
def widget_documents() -> list[tuple[str, list[str]]]:
    return [(name, list(lines)) for name, lines in WIDGET_DOCUMENTS.items()]


@pytest.fixture
def widget_files(tmp_path: Path) -> list[Path]:
    paths: list[Path] = []
    for name, lines in WIDGET_DOCUMENTS.items():
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        paths.append(path)
    return paths
