from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from docx import Document
from docx.oxml import OxmlElement
from docx.oxml.ns import qn

from .render import REPORT_TITLE, plain_cell_text
from .table import TraceTable


def _clear_document_body(doc: Document) -> None:
    body = doc._element.body
    # Keep sectPr (section properties) if present, remove everything else
    for child in list(body):
        if child.tag.endswith("}sectPr"):
            continue
        body.remove(child)


def _set_cell_text(cell, text: str) -> None:
    cell.text = ""
    cell.paragraphs[0].text = text


def _set_repeat_table_header(row) -> None:
    tr = row._tr
    trPr = tr.get_or_add_trPr()
    tblHeader = OxmlElement("w:tblHeader")
    tblHeader.set(qn("w:val"), "true")
    trPr.append(tblHeader)


def build_docx(
    tables: Iterable[TraceTable],
    out_docx: Path,
    template_docx: Optional[Path] = None,
    style_name: str = "Table Grid",
) -> None:
    if template_docx is not None:
        doc = Document(str(template_docx))
        _clear_document_body(doc)
    else:
        doc = Document()

    doc.add_heading(REPORT_TITLE, level=1)
    for table in tables:
        doc.add_heading(table.title, level=2)

        tbl = doc.add_table(rows=len(table.rows) + 1, cols=len(table.header))
        tbl.style = style_name

        header_row = tbl.rows[0]
        _set_repeat_table_header(header_row)
        for c_idx, title in enumerate(table.header):
            cell = header_row.cells[c_idx]
            _set_cell_text(cell, title)
            for para in cell.paragraphs:
                for run in para.runs:
                    run.bold = True

        for r_idx, row in enumerate(table.rows, start=1):
            tr = tbl.rows[r_idx]
            for c_idx, text in enumerate(row):
                _set_cell_text(tr.cells[c_idx], plain_cell_text(text))

    out_docx.parent.mkdir(parents=True, exist_ok=True)
    doc.save(str(out_docx))
