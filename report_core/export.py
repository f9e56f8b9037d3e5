from __future__ import annotations

import io
import re
from datetime import date
from typing import List, Optional, Protocol, Sequence, Tuple

from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure

from report_core.columns import ColumnDefinition
from report_core.data import Record
from report_core.reports import ReportDescriptor


A4_PORTRAIT = (8.27, 11.69)
HEADER_COLOR = "#3b82f6"
MAX_CELL_CHARS = 40


class ExportSink(Protocol):
    def render(self, title: str, column_labels: Sequence[str], rows: Sequence[Sequence[object]]) -> bytes:
        ...


def _cell(value: object) -> str:
    text = "" if value is None else str(value)
    if len(text) > MAX_CELL_CHARS:
        return text[: MAX_CELL_CHARS - 1] + "…"
    return text


class MatplotlibPdfSink:
    """Title line, generation date and a grid table, split across A4 pages."""

    def __init__(self, *, rows_per_page: int = 35, font_size: int = 8, generated_on: Optional[date] = None):
        self.rows_per_page = max(1, int(rows_per_page))
        self.font_size = font_size
        self.generated_on = generated_on

    def _page(self, title: str, column_labels: Sequence[str], rows: Sequence[Sequence[object]], first: bool) -> Figure:
        fig = Figure(figsize=A4_PORTRAIT)
        if first:
            generated_on = self.generated_on or date.today()
            fig.text(0.06, 0.96, title, fontsize=18, va="top")
            fig.text(0.06, 0.925, f"Generated on {generated_on:%d/%m/%Y}", fontsize=11, color="#646464", va="top")
        ax = fig.add_axes((0.06, 0.05, 0.88, 0.85))
        ax.axis("off")
        if not column_labels:
            return fig

        cell_text = [[_cell(label) for label in column_labels]]
        cell_text += [[_cell(v) for v in row] for row in rows]
        table = ax.table(cellText=cell_text, loc="upper center", cellLoc="left")
        table.auto_set_font_size(False)
        table.set_fontsize(self.font_size)
        for (r, _), cell in table.get_celld().items():
            cell.set_edgecolor("#cbd5e1")
            if r == 0:
                cell.set_facecolor(HEADER_COLOR)
                cell.get_text().set_color("white")
                cell.get_text().set_fontweight("bold")
        return fig

    def render(self, title: str, column_labels: Sequence[str], rows: Sequence[Sequence[object]]) -> bytes:
        chunks = [rows[i : i + self.rows_per_page] for i in range(0, len(rows), self.rows_per_page)] or [[]]
        buffer = io.BytesIO()
        with PdfPages(buffer) as pdf:
            for idx, chunk in enumerate(chunks):
                pdf.savefig(self._page(title, column_labels, chunk, first=idx == 0))
        return buffer.getvalue()


def export_filename(title: str) -> str:
    return re.sub(r"\s+", "_", title) + "_Report.pdf"


def export_table(columns: Sequence[ColumnDefinition], rows: Sequence[Record]) -> Tuple[List[str], List[List[object]]]:
    labels = [c.label for c in columns]
    body = [[row.get(c.key, "") for c in columns] for row in rows]
    return labels, body


def export_report(
    report: ReportDescriptor,
    columns: Sequence[ColumnDefinition],
    rows: Sequence[Record],
    sink: Optional[ExportSink] = None,
) -> Tuple[str, bytes]:
    """Render every processed row (not just the visible page) through ``sink``."""
    labels, body = export_table(columns, rows)
    document = (sink or MatplotlibPdfSink()).render(report.title, labels, body)
    return export_filename(report.title), document
