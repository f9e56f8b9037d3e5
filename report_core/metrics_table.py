from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from report_core.columns import ColumnDefinition, facet_options, is_currency_column
from report_core.data import Record, calculate_total_amount, format_currency, numeric_value
from report_core.filters import PAGE_SIZE_OPTIONS, TableView
from report_core.processing import page_numbers, paginate


def display_value(row: Record, col: ColumnDefinition) -> str:
    value = row.get(col.key)
    if is_currency_column(col):
        return format_currency(numeric_value(value) or 0)
    return "" if value is None else str(value)


def report_payload(report) -> Dict[str, Any]:
    if report is None:
        return {}
    return {**asdict(report), "tab_label": report.tab_label}


def compute_table(view: TableView, ctx: Dict[str, Any]) -> Dict[str, Any]:
    table: List[Record] = ctx.get("table", [])
    columns: List[ColumnDefinition] = ctx.get("columns", [])
    facet_columns: List[ColumnDefinition] = ctx.get("facet_columns", [])
    processed: List[Record] = ctx.get("processed_rows", [])

    window = paginate(processed, view.page, view.page_size)
    total_amount = calculate_total_amount(processed)
    effective_view = asdict(view)
    effective_view["page"] = window.page

    return {
        "report": report_payload(ctx.get("report")),
        "view": effective_view,
        "columns": [asdict(c) for c in columns],
        "facets": [
            {"key": c.key, "label": c.label, "options": facet_options(table, c.key)}
            for c in facet_columns
        ],
        "rows": [{c.key: display_value(row, c) for c in columns} for row in window.rows],
        "pagination": {
            "page": window.page,
            "page_size": window.page_size,
            "page_size_options": list(PAGE_SIZE_OPTIONS),
            "total": window.total,
            "total_pages": window.total_pages,
            "start": window.start,
            "end": window.end,
            "pages": page_numbers(window.page, window.total_pages),
            "has_previous": window.page > 1,
            "has_next": window.page < window.total_pages,
        },
        "total_amount": total_amount,
        "total_amount_display": format_currency(total_amount),
        "source_rows": len(table),
        "empty": not table,
    }
