from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, List

from report_core.columns import (
    ColumnDefinition,
    apply_report_columns,
    identify_columns,
    select_filter_columns,
)
from report_core.data import Record, request_report_table
from report_core.filters import TableView, normalize_view
from report_core.processing import apply_filters, apply_search, sort_rows
from report_core.reports import REPORTS, ReportDescriptor, get_report_or_default


logger = logging.getLogger(__name__)


def build_report_data(report: ReportDescriptor, table: List[Record]) -> Dict[str, object]:
    all_columns = identify_columns(table)
    columns = apply_report_columns(all_columns, report.id)
    return {
        "report": report,
        "table": table,
        "all_columns": all_columns,
        "columns": columns,
        "facet_columns": select_filter_columns(columns, table, report.id),
    }


# ---------------- Public API ----------------
@lru_cache(maxsize=len(REPORTS))
def _load_report_data_cached(report_id: str) -> Dict[str, object]:
    report = get_report_or_default(report_id)
    return build_report_data(report, request_report_table(report.url))


def load_report_data(report_id: str, *, refresh: bool = False) -> Dict[str, object]:
    """Cached report data. A failed fetch is logged, not cached, and yields an empty table."""
    if refresh:
        _load_report_data_cached.cache_clear()
    try:
        return _load_report_data_cached(report_id)
    except Exception:
        logger.exception("Error loading report %s", report_id)
        return build_report_data(get_report_or_default(report_id), [])


def prepare_context(view: dict | TableView, data_ctx: Dict[str, object]) -> Dict[str, object]:
    table: List[Record] = data_ctx.get("table", [])  # type: ignore[assignment]
    columns: List[ColumnDefinition] = data_ctx.get("columns", [])  # type: ignore[assignment]
    v = view if isinstance(view, TableView) else normalize_view(view)

    filtered_rows = apply_filters(table, v.filters)
    searched_rows = apply_search(filtered_rows, v.search)
    processed_rows = sort_rows(searched_rows, columns, v.sort)

    return {
        "view": v,
        "report": data_ctx.get("report"),
        "table": table,
        "columns": columns,
        "facet_columns": data_ctx.get("facet_columns", []),
        "filtered_rows": filtered_rows,
        "processed_rows": processed_rows,
    }
