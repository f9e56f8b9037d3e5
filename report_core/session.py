"""Active-report session state.

Every setter returns a new snapshot; derived views are recomputed from the
latest snapshot through :func:`report_core.context.prepare_context`.

Loads are tagged with the generation that was current when they started.
A load that finishes after the user has switched reports (or refreshed
again) carries an old generation and is dropped instead of overwriting the
newer selection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from report_core.columns import ColumnDefinition
from report_core.context import build_report_data, prepare_context
from report_core.data import Record, fetch_report_table
from report_core.filters import PAGE_SIZE_OPTIONS, TableView, reset_page_if_needed, toggle_sort
from report_core.processing import apply_filters, apply_search
from report_core.reports import DEFAULT_REPORT_ID, ReportDescriptor, get_report_or_default


logger = logging.getLogger(__name__)

Fetcher = Callable[[str], List[Record]]


@dataclass(frozen=True)
class ReportSession:
    report_id: str = DEFAULT_REPORT_ID
    generation: int = 0
    loading: bool = False
    table: List[Record] = field(default_factory=list)
    columns: List[ColumnDefinition] = field(default_factory=list)
    facet_columns: List[ColumnDefinition] = field(default_factory=list)
    view: TableView = field(default_factory=TableView)

    @property
    def report(self) -> ReportDescriptor:
        return get_report_or_default(self.report_id)

    # ---------------- Loading ----------------
    def select_report(self, report_id: str) -> "ReportSession":
        report = get_report_or_default(report_id)
        return replace(
            self,
            report_id=report.id,
            generation=self.generation + 1,
            loading=True,
            table=[],
            columns=[],
            facet_columns=[],
            view=TableView(search=self.view.search, page_size=self.view.page_size),
        )

    def begin_refresh(self) -> "ReportSession":
        return self.select_report(self.report_id)

    def apply_loaded(self, generation: int, table: List[Record]) -> "ReportSession":
        if generation != self.generation:
            logger.info(
                "Ignoring stale load (generation %d, current %d) for %s",
                generation,
                self.generation,
                self.report_id,
            )
            return self
        data = build_report_data(self.report, table)
        return replace(
            self,
            loading=False,
            table=data["table"],
            columns=data["columns"],
            facet_columns=data["facet_columns"],
            view=replace(self.view, page=1),
        )

    def load(self, fetch: Optional[Fetcher] = None) -> "ReportSession":
        generation = self.generation
        table = (fetch or fetch_report_table)(self.report.url)
        return self.apply_loaded(generation, table)

    # ---------------- View changes ----------------
    def _visible_count(self, view: TableView) -> int:
        return len(apply_search(apply_filters(self.table, view.filters), view.search))

    def _with_view(self, view: TableView) -> "ReportSession":
        view = reset_page_if_needed(
            self.view,
            view,
            rows_before=self._visible_count(self.view),
            rows_after=self._visible_count(view),
        )
        return replace(self, view=view)

    def with_filter(self, key: str, value: str) -> "ReportSession":
        filters = {**self.view.filters, key: value or ""}
        return self._with_view(replace(self.view, filters=filters))

    def clear_filters(self) -> "ReportSession":
        return self._with_view(replace(self.view, filters={}))

    def with_search(self, search: str) -> "ReportSession":
        return self._with_view(replace(self.view, search=search or ""))

    def with_sort(self, key: str) -> "ReportSession":
        return self._with_view(replace(self.view, sort=toggle_sort(self.view.sort, key)))

    def with_page(self, page: int) -> "ReportSession":
        return replace(self, view=replace(self.view, page=max(1, int(page))))

    def with_page_size(self, page_size: int) -> "ReportSession":
        if page_size not in PAGE_SIZE_OPTIONS:
            return self
        return self._with_view(replace(self.view, page_size=page_size))

    # ---------------- Derived ----------------
    def context(self) -> Dict[str, Any]:
        data_ctx = {
            "report": self.report,
            "table": self.table,
            "columns": self.columns,
            "facet_columns": self.facet_columns,
        }
        return prepare_context(self.view, data_ctx)
