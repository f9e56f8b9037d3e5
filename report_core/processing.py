from __future__ import annotations

import math
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from report_core.columns import ColumnDefinition
from report_core.data import Record, numeric_value, parse_date
from report_core.filters import SortSpec


MAX_PAGE_BUTTONS = 5


@dataclass(frozen=True)
class PageWindow:
    rows: List[Record] = field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total: int = 0
    total_pages: int = 0
    start: int = 0
    end: int = 0


def apply_filters(table: Iterable[Record], filters: Dict[str, str]) -> List[Record]:
    active = {k: v for k, v in (filters or {}).items() if v}
    if not active:
        return list(table)
    return [row for row in table if all(str(row.get(k)) == v for k, v in active.items())]


def apply_search(rows: Iterable[Record], search: str) -> List[Record]:
    term = (search or "").lower()
    if not term:
        return list(rows)
    return [row for row in rows if any(term in str(v).lower() for v in row.values())]


def _sign(a, b) -> int:
    return (a > b) - (a < b)


def sort_rows(
    rows: Sequence[Record],
    columns: Sequence[ColumnDefinition],
    sort: Optional[SortSpec],
) -> List[Record]:
    """Stable, column-type-aware sort.

    Dates compare by timestamp and unparseable dates always sink below
    parseable ones, whichever the direction. Numeric columns compare on the
    digits left after stripping everything else. The rest compare as text.
    """
    if sort is None:
        return list(rows)
    col = next((c for c in columns if c.key == sort.key), None)
    is_date = col is not None and col.is_date
    is_numeric = col is not None and col.is_numeric
    flip = -1 if sort.direction == "desc" else 1

    def _keyed(row: Record) -> Tuple[Record, str, Optional[int], Optional[float]]:
        raw = str(row.get(sort.key))
        return (
            row,
            raw,
            parse_date(raw) if is_date else None,
            numeric_value(raw) if is_numeric else None,
        )

    def _compare(a, b) -> int:
        _, raw_a, date_a, num_a = a
        _, raw_b, date_b, num_b = b
        if is_date:
            if date_a is not None and date_b is not None:
                return flip * _sign(date_a, date_b)
            if date_a is not None:
                return -1
            if date_b is not None:
                return 1
        if is_numeric and num_a is not None and num_b is not None:
            return flip * _sign(num_a, num_b)
        return flip * _sign(raw_a, raw_b)

    keyed = [_keyed(row) for row in rows]
    keyed.sort(key=cmp_to_key(_compare))
    return [item[0] for item in keyed]


def paginate(rows: Sequence[Record], page: int, page_size: int) -> PageWindow:
    total = len(rows)
    total_pages = math.ceil(total / page_size) if page_size > 0 else 0
    page = min(max(1, page), max(1, total_pages))
    first = (page - 1) * page_size
    last = first + page_size
    return PageWindow(
        rows=list(rows[first:last]),
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
        start=first + 1 if total else 0,
        end=min(last, total),
    )


def page_numbers(page: int, total_pages: int) -> List[int]:
    """Page buttons to show: up to five, sliding to keep the current page centred past page 3."""
    out: List[int] = []
    for i in range(min(MAX_PAGE_BUTTONS, total_pages)):
        number = i + 1
        if total_pages > MAX_PAGE_BUTTONS and page > 3:
            number = page - 2 + i
        if number > total_pages:
            continue
        out.append(number)
    return out

