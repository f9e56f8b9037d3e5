from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Literal, Optional


SortDirection = Literal["asc", "desc"]
PAGE_SIZE_OPTIONS = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = PAGE_SIZE_OPTIONS[0]


@dataclass(frozen=True)
class SortSpec:
    key: str
    direction: SortDirection = "asc"


@dataclass(frozen=True)
class TableView:
    filters: Dict[str, str] = field(default_factory=dict)
    search: str = ""
    sort: Optional[SortSpec] = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


def _as_filter_state(values: Optional[dict]) -> Dict[str, str]:
    if not values:
        return {}
    out: Dict[str, str] = {}
    for k, v in values.items():
        if k is None or v is None:
            continue
        out[str(k)] = str(v)
    return out


def _as_sort(raw: object) -> Optional[SortSpec]:
    if not raw:
        return None
    if isinstance(raw, SortSpec):
        return raw
    if not isinstance(raw, dict) or not raw.get("key"):
        return None
    direction = "desc" if str(raw.get("direction", "asc")).lower() == "desc" else "asc"
    return SortSpec(key=str(raw["key"]), direction=direction)


def normalize_view(raw: dict) -> TableView:
    filters = _as_filter_state(raw.get("filters"))
    search = str(raw.get("search") or "")
    sort = _as_sort(raw.get("sort"))

    page_size = raw.get("page_size", DEFAULT_PAGE_SIZE)
    try:
        page_size = int(page_size)
    except Exception:
        page_size = DEFAULT_PAGE_SIZE
    if page_size not in PAGE_SIZE_OPTIONS:
        page_size = DEFAULT_PAGE_SIZE

    page = raw.get("page", 1)
    try:
        page = int(page)
    except Exception:
        page = 1
    page = max(1, page)

    return TableView(filters=filters, search=search, sort=sort, page=page, page_size=page_size)


def toggle_sort(current: Optional[SortSpec], key: str) -> SortSpec:
    """Clicking the sorted column flips asc -> desc; anything else sorts ascending."""
    if current is not None and current.key == key and current.direction == "asc":
        return SortSpec(key=key, direction="desc")
    return SortSpec(key=key, direction="asc")


def reset_page_if_needed(
    previous: TableView,
    current: TableView,
    *,
    rows_before: int,
    rows_after: int,
) -> TableView:
    """Return ``current`` on page 1 when the row count, page size or search term changed."""
    if (
        rows_before != rows_after
        or previous.page_size != current.page_size
        or previous.search != current.search
    ):
        return replace(current, page=1)
    return current
