from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from report_core.data import Record, parse_date, parse_float
from report_core.reports import get_rules


SAMPLE_ROWS = 10
MAX_FILTER_COLUMNS = 4
MAX_DISTINCT_VALUES = 20

_DATE_KEY_HINTS = ("date", "timestamp", "time")
_DATE_SEPARATORS = re.compile(r"[/.-]")
_HAS_DIGIT = re.compile(r"\d")
_CURRENCY_KEY = re.compile(r"amount|price|cost|total", re.IGNORECASE)


@dataclass(frozen=True)
class ColumnDefinition:
    key: str
    label: str
    is_numeric: bool = False
    is_date: bool = False


def _sample_value(table: Sequence[Record], key: str) -> str:
    for row in table[:SAMPLE_ROWS]:
        value = row.get(key)
        if value:
            return str(value)
    return ""


def _looks_like_date(key: str, sample: str) -> bool:
    lowered = key.lower()
    if any(hint in lowered for hint in _DATE_KEY_HINTS):
        return True
    if not sample:
        return False
    return len(sample) > 5 and bool(_DATE_SEPARATORS.search(sample)) and parse_date(sample) is not None


def _looks_numeric(sample: str) -> bool:
    return parse_float(sample.replace(",", "")) is not None and bool(_HAS_DIGIT.search(sample))


def make_label(key: str) -> str:
    return key[:1].upper() + key[1:]


def identify_columns(table: Sequence[Record]) -> List[ColumnDefinition]:
    """Classify every header key as date, numeric or text from a sample of the first rows."""
    if not table:
        return []
    columns: List[ColumnDefinition] = []
    for key in table[0].keys():
        sample = _sample_value(table, key)
        is_date = _looks_like_date(key, sample)
        is_numeric = not is_date and _looks_numeric(sample)
        columns.append(ColumnDefinition(key=key, label=make_label(key), is_numeric=is_numeric, is_date=is_date))
    return columns


def apply_report_columns(columns: Sequence[ColumnDefinition], report_id: str) -> List[ColumnDefinition]:
    hidden = set(get_rules(report_id).hidden_column_indexes)
    return [col for idx, col in enumerate(columns) if idx not in hidden]


def is_currency_column(col: ColumnDefinition) -> bool:
    return col.is_numeric and bool(_CURRENCY_KEY.search(col.key))


def _matches(col: ColumnDefinition, names: Iterable[str]) -> bool:
    key = col.key.lower().strip()
    label = col.label.lower().strip()
    return any(key == n.lower() or label == n.lower() for n in names)


def _distinct_count(table: Sequence[Record], key: str) -> int:
    return len({str(row.get(key)) for row in table})


def select_filter_columns(
    columns: Sequence[ColumnDefinition],
    table: Sequence[Record],
    report_id: str,
) -> List[ColumnDefinition]:
    rules = get_rules(report_id)
    start_cols = [col for col in columns if _matches(col, rules.start_keys)]
    end_cols = [col for col in columns if _matches(col, rules.end_keys)]
    forced = {col.key for col in start_cols} | {col.key for col in end_cols}

    auto_cols: List[ColumnDefinition] = []
    for col in columns:
        if col.key in forced or _matches(col, rules.blacklist):
            continue
        if col.is_numeric and "amount" in col.label.lower():
            continue
        if 0 < _distinct_count(table, col.key) < MAX_DISTINCT_VALUES:
            auto_cols.append(col)

    available_slots = max(0, MAX_FILTER_COLUMNS - len(start_cols) - len(end_cols))
    return [*start_cols, *auto_cols[:available_slots], *end_cols]


def facet_options(table: Iterable[Record], key: str) -> List[str]:
    return sorted({str(row.get(key)) for row in table})
