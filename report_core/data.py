from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Dict, Iterable, List, Optional

import pandas as pd
import requests


logger = logging.getLogger(__name__)

Record = Dict[str, str]

FETCH_TIMEOUT_SECONDS = 30.0
CURRENCY_PRECISION = 350

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_ENCLOSING_QUOTE = re.compile(r'^"|"$')

# D/M/Y with optional H:M[:S]; separators may be mixed.
_DAY_FIRST = re.compile(
    r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{2,4})(?:\s+(\d{1,2}):(\d{1,2})(?::(\d{1,2}))?)?$"
)
_FALLBACK_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
)
_EPOCH = datetime(1970, 1, 1)

_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_NON_NUMERIC = re.compile(r"[^0-9.-]+")
_AMOUNT_KEY = re.compile(r"amount|cost|price|total|value", re.IGNORECASE)


# ---------------- Tokenizing ----------------
def split_csv_line(line: str) -> List[str]:
    """Split one CSV line into trimmed fields.

    A double quote toggles quoted mode, in which commas are literal. Quote
    characters are kept while scanning; afterwards each field is trimmed, one
    leading and one trailing quote are removed and ``""`` collapses to ``"``.
    Unbalanced quotes never raise.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
            current.append(char)
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    fields.append("".join(current).strip())
    return [_ENCLOSING_QUOTE.sub("", f).replace('""', '"') for f in fields]


# ---------------- Dates ----------------
def _to_millis(value: datetime) -> int:
    return (value - _EPOCH) // timedelta(milliseconds=1)


def _parse_day_first(text: str) -> Optional[int]:
    match = _DAY_FIRST.match(text)
    if not match:
        return None
    day = int(match.group(1))
    month = int(match.group(2))
    year = int(match.group(3))
    if year < 100:
        year += 2000
    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None
    hour, minute, second = (int(g) if g else 0 for g in match.group(4, 5, 6))
    # Out-of-range days and hours roll forward, e.g. 31/04 -> 1 May.
    try:
        instant = datetime(year, month, 1) + timedelta(days=day - 1, hours=hour, minutes=minute, seconds=second)
    except (ValueError, OverflowError):
        return None
    return _to_millis(instant)


def _timestamp_millis(value: object) -> Optional[int]:
    if value is None or pd.isna(value):
        return None
    # Units vary (ns, us, ms); .value is only nanoseconds.
    try:
        stamp = pd.Timestamp(value)
        if stamp.tzinfo is not None:
            stamp = stamp.tz_convert("UTC").tz_localize(None)
        return _to_millis(stamp.to_pydatetime())
    except (OverflowError, ValueError):
        return None


def _parse_fallback(text: str) -> Optional[int]:
    try:
        parsed = pd.to_datetime(text, format="ISO8601", errors="coerce")
    except (OverflowError, ValueError):
        parsed = None
    millis = _timestamp_millis(parsed)
    if millis is not None:
        return millis
    for fmt in _FALLBACK_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return _to_millis(parsed)
    return None


def parse_date(value: object) -> Optional[int]:
    """Return milliseconds since the epoch, or None when ``value`` is not a date.

    Day/month/year strings win over every other reading, so ``03/04/2024`` is
    3 April. Anything else goes through ISO-8601 and a few common layouts.
    """
    text = str(value).strip() if value is not None else ""
    if not text:
        return None
    millis = _parse_day_first(text)
    if millis is not None:
        return millis
    return _parse_fallback(text)


# ---------------- Numbers ----------------
def parse_float(value: object) -> Optional[float]:
    """Read the leading float of ``value`` (``"12 kg"`` -> 12.0), or None."""
    if value is None:
        return None
    match = _FLOAT_PREFIX.match(str(value))
    if not match:
        return None
    try:
        out = float(match.group(1))
    except (OverflowError, ValueError):
        return None
    if math.isnan(out):
        return None
    return out


def numeric_value(value: object) -> Optional[float]:
    """Strip everything except digits, ``.`` and ``-`` and read the leading float."""
    if value is None:
        return None
    return parse_float(_NON_NUMERIC.sub("", str(value)))


def format_currency(amount: object) -> str:
    if amount is None:
        return "N/A"
    try:
        value = float(amount)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return "N/A"
    if math.isnan(value) or math.isinf(value):
        return "N/A"
    # Room for every finite float (up to 309 integer digits) plus the cents.
    with localcontext() as ctx:
        ctx.prec = CURRENCY_PRECISION
        quantized = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        sign = "-" if quantized < 0 else ""
        whole, fraction = f"{abs(quantized):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups: List[str] = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}₹{whole}.{fraction}"


def calculate_total_amount(rows: Iterable[Record]) -> float:
    rows = list(rows)
    if not rows:
        return 0.0
    amount_key = next((k for k in rows[0] if _AMOUNT_KEY.search(k)), None)
    if amount_key is None:
        return 0.0
    return float(sum(numeric_value(row.get(amount_key)) or 0.0 for row in rows))


# ---------------- Loaders ----------------
def parse_csv_text(text: str) -> List[Record]:
    if not text:
        return []
    text = text.lstrip("\ufeff")
    lines = [line for line in _LINE_BREAK.split(text) if line.strip()]
    if len(lines) < 2:
        return []

    headers = [h.strip() for h in split_csv_line(lines[0])]
    records: List[Record] = []
    dropped = 0
    for line in lines[1:]:
        values = split_csv_line(line)
        if len(values) != len(headers):
            dropped += 1
            continue
        records.append(dict(zip(headers, values)))
    if dropped:
        logger.debug("Dropped %d rows with a field count other than %d", dropped, len(headers))
    return records


def request_report_table(url: str, *, timeout: float = FETCH_TIMEOUT_SECONDS) -> List[Record]:
    """GET a published CSV export and parse it. HTTP and transport errors propagate."""
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    response.encoding = "utf-8"
    return parse_csv_text(response.text)


def fetch_report_table(url: str, *, timeout: float = FETCH_TIMEOUT_SECONDS) -> List[Record]:
    """Like :func:`request_report_table`, but failures are logged and yield []."""
    try:
        return request_report_table(url, timeout=timeout)
    except Exception:
        logger.exception("Error fetching CSV from %s", url)
        return []
