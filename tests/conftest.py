"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime

import pytest

from report_core.context import _load_report_data_cached
from report_core.data import parse_csv_text


@pytest.fixture
def millis():
    """Milliseconds since the epoch for a naive datetime built from the arguments."""

    def _millis(*args) -> int:
        return int((datetime(*args) - datetime(1970, 1, 1)).total_seconds() * 1000)

    return _millis


@pytest.fixture
def mixed_csv():
    """Date/amount/type sheet with one unparseable row."""
    return (
        'Date,Amount,Type\n'
        '01/02/2024,"1,000.50",A\n'
        '15/06/2024,200,B\n'
        'bad,abc,C\n'
    )


@pytest.fixture
def mixed_table(mixed_csv):
    return parse_csv_text(mixed_csv)


@pytest.fixture
def worklog_csv():
    """Worklog-shaped sheet; columns 2 and 3 are hidden for this report."""
    return (
        "Date,Site,Entered By,Timestamp,Work Description,MA,Amount\n"
        "01/02/2024,North,ravi,01/02/2024 09:00,Plastering,2,\"1,200\"\n"
        "02/02/2024,South,ravi,02/02/2024 09:10,Tiling,1,800\n"
        "03/02/2024,North,anita,03/02/2024 09:20,Painting,2,450.50\n"
        "04/02/2024,East,anita,04/02/2024 09:30,Tiling,3,300\n"
    )


@pytest.fixture
def worklog_table(worklog_csv):
    return parse_csv_text(worklog_csv)


@pytest.fixture(autouse=True)
def clear_report_cache():
    """Each test starts with an empty report cache."""
    _load_report_data_cached.cache_clear()
    yield
    _load_report_data_cached.cache_clear()
