from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Tuple


ReportType = Literal["work", "tea", "material", "enquiry"]


@dataclass(frozen=True)
class ReportDescriptor:
    id: str
    title: str
    url: str
    type: ReportType
    primary_color: str

    @property
    def tab_label(self) -> str:
        return self.title.replace(" Log", "").replace(" Report", "")


@dataclass(frozen=True)
class ReportRules:
    start_keys: Tuple[str, ...] = ()
    end_keys: Tuple[str, ...] = ()
    blacklist: Tuple[str, ...] = ()
    hidden_column_indexes: Tuple[int, ...] = ()


_SHEETS_BASE = "https://docs.google.com/spreadsheets/d/e"

REPORTS: List[ReportDescriptor] = [
    ReportDescriptor(
        id="worklog",
        title="Worklog Report",
        type="work",
        primary_color="text-blue-600",
        url=f"{_SHEETS_BASE}/2PACX-1vRppVpVKZyqlGUMyj5ittwOEzKkG5aarI5T1ZL__ahFnkE_IPAMPRlyKxD3UHP1QZQmvDGSQqp2nXya/pub?gid=963052324&single=true&output=csv",
    ),
    ReportDescriptor(
        id="material",
        title="Material Log Report",
        type="material",
        primary_color="text-amber-600",
        url=f"{_SHEETS_BASE}/2PACX-1vRojP6VfHlmeCYOYSW5NGTlXvHFK_M4MGgiziRwc443SCJGOD2K13qS9aF4_lLJeAEXa3VDh_lhIQWS/pub?gid=1476787141&single=true&output=csv",
    ),
    ReportDescriptor(
        id="enquiry",
        title="Site Enquiry Log",
        type="enquiry",
        primary_color="text-purple-600",
        url=f"{_SHEETS_BASE}/2PACX-1vTzOSn7-7AhZkO5znAq056hNmZlToLGWEVeWxDHgmG7K3ycuBpIJLRRXLzSx7aCAdPbhZU8jkzm_dSP/pub?gid=0&single=true&output=csv",
    ),
    ReportDescriptor(
        id="tealog",
        title="Tea Log Report",
        type="tea",
        primary_color="text-emerald-600",
        url=f"{_SHEETS_BASE}/2PACX-1vSfFMFhgoEGZjCoX9WMlb5cH8nAaL3D7yE2w4De1Ba5bgThAD5C4yAk6pkW9Y0NDVTMr7dZ3fiemR6J/pub?gid=1343982457&single=true&output=csv",
    ),
]

DEFAULT_REPORT_ID = REPORTS[0].id

# Facet placement and column visibility per report. Reports without an entry use ReportRules().
REPORT_RULES: Dict[str, ReportRules] = {
    "worklog": ReportRules(
        end_keys=("Work Description",),
        blacklist=("MA",),
        hidden_column_indexes=(2, 3),
    ),
    "material": ReportRules(
        start_keys=("Material", "Materials"),
        hidden_column_indexes=(2,),
    ),
    "tealog": ReportRules(
        blacklist=("Biscuit", "Biscuits"),
    ),
}


def get_report(report_id: str) -> Optional[ReportDescriptor]:
    for report in REPORTS:
        if report.id == report_id:
            return report
    return None


def get_report_or_default(report_id: Optional[str]) -> ReportDescriptor:
    return get_report(report_id or "") or REPORTS[0]


def get_rules(report_id: str) -> ReportRules:
    return REPORT_RULES.get(report_id, ReportRules())
