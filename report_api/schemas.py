from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class SortModel(BaseModel):
    key: str
    direction: Literal["asc", "desc"] = "asc"


class TableViewModel(BaseModel):
    filters: Dict[str, str] = Field(default_factory=dict)
    search: str = ""
    sort: Optional[SortModel] = None
    page: int = 1
    page_size: int = 10


class EntryRequestModel(TableViewModel):
    index: int = Field(ge=0)


class ColumnModel(BaseModel):
    key: str
    label: str
    is_numeric: bool = False
    is_date: bool = False


class ReportModel(BaseModel):
    id: str
    title: str
    type: str
    primary_color: str
    tab_label: str


class MetaReportsResponse(BaseModel):
    reports: List[ReportModel]
    default_report: str


class ColumnsResponse(BaseModel):
    columns: List[ColumnModel]
    facets: List[ColumnModel]


class MetaListResponse(BaseModel):
    values: List[str]
