from __future__ import annotations

import os
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pagination.variants import PageRole

DEFAULT_MEASURER = os.getenv("PAGINATION_MEASURER", "browser")

MeasurerKind = Literal["browser", "attributes"]


class PaginateRequest(BaseModel):
    """
    One document to paginate.

    - html: the full document (or fragment) holding header/body/footer regions
    - layout_id: registered layout preset (see GET /layouts)
    - page_capacity_px / locale / keep_source: per-request overrides of the layout
    - measurer: "browser" renders in Chromium; "attributes" reads data-height
    """

    model_config = ConfigDict(populate_by_name=True)

    html: str = Field(min_length=1)
    layout_id: str = "a4-portrait"
    page_capacity_px: Optional[float] = Field(default=None, gt=0)
    locale: Optional[str] = None
    keep_source: Optional[bool] = None
    measurer: MeasurerKind = DEFAULT_MEASURER

    @field_validator("html")
    @classmethod
    def html_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("html must not be blank")
        return v


class PageSummary(BaseModel):
    number: int
    role: PageRole
    block_count: int
    remaining_height: float


class TableTotalsOut(BaseModel):
    page: Optional[int] = None
    carry_over: float
    table_total: float


class DiagnosticOut(BaseModel):
    code: str
    message: str
    page: Optional[int] = None


class PaginateResponse(BaseModel):
    html: str
    page_count: int = Field(ge=1)
    pages: List[PageSummary] = Field(default_factory=list)
    tables: List[TableTotalsOut] = Field(default_factory=list)
    diagnostics: List[DiagnosticOut] = Field(default_factory=list)


class LayoutOut(BaseModel):
    layout_id: str
    page_size: str
    page_capacity_px: float
    viewport_width_px: int
