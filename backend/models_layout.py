"""Page layout configuration for pagination runs."""
from __future__ import annotations

import os
from typing import Dict, List, Literal

from pydantic import BaseModel, Field, field_validator

from pagination.variants import DEFAULT_VARIANTS, PageRole

# 297 mm at 96 dpi
A4_PORTRAIT_PX = 1123.0
DEFAULT_PAGE_CAPACITY_PX = float(os.getenv("PAGE_CAPACITY_PX", str(A4_PORTRAIT_PX)))
DEFAULT_LOCALE = os.getenv("PAGINATION_LOCALE", "en")


def _default_variants() -> Dict[str, List[PageRole]]:
    return {region: list(roles) for region, roles in DEFAULT_VARIANTS.items()}


class PaginationConfig(BaseModel):
    """Geometry, vocabulary and policy for one pagination run."""
    layout_id: str = "a4-portrait"
    # CSS @page size used when rendering to PDF
    page_size: str = "A4"
    page_capacity_px: float = Field(default=DEFAULT_PAGE_CAPACITY_PX, gt=0)
    measure_page_capacity: bool = True
    viewport_width_px: int = Field(default=794, gt=0)
    locale: str = DEFAULT_LOCALE
    amount_precision: int = Field(default=2, ge=0, le=6)
    source_selector: str = ".paginate"
    target_selector: str = ".pages"
    page_class: str = "page"
    table_class: str = "splittable"
    keep_source: bool = False
    # Place one row/block on an empty page body even if it overflows, so a run always progresses.
    force_progress: bool = True
    hold_back_final_row: bool = True
    overflow: Literal["warn", "error"] = "warn"
    default_variants: Dict[str, List[PageRole]] = Field(default_factory=_default_variants)

    @field_validator("default_variants")
    @classmethod
    def fill_missing_regions(cls, v: Dict[str, List[PageRole]]) -> Dict[str, List[PageRole]]:
        merged = _default_variants()
        merged.update(v)
        return merged
