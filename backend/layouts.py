"""In-repo registry of page geometries. Layouts differ only in page capacity and sheet size."""
from __future__ import annotations

from models_layout import PaginationConfig

LAYOUTS: dict[str, PaginationConfig] = {
    "a4-portrait": PaginationConfig(
        layout_id="a4-portrait",
        page_size="A4",
        viewport_width_px=794,
    ),
    "a4-landscape": PaginationConfig(
        layout_id="a4-landscape",
        page_size="A4 landscape",
        page_capacity_px=794.0,
        viewport_width_px=1123,
    ),
    "letter-portrait": PaginationConfig(
        layout_id="letter-portrait",
        page_size="letter",
        page_capacity_px=1056.0,
        viewport_width_px=816,
    ),
}


def get_layout(layout_id: str) -> PaginationConfig | None:
    layout = LAYOUTS.get(layout_id)
    return layout.model_copy(deep=True) if layout is not None else None


def list_layouts() -> list[PaginationConfig]:
    return list(LAYOUTS.values())
