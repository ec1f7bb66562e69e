"""
Entry point: paginate one HTML document into fixed-height pages.

    measure -> count pages -> assemble pages -> reconcile running totals

The source tree is drained into the pages and then discarded; the returned
HTML holds only the page containers in place of the original flow.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from bs4 import BeautifulSoup

from models_layout import PaginationConfig

from .assembler import Page, PageAssembler
from .body import BodySplitter
from .diagnostics import CONTENT_UNPLACED, Diagnostic, DiagnosticLog, PaginationError
from .measure import AttributeMeasurer, HeightMeasurer, Measurer
from .page_counter import count_pages
from .profile import HeightProfile, SourceDocument, measure_document
from .running_totals import TableTotals, apply_running_totals
from .tables import TableSplitter

logger = logging.getLogger(__name__)


@dataclass
class PaginationResult:
    soup: BeautifulSoup
    pages: list[Page]
    profile: HeightProfile
    tables: list[TableTotals] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def html(self) -> str:
        return str(self.soup)


def paginate_soup(
    soup: BeautifulSoup,
    config: PaginationConfig | None = None,
    measurer: Measurer | None = None,
    on_diagnostic: Optional[Callable[[Diagnostic], None]] = None,
) -> PaginationResult:
    config = config or PaginationConfig()
    log = DiagnosticLog(on_diagnostic=on_diagnostic)
    source = SourceDocument.from_soup(soup, config)

    heights = HeightMeasurer(
        measurer or AttributeMeasurer(),
        default_capacity=config.page_capacity_px,
        measure_capacity=config.measure_page_capacity,
    )
    measured = measure_document(source, heights)
    profile = measured.profile
    page_count = count_pages(profile)
    logger.info("[paginate] layout=%s estimated_pages=%d content=%.1f", config.layout_id, page_count, profile.content_height)

    tables = TableSplitter(soup, log, hold_back_final_row=config.hold_back_final_row)
    body_splitter = BodySplitter(soup, tables, log, force_progress=config.force_progress)
    bodies = [b.node for b in measured.bodies]
    assembler = PageAssembler(
        soup,
        config,
        profile,
        body_splitter,
        headers=measured.headers,
        footers=measured.footers,
        body_template=bodies[0] if bodies else None,
    )
    target = source.target()
    pool = list(measured.blocks)
    pages = assembler.assemble(page_count, pool, target)

    # Only reachable when force_progress is off and a block can never be placed.
    if pool:
        message = f"{len(pool)} body block(s) cannot be placed on any page"
        if config.overflow == "error":
            raise PaginationError(message)
        log.emit(CONTENT_UNPLACED, message, len(pages))

    if not config.keep_source:
        source.discard([r.node for r in measured.headers + measured.footers + measured.bodies])

    totals = apply_running_totals(
        [p.node for p in pages],
        locale=config.locale,
        precision=config.amount_precision,
        table_class=config.table_class,
        diagnostics=log,
    )
    return PaginationResult(soup=soup, pages=pages, profile=profile, tables=totals, diagnostics=log.entries)


def paginate_html(
    html_str: str,
    config: PaginationConfig | None = None,
    measurer: Measurer | None = None,
    on_diagnostic: Optional[Callable[[Diagnostic], None]] = None,
) -> PaginationResult:
    soup = BeautifulSoup(html_str, "html.parser")
    return paginate_soup(soup, config, measurer, on_diagnostic)
