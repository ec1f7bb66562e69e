"""Greedy filling of one page's body region from the pool of pending blocks."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from bs4 import BeautifulSoup, Tag

from .diagnostics import BLOCK_FORCED, BLOCK_HELD, DiagnosticLog
from .tables import TableEntity, TableSplitter
from .tree import contains, move, shallow_clone
from .variants import PageRole

logger = logging.getLogger(__name__)


@dataclass
class BodyBlock:
    """
    One top-level child of a body region. A block holding a splittable table
    is emitted once per table fragment; `chrome_height` is the part of the
    block outside the table and goes with the first fragment only.
    """
    node: Tag
    height: float
    table: Optional[TableEntity] = None
    chrome_height: float = 0.0
    emitted: bool = False
    path: list[Tag] = field(default_factory=list)

    @property
    def splittable(self) -> bool:
        return self.table is not None

    def wrap(self, soup: BeautifulSoup, fragment: Tag) -> Tag:
        if self.table is None or self.node is self.table.node:
            return fragment
        first = not self.emitted
        return self._rebuild(soup, self.node, fragment, first)

    def _rebuild(self, soup: BeautifulSoup, node: Tag, fragment: Tag, first: bool) -> Tag:
        clone = shallow_clone(soup, node)
        for child in list(node.children):
            if child is self.table.node:
                clone.append(fragment)
            elif contains(self.path, child):
                clone.append(self._rebuild(soup, child, fragment, first))
            elif first:
                clone.append(child.extract())
        return clone


@dataclass
class BodyFill:
    placed: list[Tag] = field(default_factory=list)
    remaining_height: float = 0.0


class BodySplitter:
    def __init__(
        self,
        soup: BeautifulSoup,
        tables: TableSplitter,
        diagnostics: DiagnosticLog | None = None,
        *,
        force_progress: bool = True,
    ) -> None:
        self.soup = soup
        self.tables = tables
        self.diagnostics = diagnostics or tables.diagnostics
        self.force_progress = force_progress

    def fits_entirely(self, available: float, pool: list[BodyBlock]) -> bool:
        """Whether fill() would place every pending block within `available`. Mutates nothing."""
        remaining = available
        for i, block in enumerate(pool):
            if block.splittable:
                budget = remaining - (0.0 if block.emitted else block.chrome_height)
                if not self.tables.fits_entirely(block.table, budget):
                    return False
                remaining = budget - block.table.remaining_height(PageRole.LAST)
                continue
            if block.height > remaining and not (i == 0 and self.force_progress):
                return False
            remaining -= block.height
        return True

    def can_start(self, available: float, pool: list[BodyBlock]) -> bool:
        """Whether fill() would place anything on an empty body of `available` px."""
        if not pool:
            return False
        if self.force_progress:
            return True
        block = pool[0]
        if block.splittable:
            budget = available - (0.0 if block.emitted else block.chrome_height)
            return self.tables.can_start(block.table, budget)
        return block.height <= available

    def fill(
        self,
        role: PageRole,
        available: float,
        pool: list[BodyBlock],
        container: Tag,
        *,
        page: Optional[int] = None,
    ) -> BodyFill:
        """
        Move blocks from the head of `pool` into `container` while they fit.

        The first block that cannot be (fully) placed ends the page, so blocks
        keep their document order across pages. Placed blocks leave the pool.
        """
        result = BodyFill(remaining_height=available)
        while pool:
            block = pool[0]
            empty = not result.placed
            if block.splittable:
                budget = result.remaining_height - (0.0 if block.emitted else block.chrome_height)
                fragment = self.tables.adjust_table(
                    block.table,
                    budget,
                    page=page,
                    force_row=self.force_progress and empty,
                )
                if fragment is None:
                    break
                node = block.wrap(self.soup, fragment.node)
                container.append(node)
                result.placed.append(node)
                result.remaining_height = budget - fragment.height
                block.emitted = True
                if not fragment.complete:
                    break
                pool.pop(0)
                continue

            if block.height > result.remaining_height:
                if not empty:
                    break
                if not self.force_progress:
                    self.diagnostics.emit(
                        BLOCK_HELD,
                        f"<{block.node.name}> needs {block.height:.0f}px, {result.remaining_height:.0f}px left",
                        page,
                    )
                    break
                self.diagnostics.emit(
                    BLOCK_FORCED,
                    f"<{block.node.name}> of {block.height:.0f}px exceeds the {role.value} body",
                    page,
                )
            move(block.node, container)
            result.placed.append(block.node)
            result.remaining_height -= block.height
            pool.pop(0)
        logger.debug(
            "[paginate] page=%s role=%s placed=%d remaining=%.1f",
            page, role.value, len(result.placed), result.remaining_height,
        )
        return result
