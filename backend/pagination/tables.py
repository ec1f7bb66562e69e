"""
Splittable tables: row records and the per-table splitting protocol.

A table's body rows are moved (never cloned) into one fragment per page, while
its head/foot rows are cloned per page according to the table's state:

    absent -> first-page -> inner-pages -> ... -> last-page

The state persists on the TableEntity between calls, so the entity has to be
the same object for every page of a run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

from bs4 import BeautifulSoup, Tag

from .diagnostics import ROW_FORCED, TABLE_SKIPPED, DiagnosticLog
from .measure import HeightMeasurer
from .tree import deep_clone, element_children, shallow_clone
from .variants import ALL_ROLES, PageRole, resolve_variants

logger = logging.getLogger(__name__)


@dataclass
class RowRecord:
    node: Tag
    height: float
    variants: frozenset[PageRole] = ALL_ROLES
    group: Optional[Tag] = None


@dataclass
class TableEntity:
    node: Tag
    index: int
    head_rows: list[RowRecord] = field(default_factory=list)
    rows: list[RowRecord] = field(default_factory=list)
    foot_rows: list[RowRecord] = field(default_factory=list)
    extras: list[Tag] = field(default_factory=list)
    body_group: Optional[Tag] = None
    frame_height: float = 0.0
    state: Optional[PageRole] = None
    placed_rows: int = 0
    finished: bool = False

    @classmethod
    def from_node(
        cls,
        node: Tag,
        index: int,
        measurer: HeightMeasurer,
        defaults: Mapping[str, list[PageRole]] | None = None,
    ) -> "TableEntity":
        table = cls(node=node, index=index)

        def record(row: Tag, group: Optional[Tag], region: Optional[str]) -> RowRecord:
            height = measurer.height_of([row]).height
            if region is None:
                return RowRecord(row, height, ALL_ROLES, group)
            return RowRecord(row, height, resolve_variants(row, region, defaults, fallback=group), group)

        for child in element_children(node):
            if child.name == "thead":
                table.head_rows += [record(r, child, "table") for r in child.find_all("tr", recursive=False)]
            elif child.name == "tfoot":
                table.foot_rows += [record(r, child, "table") for r in child.find_all("tr", recursive=False)]
            elif child.name == "tbody":
                if table.body_group is None:
                    table.body_group = child
                table.rows += [record(r, child, None) for r in child.find_all("tr", recursive=False)]
            elif child.name == "tr":
                table.rows.append(record(child, None, None))
            else:
                table.extras.append(child)

        rows_total = sum(r.height for r in table.head_rows + table.rows + table.foot_rows)
        table.frame_height = max(0.0, measurer.height_of([node]).height - rows_total)
        return table

    def head_height(self, state: PageRole) -> float:
        return sum(r.height for r in self.head_rows if state in r.variants)

    def foot_height(self, state: PageRole) -> float:
        return sum(r.height for r in self.foot_rows if state in r.variants)

    @property
    def pending_height(self) -> float:
        return sum(r.height for r in self.rows)

    def remaining_height(self, state: PageRole = PageRole.LAST) -> float:
        """Height of everything still to place, framed with `state`'s head and foot."""
        return self.frame_height + self.head_height(state) + self.pending_height + self.foot_height(state)


@dataclass
class TableFragment:
    node: Tag
    state: PageRole
    height: float
    rows_moved: int
    complete: bool


class TableSplitter:
    def __init__(
        self,
        soup: BeautifulSoup,
        diagnostics: DiagnosticLog | None = None,
        *,
        hold_back_final_row: bool = True,
    ) -> None:
        self.soup = soup
        self.diagnostics = diagnostics or DiagnosticLog()
        self.hold_back_final_row = hold_back_final_row

    def _state_for(self, table: TableEntity, available: float) -> PageRole:
        if table.remaining_height(PageRole.LAST) <= available:
            return PageRole.LAST
        return table.state or PageRole.FIRST

    def determine_table_state(self, table: TableEntity, available: float) -> PageRole:
        state = self._state_for(table, available)
        table.state = state
        return state

    def fits_entirely(self, table: TableEntity, available: float) -> bool:
        """True when adjust_table would finish the table within `available`."""
        return not table.finished and table.remaining_height(PageRole.LAST) <= available

    def can_start(self, table: TableEntity, available: float) -> bool:
        """True when adjust_table would place a fragment without forcing. Leaves the state alone."""
        if table.finished:
            return False
        state = self._state_for(table, available)
        if state is PageRole.LAST:
            return True
        room = available - table.frame_height - table.head_height(state) - table.foot_height(state)
        return self._rows_that_fit(table, room) > 0

    def _rows_that_fit(self, table: TableEntity, room: float) -> int:
        used = 0.0
        count = 0
        for row in table.rows:
            if used + row.height > room:
                break
            used += row.height
            count += 1
        # The final row waits for the last-page head/foot variants.
        if self.hold_back_final_row and count and count == len(table.rows):
            count -= 1
        return count

    def adjust_table(
        self,
        table: TableEntity,
        available: float,
        *,
        page: Optional[int] = None,
        force_row: bool = False,
    ) -> Optional[TableFragment]:
        """
        Build this page's fragment of `table` within `available` px.

        Returns None when not even the first pending row fits (the table keeps
        its rows and is retried on a later page). With force_row, one row is
        placed regardless so the caller is guaranteed progress.
        """
        if table.finished:
            return None
        state = self.determine_table_state(table, available)
        room = available - table.frame_height - table.head_height(state) - table.foot_height(state)

        if state is PageRole.LAST:
            count = len(table.rows)
        else:
            count = self._rows_that_fit(table, room)
            if count == 0:
                needed = table.rows[0].height if table.rows else 0.0
                if not force_row:
                    self.diagnostics.emit(
                        TABLE_SKIPPED,
                        f"table #{table.index}: {room:.0f}px left for rows, next row needs {needed:.0f}px",
                        page,
                    )
                    return None
                if table.rows:
                    count = 1
                else:
                    state = table.state = PageRole.LAST
                self.diagnostics.emit(
                    ROW_FORCED,
                    f"table #{table.index}: placed past the page budget ({room:.0f}px left)",
                    page,
                )

        moved = table.rows[:count]
        del table.rows[:count]
        node = self._build_fragment(table, state, moved)
        height = (
            table.frame_height
            + table.head_height(state)
            + sum(r.height for r in moved)
            + table.foot_height(state)
        )
        table.placed_rows += count
        table.finished = state is PageRole.LAST or not table.rows
        if state is not PageRole.LAST:
            table.state = PageRole.INNER
        logger.debug(
            "[paginate] table #%d state=%s rows=%d height=%.1f finished=%s",
            table.index, state.value, count, height, table.finished,
        )
        return TableFragment(node=node, state=state, height=height, rows_moved=count, complete=table.finished)

    def _group(self, name: str, template: Optional[Tag]) -> Tag:
        if template is not None and template.name == name:
            return shallow_clone(self.soup, template)
        return self.soup.new_tag(name)

    def _build_fragment(self, table: TableEntity, state: PageRole, moved: list[RowRecord]) -> Tag:
        fragment = shallow_clone(self.soup, table.node)
        for extra in table.extras:
            fragment.append(deep_clone(extra))

        head = [r for r in table.head_rows if state in r.variants]
        if head:
            thead = self._group("thead", head[0].group)
            for r in head:
                thead.append(deep_clone(r.node))
            fragment.append(thead)

        if moved:
            tbody = self._group("tbody", table.body_group)
            for r in moved:
                tbody.append(r.node.extract())
            fragment.append(tbody)

        foot = [r for r in table.foot_rows if state in r.variants]
        if foot:
            tfoot = self._group("tfoot", foot[0].group)
            for r in foot:
                tfoot.append(deep_clone(r.node))
            fragment.append(tfoot)
        return fragment
