"""
Carry-over and running-total reconciliation over assembled pages.

Runs once after assembly, over every splittable table fragment in page order.
Each fragment receives the previous fragment's total as its carry-over and
shows the cumulative total at its foot. Rows for a zero value are removed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from bs4 import Tag

from .diagnostics import AMOUNT_UNPARSED, DiagnosticLog
from .format_utils import format_amount, parse_amount
from .variants import has_class

logger = logging.getLogger(__name__)

CARRY_OVER = "carry-over"
RUNNING_TOTAL = "running-total"
AMOUNT = "amount"


@dataclass(frozen=True)
class TableTotals:
    page: Optional[int]
    carry_over: float
    table_total: float


def _cells(table: Tag, name: str) -> list[Tag]:
    return [el for el in table.find_all(class_=name) if el.name != "tr"]


def _rows(table: Tag, name: str) -> list[Tag]:
    return table.find_all("tr", class_=name)


def _write(cells: list[Tag], text: str) -> None:
    for cell in cells:
        cell.string = text


def _page_number(node: Tag) -> Optional[int]:
    raw = node.get("data-page-number")
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None


def apply_running_totals(
    pages: Iterable[Tag],
    *,
    locale: str = "en",
    precision: int = 2,
    table_class: str = "splittable",
    diagnostics: DiagnosticLog | None = None,
) -> list[TableTotals]:
    diagnostics = diagnostics or DiagnosticLog()
    running_total = 0.0
    totals: list[TableTotals] = []

    for page in pages:
        number = _page_number(page)
        for table in page.find_all("table", class_=table_class):
            carry_over = running_total
            if running_total == 0:
                for row in _rows(table, CARRY_OVER):
                    row.decompose()
            else:
                _write(_cells(table, CARRY_OVER), format_amount(running_total, locale, precision))

            table_total = running_total
            for cell in table.find_all(class_=AMOUNT):
                if has_class(cell, CARRY_OVER) or has_class(cell, RUNNING_TOTAL):
                    continue
                text = cell.get_text(strip=True)
                parsed = parse_amount(text, locale)
                if not parsed.ok and text:
                    diagnostics.emit(AMOUNT_UNPARSED, f"amount cell {text!r} counted as 0", number)
                table_total = round(table_total + parsed.value, precision)

            if table_total == 0:
                for row in _rows(table, RUNNING_TOTAL):
                    row.decompose()
            else:
                _write(_cells(table, RUNNING_TOTAL), format_amount(table_total, locale, precision))

            totals.append(TableTotals(page=number, carry_over=carry_over, table_total=table_total))
            running_total = table_total

    logger.info("[paginate] running totals over %d table(s), final=%.2f", len(totals), running_total)
    return totals
