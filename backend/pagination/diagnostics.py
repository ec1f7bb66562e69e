"""
Diagnostics for degraded pagination paths.

Content edge cases never abort a run; they are recorded here, logged at WARNING
and forwarded to an optional callback so callers can surface them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TABLE_SKIPPED = "table_skipped"
ROW_FORCED = "row_forced"
BLOCK_HELD = "block_held"
BLOCK_FORCED = "block_forced"
CONTENT_UNPLACED = "content_unplaced"
AMOUNT_UNPARSED = "amount_unparsed"


class PaginationError(ValueError):
    """Configuration or input that cannot be paginated at all."""


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message: str
    page: Optional[int] = None


@dataclass
class DiagnosticLog:
    on_diagnostic: Optional[Callable[[Diagnostic], None]] = None
    entries: list[Diagnostic] = field(default_factory=list)

    def emit(self, code: str, message: str, page: Optional[int] = None) -> Diagnostic:
        entry = Diagnostic(code=code, message=message, page=page)
        self.entries.append(entry)
        logger.warning("[paginate] %s page=%s %s", code, page, message)
        if self.on_diagnostic is not None:
            self.on_diagnostic(entry)
        return entry

    def codes(self) -> list[str]:
        return [d.code for d in self.entries]
