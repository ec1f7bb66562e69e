from __future__ import annotations

from .diagnostics import PaginationError
from .profile import HeightProfile
from .variants import PageRole


def count_pages(profile: HeightProfile) -> int:
    """
    Simulate consumption of the content height by first, inner and last pages.

    One page when everything fits the single-page body. Otherwise page 1 takes
    the first-page body and each further page takes an inner-page body, until
    what is left fits a last-page body. Never returns 1 for content that misses
    the single-page budget, since that page would get the single-page role.
    """
    remaining = profile.content_height
    if remaining <= profile.available(PageRole.SINGLE):
        return 1

    inner = profile.available(PageRole.INNER)
    last = profile.available(PageRole.LAST)
    pages = 1
    remaining -= profile.available(PageRole.FIRST)
    while True:
        pages += 1
        if remaining <= last:
            return pages
        if inner <= 0:
            raise PaginationError(
                f"Inner pages have no body room ({inner:.0f}px) for {remaining:.0f}px of content"
            )
        remaining -= inner
