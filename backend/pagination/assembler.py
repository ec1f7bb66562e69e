from __future__ import annotations

import logging
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from models_layout import PaginationConfig

from .body import BodyBlock, BodySplitter
from .profile import HeightProfile, RegionNode
from .tree import deep_clone, shallow_clone
from .variants import PageRole, page_role

logger = logging.getLogger(__name__)


@dataclass
class Page:
    number: int
    role: PageRole
    node: Tag
    blocks: list[Tag] = field(default_factory=list)
    remaining_height: float = 0.0


def stamp_placeholders(node: Tag, number: int, page_count: int) -> None:
    for el in node.find_all(class_="page-number"):
        el.string = str(number)
    for el in node.find_all(class_="page-count"):
        el.string = str(page_count)


class PageAssembler:
    """Builds pages 1..page_count: header clones, body fill, footer clones."""

    def __init__(
        self,
        soup: BeautifulSoup,
        config: PaginationConfig,
        profile: HeightProfile,
        body_splitter: BodySplitter,
        *,
        headers: list[RegionNode],
        footers: list[RegionNode],
        body_template: Tag | None = None,
    ) -> None:
        self.soup = soup
        self.config = config
        self.profile = profile
        self.body_splitter = body_splitter
        self.headers = headers
        self.footers = footers
        self.body_template = body_template

    def _new_page(self, number: int, role: PageRole) -> Tag:
        return self.soup.new_tag(
            "div",
            attrs={
                "class": [self.config.page_class, role.value],
                "data-page-number": str(number),
                "data-page-role": role.value,
            },
        )

    def _new_body(self) -> Tag:
        if self.body_template is not None:
            return shallow_clone(self.soup, self.body_template)
        return self.soup.new_tag("div", attrs={"class": ["body"]})

    def _role_for(self, number: int, page_count: int, pool: list[BodyBlock]) -> PageRole:
        # final: single-page for page 1, last-page after it; open: first-page or inner-pages
        final = page_role(number, number)
        opening = page_role(number, number + 1)
        if number < page_count:
            return opening
        if self.body_splitter.fits_entirely(self.profile.available(final), pool):
            return final
        if not self.body_splitter.can_start(self.profile.available(opening), pool):
            logger.info("[paginate] page %d: no further progress, closing with %d block(s) pending", number, len(pool))
            return final
        return opening

    def _build(self, number: int, role: PageRole, pool: list[BodyBlock], target: Tag) -> Page:
        node = self._new_page(number, role)
        for region in self.headers:
            if role in region.variants:
                node.append(deep_clone(region.node))

        body = self._new_body()
        node.append(body)
        fill = self.body_splitter.fill(role, self.profile.available(role), pool, body, page=number)

        for region in self.footers:
            if role in region.variants:
                node.append(deep_clone(region.node))

        target.append(node)
        return Page(number=number, role=role, node=node, blocks=fill.placed, remaining_height=fill.remaining_height)

    def assemble(self, page_count: int, pool: list[BodyBlock], target: Tag) -> list[Page]:
        """
        Build pages until the body pool is drained.

        `page_count` is the counted estimate: pages 1..page_count are always
        built, and more follow while blocks remain, since repeated table heads
        and feet take room the count does not see. A page gets the final role
        once everything left fits its final-role body. Placeholders are stamped
        after the last page, so every page shows the real count.
        """
        pages: list[Page] = []
        number = 0
        while True:
            number += 1
            role = self._role_for(number, page_count, pool)
            page = self._build(number, role, pool, target)
            pages.append(page)
            logger.debug("[paginate] page %d role=%s blocks=%d", number, role.value, len(page.blocks))
            if role in (PageRole.SINGLE, PageRole.LAST):
                break

        if len(pages) != page_count:
            logger.info("[paginate] counted %d page(s), assembled %d", page_count, len(pages))
        for page in pages:
            stamp_placeholders(page.node, page.number, len(pages))
        return pages
