"""
Source document discovery and the one-shot height profile.

measure_document() is the only place heights are taken. It runs against the
unmutated source tree and turns every region, body block and table row into a
record that carries its height, so nothing is re-measured once nodes move.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from bs4 import BeautifulSoup, Tag

from models_layout import PaginationConfig

from .body import BodyBlock
from .measure import HeightMeasurer
from .tables import TableEntity
from .tree import contains, element_children, inside_class, outermost_with_class
from .variants import PageRole, has_class, resolve_variants

logger = logging.getLogger(__name__)


@dataclass
class RegionNode:
    node: Tag
    variants: frozenset[PageRole]
    height: float


@dataclass(frozen=True)
class HeightProfile:
    page_available: float
    header: dict[PageRole, float]
    footer: dict[PageRole, float]
    body: dict[PageRole, float]
    body_available: dict[PageRole, float]
    body_content: float = 0.0
    table_content: float = 0.0

    @property
    def content_height(self) -> float:
        return self.body_content + self.table_content

    def available(self, role: PageRole) -> float:
        return self.body_available[role]


@dataclass
class SourceDocument:
    soup: BeautifulSoup
    root: Tag
    config: PaginationConfig

    @classmethod
    def from_html(cls, html_str: str, config: PaginationConfig) -> "SourceDocument":
        soup = BeautifulSoup(html_str, "html.parser")
        return cls.from_soup(soup, config)

    @classmethod
    def from_soup(cls, soup: BeautifulSoup, config: PaginationConfig) -> "SourceDocument":
        root = soup.select_one(config.source_selector) if config.source_selector else None
        if root is None:
            root = soup.body or soup
        return cls(soup=soup, root=root, config=config)

    @property
    def dedicated_root(self) -> bool:
        """False when the whole <body> (or bare fragment) is the source."""
        return self.root is not self.soup and self.root is not self.soup.body

    def headers(self) -> list[Tag]:
        return [n for n in outermost_with_class(self.root, "header") if not inside_class(n, "body", self.root)]

    def footers(self) -> list[Tag]:
        return [n for n in outermost_with_class(self.root, "footer") if not inside_class(n, "body", self.root)]

    def bodies(self) -> list[Tag]:
        return outermost_with_class(self.root, "body")

    def target(self) -> Tag:
        """The container pages are appended to; created next to the source when missing."""
        selector = self.config.target_selector
        found = self.soup.select_one(selector) if selector else None
        if found is not None and found is not self.root and not contains(found.parents, self.root):
            return found
        name = selector[1:] if selector and selector.startswith(".") else "pages"
        target = self.soup.new_tag("div", attrs={"class": [name]})
        if self.dedicated_root:
            self.root.insert_after(target)
        else:
            self.root.append(target)
        return target

    def discard(self, regions: list[Tag]) -> None:
        """Drop the drained source once pages are assembled."""
        if self.dedicated_root:
            self.root.decompose()
            return
        for node in regions:
            node.decompose()


@dataclass
class MeasuredDocument:
    source: SourceDocument
    headers: list[RegionNode] = field(default_factory=list)
    footers: list[RegionNode] = field(default_factory=list)
    bodies: list[RegionNode] = field(default_factory=list)
    blocks: list[BodyBlock] = field(default_factory=list)
    profile: Optional[HeightProfile] = None

    @property
    def tables(self) -> list[TableEntity]:
        return [b.table for b in self.blocks if b.table is not None]


def _find_splittable(node: Tag, table_class: str) -> Optional[Tag]:
    if node.name == "table" and has_class(node, table_class):
        return node
    return node.find("table", class_=table_class)


def _path_between(outer: Tag, inner: Tag) -> list[Tag]:
    path = []
    parent = inner.parent
    while parent is not None and parent is not outer:
        path.append(parent)
        parent = parent.parent
    return path


def build_height_profile(
    capacity: float,
    headers: list[RegionNode],
    footers: list[RegionNode],
    bodies: list[RegionNode],
    blocks: list[BodyBlock],
) -> HeightProfile:
    def per_role(regions: list[RegionNode]) -> dict[PageRole, float]:
        return {role: sum(r.height for r in regions if role in r.variants) for role in PageRole}

    header = per_role(headers)
    footer = per_role(footers)
    return HeightProfile(
        page_available=capacity,
        header=header,
        footer=footer,
        body=per_role(bodies),
        body_available={role: capacity - header[role] - footer[role] for role in PageRole},
        body_content=sum(b.height for b in blocks if not b.splittable),
        table_content=sum(b.height for b in blocks if b.splittable),
    )


def measure_document(source: SourceDocument, measurer: HeightMeasurer) -> MeasuredDocument:
    config = source.config
    defaults = config.default_variants
    measurer.prepare(source.root)

    def regions(nodes: list[Tag], region: str) -> list[RegionNode]:
        return [
            RegionNode(n, resolve_variants(n, region, defaults), measurer.height_of([n]).height)
            for n in nodes
        ]

    measured = MeasuredDocument(
        source=source,
        headers=regions(source.headers(), "header"),
        footers=regions(source.footers(), "footer"),
        bodies=regions(source.bodies(), "body"),
    )

    for body in measured.bodies:
        for child in element_children(body.node):
            height = measurer.height_of([child]).height
            table_node = _find_splittable(child, config.table_class)
            if table_node is None:
                measured.blocks.append(BodyBlock(node=child, height=height))
                continue
            table = TableEntity.from_node(table_node, len(measured.tables) + 1, measurer, defaults)
            chrome = 0.0 if table_node is child else max(0.0, height - measurer.height_of([table_node]).height)
            measured.blocks.append(
                BodyBlock(
                    node=child,
                    height=height,
                    table=table,
                    chrome_height=chrome,
                    path=_path_between(child, table_node),
                )
            )

    capacity = measurer.measure_page_capacity(source.root)
    measured.profile = build_height_profile(
        capacity, measured.headers, measured.footers, measured.bodies, measured.blocks
    )
    logger.info(
        "[measure] capacity=%.1f content=%.1f blocks=%d tables=%d",
        capacity, measured.profile.content_height, len(measured.blocks), len(measured.tables),
    )
    return measured
