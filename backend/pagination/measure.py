"""
Height measurement backends.

Everything is measured once, against the unmutated source tree, before any node
is moved. Two backends share one interface:

- BrowserMeasurer renders the document in Chromium (Playwright) and reads each
  element's box height plus vertical margins.
- AttributeMeasurer reads precomputed `data-height` values, for headless runs
  and fixtures.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, NamedTuple, Optional, Protocol

from bs4 import Tag

from .tree import document_of

logger = logging.getLogger(__name__)

_ID_ATTR = "data-pgn-id"

_MEASURE_JS = """
(args) => {
  const heights = {};
  for (const el of document.querySelectorAll("[" + args.idAttr + "]")) {
    const style = window.getComputedStyle(el);
    const rect = el.getBoundingClientRect();
    const margins = (parseFloat(style.marginTop) || 0) + (parseFloat(style.marginBottom) || 0);
    heights[el.getAttribute(args.idAttr)] = rect.height + margins;
  }
  const root = document.querySelector("[" + args.idAttr + "='" + args.rootId + "']") || document.body;
  const probe = document.createElement("div");
  probe.className = args.pageClass;
  root.appendChild(probe);
  const capacity = probe.getBoundingClientRect().height;
  probe.remove();
  return { heights, capacity };
}
"""


class Measurement(NamedTuple):
    height: float
    matched: bool


UNMATCHED = Measurement(0.0, False)


class Measurer(Protocol):
    def prepare(self, root: Tag) -> None: ...

    def height(self, node: Tag) -> Measurement: ...

    def page_capacity(self, root: Tag) -> Measurement: ...


class AttributeMeasurer:
    """
    Heights come from `data-height` (px). An element without one measures as
    the sum of its child elements. Page capacity comes from `data-page-height`
    on the source root.
    """

    def prepare(self, root: Tag) -> None:
        return None

    def height(self, node: Tag) -> Measurement:
        raw = node.get("data-height")
        if raw is not None:
            try:
                return Measurement(max(0.0, float(raw)), True)
            except (TypeError, ValueError):
                logger.debug("[measure] bad data-height=%r on <%s>", raw, node.name)
                return UNMATCHED
        total = 0.0
        matched = False
        for child in node.find_all(True, recursive=False):
            m = self.height(child)
            total += m.height
            matched = matched or m.matched
        return Measurement(total, matched)

    def page_capacity(self, root: Tag) -> Measurement:
        raw = root.get("data-page-height")
        if raw is None:
            return UNMATCHED
        try:
            return Measurement(float(raw), True)
        except (TypeError, ValueError):
            return UNMATCHED


class BrowserMeasurer:
    """
    Render once in Chromium and keep the per-element heights.

    Pass an existing Playwright page to reuse a browser; otherwise a short-lived
    Chromium is launched inside prepare().
    """

    def __init__(self, page: Any = None, *, viewport_width: int = 794, page_class: str = "page") -> None:
        self._page = page
        self.viewport_width = viewport_width
        self.page_class = page_class
        self._ids: dict[int, str] = {}
        self._keep: list[Tag] = []
        self._heights: dict[str, float] = {}
        self._capacity: float = 0.0

    def _stamp(self, doc: Tag) -> None:
        self._ids.clear()
        self._keep = list(doc.find_all(True))
        for i, tag in enumerate(self._keep):
            tag[_ID_ATTR] = str(i)
            self._ids[id(tag)] = str(i)

    def _unstamp(self) -> None:
        for tag in self._keep:
            if _ID_ATTR in tag.attrs:
                del tag[_ID_ATTR]

    def _evaluate(self, page: Any, html_str: str, root_id: str) -> dict[str, Any]:
        page.set_viewport_size({"width": self.viewport_width, "height": 1123})
        page.set_content(html_str, wait_until="networkidle")
        page.emulate_media(media="print")
        return page.evaluate(
            _MEASURE_JS,
            {"idAttr": _ID_ATTR, "rootId": root_id, "pageClass": self.page_class},
        )

    def prepare(self, root: Tag) -> None:
        doc = document_of(root)
        self._stamp(doc)
        try:
            html_str = str(doc)
            root_id = self._ids.get(id(root), "")
            if self._page is not None:
                result = self._evaluate(self._page, html_str, root_id)
            else:
                from playwright.sync_api import sync_playwright

                with sync_playwright() as p:
                    browser = p.chromium.launch(args=["--no-sandbox"])
                    page = browser.new_page()
                    result = self._evaluate(page, html_str, root_id)
                    browser.close()
        finally:
            self._unstamp()
        self._heights = {str(k): float(v) for k, v in (result.get("heights") or {}).items()}
        self._capacity = float(result.get("capacity") or 0.0)
        logger.info("[measure] browser measured %d elements capacity=%.1f", len(self._heights), self._capacity)

    def height(self, node: Tag) -> Measurement:
        key = self._ids.get(id(node))
        if key is None or key not in self._heights:
            return UNMATCHED
        return Measurement(max(0.0, self._heights[key]), True)

    def page_capacity(self, root: Tag) -> Measurement:
        if self._capacity <= 0:
            return UNMATCHED
        return Measurement(self._capacity, True)


class HeightMeasurer:
    """Aggregates collaborator heights; unmatched nodes count as zero."""

    def __init__(self, measurer: Measurer, default_capacity: float, measure_capacity: bool = True) -> None:
        self.measurer = measurer
        self.default_capacity = default_capacity
        self.measure_capacity = measure_capacity

    def prepare(self, root: Tag) -> None:
        self.measurer.prepare(root)

    def height_of(self, nodes: Iterable[Tag]) -> Measurement:
        total = 0.0
        matched = False
        for node in nodes:
            m = self.measurer.height(node)
            if not m.matched:
                logger.debug("[measure] unmatched <%s class=%s>", node.name, node.get("class"))
            total += m.height
            matched = matched or m.matched
        return Measurement(total, matched)

    def measure_page_capacity(self, root: Tag) -> float:
        if not self.measure_capacity:
            return self.default_capacity
        m = self.measurer.page_capacity(root)
        if not m.matched or m.height <= 0:
            logger.debug("[measure] page capacity not measurable, using %.1f", self.default_capacity)
            return self.default_capacity
        return m.height


def build_measurer(kind: Optional[str], *, viewport_width: int = 794, page_class: str = "page") -> Measurer:
    if kind == "browser":
        return BrowserMeasurer(viewport_width=viewport_width, page_class=page_class)
    if kind in (None, "", "attributes"):
        return AttributeMeasurer()
    raise ValueError(f"Unknown measurer: {kind}")
