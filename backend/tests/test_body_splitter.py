from __future__ import annotations

from bs4 import BeautifulSoup

from models_layout import PaginationConfig
from pagination.body import BodySplitter
from pagination.diagnostics import BLOCK_FORCED, BLOCK_HELD, TABLE_SKIPPED, DiagnosticLog
from pagination.measure import AttributeMeasurer, HeightMeasurer
from pagination.profile import SourceDocument, measure_document
from pagination.tables import TableSplitter
from pagination.variants import PageRole


def _setup(body_html: str, force_progress: bool = True):
    html = f'<div class="paginate"><div class="body">{body_html}</div></div>'
    source = SourceDocument.from_html(html, PaginationConfig())
    measured = measure_document(source, HeightMeasurer(AttributeMeasurer(), default_capacity=1000.0))
    log = DiagnosticLog()
    splitter = BodySplitter(source.soup, TableSplitter(source.soup, log), log, force_progress=force_progress)
    return source.soup, list(measured.blocks), splitter, log


def _texts(nodes) -> list[str]:
    return [n.get_text() for n in nodes]


def _table(rows: int, row_height: int = 50) -> str:
    body = "".join(f'<tr data-height="{row_height}"><td>r{i}</td></tr>' for i in range(1, rows + 1))
    return (
        '<table class="splittable"><thead><tr data-height="20"><th>Item</th></tr></thead>'
        f"<tbody>{body}</tbody>"
        '<tfoot><tr data-height="10"><td>Total</td></tr></tfoot></table>'
    )


def test_blocks_are_placed_in_order_until_one_does_not_fit():
    soup, pool, splitter, log = _setup(
        '<p data-height="300">a</p><p data-height="600">b</p><p data-height="100">c</p>'
    )
    container = soup.new_tag("div")
    fill = splitter.fill(PageRole.FIRST, 850, pool, container)

    # "c" would fit, but placing it before "b" would reorder the document
    assert _texts(fill.placed) == ["a"]
    assert fill.remaining_height == 550
    assert _texts(b.node for b in pool) == ["b", "c"]
    assert log.entries == []


def test_block_exactly_filling_the_body_is_placed():
    soup, pool, splitter, _ = _setup('<p data-height="300">a</p><p data-height="550">b</p>')
    fill = splitter.fill(PageRole.FIRST, 850, pool, soup.new_tag("div"))
    assert _texts(fill.placed) == ["a", "b"]
    assert fill.remaining_height == 0
    assert pool == []


def test_placed_blocks_are_moved_into_the_container():
    soup, pool, splitter, _ = _setup('<p data-height="10">a</p>')
    original = pool[0].node
    container = soup.new_tag("div")
    splitter.fill(PageRole.SINGLE, 100, pool, container)
    assert container.p is original
    assert soup.select_one(".body").p is None


def test_oversized_block_on_empty_page_is_forced():
    soup, pool, splitter, log = _setup('<p data-height="1200">huge</p><p data-height="10">next</p>')
    fill = splitter.fill(PageRole.FIRST, 850, pool, soup.new_tag("div"), page=1)
    assert _texts(fill.placed) == ["huge"]
    assert fill.remaining_height == -350
    assert log.codes() == [BLOCK_FORCED]
    # nothing more goes on an overfull page
    assert _texts(b.node for b in pool) == ["next"]


def test_oversized_block_is_held_without_forced_progress():
    soup, pool, splitter, log = _setup('<p data-height="1200">huge</p>', force_progress=False)
    fill = splitter.fill(PageRole.FIRST, 850, pool, soup.new_tag("div"), page=2)
    assert fill.placed == []
    assert len(pool) == 1
    assert log.codes() == [BLOCK_HELD]
    assert log.entries[0].page == 2


def test_complete_table_lets_following_blocks_continue():
    soup, pool, splitter, _ = _setup(_table(2) + '<p data-height="40">after</p>')
    fill = splitter.fill(PageRole.SINGLE, 900, pool, soup.new_tag("div"))
    assert [n.name for n in fill.placed] == ["table", "p"]
    assert fill.remaining_height == 900 - 130 - 40
    assert pool == []


def test_partial_table_ends_the_page():
    soup, pool, splitter, _ = _setup(_table(20) + '<p data-height="10">after</p>')
    fill = splitter.fill(PageRole.FIRST, 300, pool, soup.new_tag("div"))
    assert len(fill.placed) == 1
    assert len(fill.placed[0].find_all("tr")) == 2 + 5
    assert pool[0].splittable and pool[0].emitted
    assert len(pool) == 2


def test_table_that_cannot_start_waits_for_the_next_page():
    soup, pool, splitter, log = _setup('<p data-height="800">intro</p>' + _table(5))
    first = splitter.fill(PageRole.FIRST, 850, pool, soup.new_tag("div"), page=1)
    assert _texts(first.placed) == ["intro"]
    assert log.codes() == [TABLE_SKIPPED]
    assert pool[0].table.placed_rows == 0

    last = splitter.fill(PageRole.LAST, 900, pool, soup.new_tag("div"), page=2)
    assert len(last.placed) == 1
    assert pool == []
    assert last.placed[0].find_all("tr", recursive=True)[0].th is not None


def test_wrapper_content_goes_with_the_first_fragment_only():
    soup, pool, splitter, _ = _setup(
        '<div class="items" id="w"><h4 data-height="30">Items</h4>' + _table(10) + "</div>"
    )
    block = pool[0]
    assert block.chrome_height == 30

    first = splitter.fill(PageRole.FIRST, 300, pool, soup.new_tag("div"))
    wrapper = first.placed[0]
    assert wrapper.name == "div" and wrapper["id"] == "w"
    assert wrapper.h4.get_text() == "Items"
    # 300 - 30 chrome - 30 head/foot leaves room for 4 rows
    assert len(wrapper.tbody.find_all("tr")) == 4
    assert first.remaining_height == 300 - 30 - 230

    second = splitter.fill(PageRole.INNER, 300, pool, soup.new_tag("div"))
    wrapper = second.placed[0]
    assert wrapper["id"] == "w"
    assert wrapper.h4 is None
    assert len(wrapper.tbody.find_all("tr")) == 5

    third = splitter.fill(PageRole.LAST, 300, pool, soup.new_tag("div"))
    assert len(third.placed[0].tbody.find_all("tr")) == 1
    assert pool == []


def test_fits_entirely_agrees_with_fill():
    soup, pool, splitter, _ = _setup('<p data-height="300">a</p>' + _table(4))
    # the table needs 20 + 4 * 50 + 10
    assert splitter.fits_entirely(530, pool)
    assert not splitter.fits_entirely(529, pool)
    assert pool[1].table.state is None

    fill = splitter.fill(PageRole.LAST, 530, pool, soup.new_tag("div"))
    assert pool == []
    assert fill.remaining_height == 0


def test_fits_entirely_counts_a_forced_first_block():
    _, pool, splitter, _ = _setup('<p data-height="1200">huge</p>')
    assert splitter.fits_entirely(850, pool)
    _, pool, strict, _ = _setup('<p data-height="1200">huge</p>', force_progress=False)
    assert not strict.fits_entirely(850, pool)
    assert strict.fits_entirely(850, [])


def test_can_start_reports_whether_an_empty_body_takes_anything():
    _, pool, strict, _ = _setup('<p data-height="500">a</p>', force_progress=False)
    assert strict.can_start(500, pool)
    assert not strict.can_start(499, pool)
    assert not strict.can_start(1000, [])

    _, pool, forced, _ = _setup('<p data-height="500">a</p>')
    assert forced.can_start(10, pool)
