from __future__ import annotations

from bs4 import BeautifulSoup

from pagination.diagnostics import ROW_FORCED, TABLE_SKIPPED, DiagnosticLog
from pagination.measure import AttributeMeasurer, HeightMeasurer
from pagination.tables import TableEntity, TableSplitter
from pagination.variants import PageRole


def _rows(count: int, height: int = 80) -> str:
    return "".join(
        f'<tr class="line-item" data-height="{height}"><td>Item {i}</td><td class="amount">10.00</td></tr>'
        for i in range(1, count + 1)
    )


def _table_html(rows: str, head: str = '<thead><tr data-height="40"><th>Item</th></tr></thead>',
                foot: str = '<tfoot><tr data-height="30"><td>Total</td></tr></tfoot>') -> str:
    return f'<table class="splittable" id="t1">{head}<tbody class="lines">{rows}</tbody>{foot}</table>'


def _setup(html: str, **kwargs):
    soup = BeautifulSoup(html, "html.parser")
    heights = HeightMeasurer(AttributeMeasurer(), default_capacity=1000.0)
    table = TableEntity.from_node(soup.find("table"), 1, heights)
    log = DiagnosticLog()
    return soup, table, TableSplitter(soup, log, **kwargs), log


def _line_items(node) -> list[str]:
    return [tr.td.get_text() for tr in node.find_all("tr", class_="line-item")]


def test_split_example_nine_rows_then_last_row():
    soup, table, splitter, _ = _setup(_table_html(_rows(10)))

    first = splitter.adjust_table(table, 850)
    assert first.state is PageRole.FIRST
    assert first.rows_moved == 9
    assert first.height == 40 + 9 * 80 + 30
    assert not first.complete
    assert table.state is PageRole.INNER
    assert len(table.rows) == 1

    last = splitter.adjust_table(table, 900)
    assert last.state is PageRole.LAST
    assert last.rows_moved == 1
    assert last.complete
    assert table.finished
    assert _line_items(first.node) + _line_items(last.node) == [f"Item {i}" for i in range(1, 11)]


def test_whole_table_that_fits_is_last_page_immediately():
    _, table, splitter, _ = _setup(_table_html(_rows(3)))
    assert splitter.determine_table_state(table, 40 + 240 + 30) is PageRole.LAST
    fragment = splitter.adjust_table(table, 310)
    assert fragment.state is PageRole.LAST
    assert fragment.rows_moved == 3
    assert fragment.complete


def test_rows_are_moved_not_cloned():
    soup, table, splitter, _ = _setup(_table_html(_rows(5)))
    first_row = table.rows[0].node
    fragment = splitter.adjust_table(table, 40 + 30 + 160)

    assert fragment.rows_moved == 2
    assert fragment.node.find("tr", class_="line-item") is first_row
    assert len(soup.find("tbody", class_="lines").find_all("tr")) == 3


def test_fragment_keeps_table_attributes_and_one_group_each():
    head = (
        '<thead class="first-page"><tr data-height="40"><th>Item</th></tr></thead>'
        '<thead class="inner-pages last-page"><tr class="carry-over" data-height="40"><td class="carry-over"></td></tr></thead>'
    )
    _, table, splitter, _ = _setup(_table_html(_rows(10), head=head))
    fragment = splitter.adjust_table(table, 850)

    node = fragment.node
    assert node["id"] == "t1"
    assert node["class"] == ["splittable"]
    assert len(node.find_all("thead")) == 1
    assert len(node.find_all("tbody")) == 1
    assert len(node.find_all("tfoot")) == 1
    assert node.thead["class"] == ["first-page"]
    assert node.find("tr", class_="carry-over") is None
    assert node.tbody["class"] == ["lines"]

    second = splitter.adjust_table(table, 850)
    assert second.state is PageRole.LAST
    assert second.node.find("tr", class_="carry-over") is not None


def test_head_and_foot_are_cloned_per_fragment():
    soup, table, splitter, _ = _setup(_table_html(_rows(10)))
    a = splitter.adjust_table(table, 850)
    b = splitter.adjust_table(table, 850)
    assert a.node.thead.tr is not b.node.thead.tr
    # source head row stays in place for later fragments
    assert soup.find("table", id="t1").thead.tr is not None


def test_row_that_cannot_fit_skips_the_page():
    _, table, splitter, log = _setup(_table_html(_rows(10)))
    assert splitter.adjust_table(table, 40 + 30 + 79, page=3) is None
    assert len(table.rows) == 10
    # the table has not appeared yet, so it still opens with first-page variants
    assert table.state is PageRole.FIRST
    assert log.codes() == [TABLE_SKIPPED]
    assert log.entries[0].page == 3


def test_forced_row_guarantees_progress():
    _, table, splitter, log = _setup(_table_html(_rows(10)))
    fragment = splitter.adjust_table(table, 50, force_row=True)
    assert fragment.rows_moved == 1
    assert log.codes() == [ROW_FORCED]
    assert table.state is PageRole.INNER


def test_state_never_reverts_and_ends_last_once():
    _, table, splitter, _ = _setup(_table_html(_rows(30)))
    states = []
    while not table.finished:
        fragment = splitter.adjust_table(table, 400)
        states.append(fragment.state)

    assert states[0] is PageRole.FIRST
    assert PageRole.FIRST not in states[1:]
    assert states.count(PageRole.LAST) == 1
    assert states[-1] is PageRole.LAST
    assert table.placed_rows == 30


def test_final_row_waits_for_last_page_variants():
    head = '<thead><tr data-height="20"><th>Item</th></tr></thead>'
    foot = (
        '<tfoot class="first-page inner-pages"><tr data-height="10"><td>Continued</td></tr></tfoot>'
        '<tfoot class="last-page"><tr data-height="200"><td>Grand total</td></tr></tfoot>'
    )
    _, table, splitter, _ = _setup(_table_html(_rows(3, height=50), head=head, foot=foot))

    first = splitter.adjust_table(table, 200)
    assert first.state is PageRole.FIRST
    assert first.rows_moved == 2
    assert first.node.tfoot.get_text() == "Continued"

    last = splitter.adjust_table(table, 400)
    assert last.state is PageRole.LAST
    assert last.rows_moved == 1
    assert last.node.tfoot.get_text() == "Grand total"


def test_final_row_can_go_with_inner_variants_when_hold_back_disabled():
    head = '<thead><tr data-height="20"><th>Item</th></tr></thead>'
    foot = (
        '<tfoot class="first-page inner-pages"><tr data-height="10"><td>Continued</td></tr></tfoot>'
        '<tfoot class="last-page"><tr data-height="200"><td>Grand total</td></tr></tfoot>'
    )
    _, table, splitter, _ = _setup(_table_html(_rows(3, height=50), head=head, foot=foot), hold_back_final_row=False)

    fragment = splitter.adjust_table(table, 200)
    assert fragment.rows_moved == 3
    assert fragment.complete
    assert splitter.adjust_table(table, 1000) is None


def test_caption_is_repeated_and_counted_as_frame():
    html = _table_html(_rows(4, height=50)).replace(
        '<thead>', '<caption data-height="15">Line items</caption><thead>', 1
    )
    _, table, splitter, _ = _setup(html)
    assert table.frame_height == 15.0
    a = splitter.adjust_table(table, 15 + 40 + 30 + 100)
    b = splitter.adjust_table(table, 1000)
    assert a.rows_moved == 2
    assert a.height == 15 + 40 + 30 + 100
    assert a.node.caption.get_text() == "Line items"
    assert b.node.caption.get_text() == "Line items"


def test_fit_checks_leave_the_table_untouched():
    _, table, splitter, log = _setup(_table_html(_rows(10)))
    assert not splitter.can_start(table, 40 + 30 + 79)
    assert splitter.can_start(table, 40 + 30 + 80)
    assert splitter.fits_entirely(table, 870)
    assert not splitter.fits_entirely(table, 869)
    assert table.state is None
    assert len(table.rows) == 10
    assert log.entries == []


def test_lone_final_row_cannot_start_under_inner_variants():
    head = '<thead><tr data-height="20"><th>Item</th></tr></thead>'
    foot = (
        '<tfoot class="first-page inner-pages"><tr data-height="10"><td>Continued</td></tr></tfoot>'
        '<tfoot class="last-page"><tr data-height="200"><td>Grand total</td></tr></tfoot>'
    )
    _, table, splitter, _ = _setup(_table_html(_rows(1, height=50), head=head, foot=foot))
    # the row fits with the inner foot, but it is held for the last-page foot
    assert not splitter.can_start(table, 200)
    assert splitter.can_start(table, 270)
