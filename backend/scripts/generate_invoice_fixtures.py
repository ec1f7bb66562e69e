"""
Generate sample paginated invoice fixtures:
1) short invoice that fits one page
2) long invoice whose line items split across pages
3) two-table invoice with carry-over between tables

Heights are given as data-height attributes so the fixtures paginate without
a browser; PDFs are rendered when Playwright is available.

Usage:
  cd backend
  python3 scripts/generate_invoice_fixtures.py
"""
from __future__ import annotations

from pathlib import Path
import sys

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from layouts import get_layout
from pagination.format_utils import format_amount
from pagination.measure import AttributeMeasurer
from pagination.paginator import paginate_html
from pagination.render import html_to_pdf


OUT_DIR = Path(__file__).resolve().parents[1] / "reports" / "fixtures"

ROW_HEIGHT = 24
STYLE = """
body { font-family: Georgia, 'Times New Roman', serif; margin: 0; }
.page { height: 1123px; padding: 0 48px; box-sizing: border-box; }
table { width: 100%; border-collapse: collapse; }
td, th { height: 23px; border-bottom: 1px solid #ddd; padding: 0 6px; }
td.amount, td.carry-over, td.running-total { text-align: right; }
"""


def _line_items(prefix: str, count: int, unit_price: float) -> str:
    rows = []
    for i in range(1, count + 1):
        amount = unit_price * (1 + (i % 3))
        rows.append(
            f'<tr class="line-item" data-height="{ROW_HEIGHT}">'
            f"<td>{prefix}-{i:03d}</td><td>Service item {i}</td>"
            f'<td class="amount">{format_amount(amount)}</td></tr>'
        )
    return "".join(rows)


def _table(prefix: str, count: int, unit_price: float) -> str:
    return f"""
<table class="splittable">
  <thead class="first-page inner-pages last-page">
    <tr data-height="{ROW_HEIGHT}"><th>Ref</th><th>Description</th><th>Amount</th></tr>
  </thead>
  <thead class="inner-pages last-page">
    <tr class="carry-over" data-height="{ROW_HEIGHT}"><td colspan="2">Carried over</td><td class="carry-over"></td></tr>
  </thead>
  <tbody>{_line_items(prefix, count, unit_price)}</tbody>
  <tfoot class="first-page inner-pages">
    <tr class="running-total" data-height="{ROW_HEIGHT}"><td colspan="2">Subtotal, continued overleaf</td><td class="running-total"></td></tr>
  </tfoot>
  <tfoot class="last-page">
    <tr class="running-total" data-height="{ROW_HEIGHT * 2}"><td colspan="2"><strong>Total</strong></td><td class="running-total"></td></tr>
  </tfoot>
</table>"""


def _invoice(tables: list[str], title: str) -> str:
    body = "".join(f'<div class="section" data-height="48"><h3>Part {i}</h3></div>{t}' for i, t in enumerate(tables, 1))
    return f"""<!DOCTYPE html>
<html><head><meta charset="utf-8"><title>{title}</title><style>{STYLE}</style></head>
<body>
<div class="paginate">
  <div class="header first-page single-page" data-height="220"><h1>{title}</h1><p>Invoice INV-2026-0042</p></div>
  <div class="header inner-pages last-page" data-height="80"><p>{title} (continued)</p></div>
  <div class="body">{body}</div>
  <div class="footer single-page first-page inner-pages last-page" data-height="60">
    <p>Page <span class="page-number"></span> of <span class="page-count"></span></p>
  </div>
</div>
</body></html>"""


def _write_fixture(name: str, html_str: str) -> None:
    config = get_layout("a4-portrait")
    result = paginate_html(html_str, config, AttributeMeasurer())
    html_path = OUT_DIR / f"{name}.html"
    html_path.write_text(result.html, encoding="utf-8")
    print(f"[fixture] {name}: pages={result.page_count} diagnostics={len(result.diagnostics)}")

    try:
        pdf = html_to_pdf(result.html, page_size=config.page_size)
    except Exception as exc:  # pragma: no cover - local tooling fallback
        print(f"[fixture] {name}: PDF generation skipped ({exc})")
        return

    pdf_path = OUT_DIR / f"{name}.pdf"
    pdf_path.write_bytes(pdf)
    print(f"[fixture] wrote {pdf_path}")


def main() -> None:
    OUT_DIR.mkdir(parents=True, exist_ok=True)
    _write_fixture("invoice-single-page", _invoice([_table("A", 8, 40.0)], "Consulting Services"))
    _write_fixture("invoice-long", _invoice([_table("A", 120, 40.0)], "Annual Maintenance"))
    _write_fixture(
        "invoice-two-tables",
        _invoice([_table("A", 45, 40.0), _table("B", 30, 125.0)], "Project Delivery"),
    )
    print(f"[fixture] complete. Outputs in {OUT_DIR}")


if __name__ == "__main__":
    main()
