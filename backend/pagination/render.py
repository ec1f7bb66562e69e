"""Render paginated HTML to PDF via Playwright."""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def print_css(page_size: str = "A4") -> str:
    """One .page container per sheet; the sheet size comes from @page."""
    return (
        f"@page {{ size: {page_size}; margin: 0; }}\n"
        ".page { break-after: page; page-break-after: always; overflow: hidden; }\n"
        ".page:last-child { break-after: auto; page-break-after: auto; }\n"
    )


def with_print_css(html_content: str, page_size: str = "A4") -> str:
    style = f"<style>{print_css(page_size)}</style>"
    if "</head>" in html_content:
        return html_content.replace("</head>", f"{style}</head>", 1)
    return style + html_content


def html_to_pdf(html_content: str, page_size: str = "A4") -> bytes:
    """Render HTML to PDF using Playwright. Uses the CSS page size, no margins."""
    from playwright.sync_api import sync_playwright

    with sync_playwright() as p:
        browser = p.chromium.launch(args=["--no-sandbox"])
        page = browser.new_page()
        page.set_content(with_print_css(html_content, page_size), wait_until="networkidle")
        page.emulate_media(media="print")
        pdf_bytes = page.pdf(
            print_background=True,
            prefer_css_page_size=True,
            margin={"top": "0in", "bottom": "0in", "left": "0in", "right": "0in"},
        )
        browser.close()
    logger.info("[render] pdf bytes=%d page_size=%s", len(pdf_bytes), page_size)
    return pdf_bytes
