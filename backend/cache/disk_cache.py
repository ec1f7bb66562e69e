"""
Content-hash disk cache for pagination results and rendered PDFs.
Pagination: key = sha256(html + config_json) -> PaginateResponse JSON.
PDF: key = sha256(html + config_json) -> PDF bytes.
"""
from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any

# Cache directory under backend/cache unless PAGINATION_CACHE_DIR is set
_CACHE_DIR = Path(os.getenv("PAGINATION_CACHE_DIR") or Path(__file__).resolve().parent)
PAGINATION_CACHE_DIR = _CACHE_DIR / "paginations"
PDF_CACHE_DIR = _CACHE_DIR / "pdfs"


def _ensure_dir(d: Path) -> None:
    d.mkdir(parents=True, exist_ok=True)


def _content_key(html_str: str, config: dict) -> str:
    h = hashlib.sha256(html_str.encode("utf-8")).hexdigest()
    payload = json.dumps(config, sort_keys=True, default=str)
    return hashlib.sha256((h + "|" + payload).encode()).hexdigest()


def get_cached_pagination(html_str: str, config: dict) -> dict[str, Any] | None:
    """Return cached PaginateResponse as dict, or None."""
    _ensure_dir(PAGINATION_CACHE_DIR)
    path = PAGINATION_CACHE_DIR / f"{_content_key(html_str, config)}.json"
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None


def set_cached_pagination(html_str: str, config: dict, response_dict: dict[str, Any]) -> None:
    _ensure_dir(PAGINATION_CACHE_DIR)
    path = PAGINATION_CACHE_DIR / f"{_content_key(html_str, config)}.json"
    path.write_text(json.dumps(response_dict, default=str), encoding="utf-8")


def get_cached_pdf(html_str: str, config: dict) -> bytes | None:
    """Return cached PDF bytes, or None."""
    _ensure_dir(PDF_CACHE_DIR)
    path = PDF_CACHE_DIR / f"{_content_key(html_str, config)}.pdf"
    if not path.exists():
        return None
    try:
        return path.read_bytes()
    except OSError:
        return None


def set_cached_pdf(html_str: str, config: dict, pdf_bytes: bytes) -> None:
    _ensure_dir(PDF_CACHE_DIR)
    path = PDF_CACHE_DIR / f"{_content_key(html_str, config)}.pdf"
    path.write_bytes(pdf_bytes)
