"""Add backend to path so tests can use 'from pagination import ...' when run from project root."""
import os
import sys

import pytest

_backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _backend_dir not in sys.path:
    sys.path.insert(0, _backend_dir)


@pytest.fixture(autouse=True)
def _isolated_cache_dirs(tmp_path, monkeypatch):
    """Keep disk cache writes out of the source tree."""
    from cache import disk_cache

    monkeypatch.setattr(disk_cache, "PAGINATION_CACHE_DIR", tmp_path / "paginations")
    monkeypatch.setattr(disk_cache, "PDF_CACHE_DIR", tmp_path / "pdfs")
