from __future__ import annotations

import hashlib
import logging
import os
import time
import uuid
from pathlib import Path

from dotenv import load_dotenv

# Load .env from backend directory so PAGE_CAPACITY_PX etc. are available
load_dotenv(Path(__file__).resolve().parent / ".env")

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from cache.disk_cache import get_cached_pagination, get_cached_pdf, set_cached_pagination, set_cached_pdf
from layouts import get_layout, list_layouts
from models import (
    DiagnosticOut,
    LayoutOut,
    PageSummary,
    PaginateRequest,
    PaginateResponse,
    TableTotalsOut,
)
from models_layout import PaginationConfig
from pagination.diagnostics import PaginationError
from pagination.measure import build_measurer
from pagination.paginator import PaginationResult, paginate_html

VERSION = (os.environ.get("GIT_COMMIT") or "").strip() or "unknown"

_LOG = logging.getLogger("uvicorn.error")

app = FastAPI(title="Invoice Paginator", version="0.1.0")

# CORS: use ALLOWED_ORIGINS env (comma-separated) if set, else default
_origins_env = os.environ.get("ALLOWED_ORIGINS", "").strip()
if _origins_env:
    ALLOWED_ORIGINS = [o.strip() for o in _origins_env.split(",") if o.strip()]
else:
    ALLOWED_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        _LOG.info(
            "request_id=%s method=%s path=%s status=%s duration_ms=%.0f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        response.headers["X-Request-Id"] = request_id
        return response


app.add_middleware(RequestLogMiddleware)


@app.on_event("startup")
def startup_log() -> None:
    _LOG.info(
        "Paginator starting version=%s page_capacity_px=%s measurer=%s",
        VERSION,
        os.getenv("PAGE_CAPACITY_PX", "default"),
        os.getenv("PAGINATION_MEASURER", "browser"),
    )


@app.get("/health")
def health():
    return {"status": "ok", "version": VERSION}


@app.get("/health/pdf")
def health_pdf():
    """
    Runtime check for Playwright dependencies (used for measuring and PDF).
    Returns 200 only when Chromium can launch successfully.
    """
    try:
        from playwright.sync_api import sync_playwright
    except ImportError:
        raise HTTPException(status_code=503, detail="Playwright is not installed.")

    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(args=["--no-sandbox"])
            page = browser.new_page()
            page.set_content("<html><body>ok</body></html>")
            browser.close()
    except Exception as e:
        msg = str(e)
        if len(msg) > 500:
            msg = msg[:500]
        raise HTTPException(
            status_code=503,
            detail=f"Playwright runtime unavailable: {msg}",
        ) from e

    return {"status": "ok", "pdf_runtime": "ready"}


@app.get("/version")
def version():
    return {"version": VERSION, "source_file": str(Path(__file__).resolve())}


@app.get("/layouts")
def get_layouts_list() -> list[LayoutOut]:
    """Return the registered page layouts."""
    return [
        LayoutOut(
            layout_id=layout.layout_id,
            page_size=layout.page_size,
            page_capacity_px=layout.page_capacity_px,
            viewport_width_px=layout.viewport_width_px,
        )
        for layout in list_layouts()
    ]


def _config_for(req: PaginateRequest) -> PaginationConfig:
    """Layout preset with the request's overrides applied. Unknown layout -> 400."""
    config = get_layout(req.layout_id)
    if config is None:
        raise HTTPException(status_code=400, detail=f"Unknown layout_id: {req.layout_id}")
    overrides = {}
    if req.page_capacity_px is not None:
        overrides["page_capacity_px"] = req.page_capacity_px
        overrides["measure_page_capacity"] = False
    if req.locale:
        overrides["locale"] = req.locale
    if req.keep_source is not None:
        overrides["keep_source"] = req.keep_source
    return config.model_copy(update=overrides)


def _cache_config(req: PaginateRequest, config: PaginationConfig) -> dict:
    return {"config": config.model_dump(mode="json"), "measurer": req.measurer}


def _run(req: PaginateRequest, config: PaginationConfig) -> PaginationResult:
    rid = hashlib.sha256(req.html.encode("utf-8")).hexdigest()[:12]
    start = time.perf_counter()
    measurer = build_measurer(
        req.measurer,
        viewport_width=config.viewport_width_px,
        page_class=config.page_class,
    )
    try:
        result = paginate_html(req.html, config, measurer)
    except PaginationError as e:
        _LOG.info("PAGINATE_ERR rid=%s err=%s", rid, e)
        raise HTTPException(status_code=422, detail=str(e)) from e
    except ImportError:
        raise HTTPException(
            status_code=503,
            detail="Playwright is required for browser measurement. Install: pip install playwright && playwright install chromium. Use measurer=attributes for pre-measured documents.",
        )
    except Exception as e:
        if req.measurer != "browser":
            raise
        _LOG.warning("MEASURE_ERR rid=%s err=%s", rid, str(e)[:400])
        raise HTTPException(
            status_code=503,
            detail="Browser measurement runtime unavailable. Use measurer=attributes for pre-measured documents.",
        ) from e
    duration_ms = (time.perf_counter() - start) * 1000
    _LOG.info(
        "PAGINATE_DONE rid=%s layout=%s pages=%d diagnostics=%d duration_ms=%.0f",
        rid, config.layout_id, result.page_count, len(result.diagnostics), duration_ms,
    )
    return result


def _to_response(result: PaginationResult) -> PaginateResponse:
    return PaginateResponse(
        html=result.html,
        page_count=result.page_count,
        pages=[
            PageSummary(
                number=p.number,
                role=p.role,
                block_count=len(p.blocks),
                remaining_height=p.remaining_height,
            )
            for p in result.pages
        ],
        tables=[
            TableTotalsOut(page=t.page, carry_over=t.carry_over, table_total=t.table_total)
            for t in result.tables
        ],
        diagnostics=[DiagnosticOut(code=d.code, message=d.message, page=d.page) for d in result.diagnostics],
    )


@app.post("/paginate", response_model=PaginateResponse)
def paginate_endpoint(req: PaginateRequest) -> PaginateResponse:
    """
    Paginate the document and return the paged HTML with page, table-total and
    diagnostic summaries. Cached by document + effective config.
    """
    config = _config_for(req)
    cache_config = _cache_config(req, config)
    cached = get_cached_pagination(req.html, cache_config)
    if cached is not None:
        return PaginateResponse.model_validate(cached)
    response = _to_response(_run(req, config))
    set_cached_pagination(req.html, cache_config, response.model_dump(mode="json"))
    return response


@app.post("/paginate/preview", response_class=HTMLResponse)
def paginate_preview(req: PaginateRequest):
    """Return only the paginated HTML (no PDF runtime needed with measurer=attributes)."""
    config = _config_for(req)
    result = _run(req, config)
    return HTMLResponse(result.html, headers={"X-Page-Count": str(result.page_count)})


@app.post("/paginate/pdf")
def paginate_pdf(req: PaginateRequest) -> Response:
    """
    Paginate, then render to PDF with Playwright. Uses cache when the same
    document + config was rendered before; does not regenerate the PDF.
    """
    config = _config_for(req)
    cache_config = _cache_config(req, config)
    headers = {"Content-Disposition": 'attachment; filename="paginated.pdf"'}

    cached_pdf = get_cached_pdf(req.html, cache_config)
    if cached_pdf is not None:
        return Response(content=cached_pdf, media_type="application/pdf", headers=headers)

    result = _run(req, config)
    try:
        from pagination.render import html_to_pdf

        pdf_bytes = html_to_pdf(result.html, page_size=config.page_size)
    except ImportError:
        raise HTTPException(
            status_code=503,
            detail="Playwright is required for PDF. Install: pip install playwright && playwright install chromium. Use POST /paginate/preview for HTML without Playwright.",
        )
    except Exception as e:
        _LOG.warning("PDF generation failed: %s", e)
        raise HTTPException(
            status_code=503,
            detail="PDF generation runtime unavailable. Use POST /paginate/preview to get HTML instead.",
        ) from e

    set_cached_pdf(req.html, cache_config, pdf_bytes)
    headers["X-Page-Count"] = str(result.page_count)
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)


def get_app() -> FastAPI:
    """
    Convenience accessor for ASGI servers.
    """
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8010,
        reload=True,
    )
