"""FastAPI adapter: lets a remote host indexer request index values over HTTP."""

from __future__ import annotations

import logging
import os
import tempfile
from functools import lru_cache
from pathlib import Path

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .config import UPLOAD_CHUNK_SIZE, UPLOAD_MAX_BYTES, load_indexing_config, log_startup_config
from .eligibility import is_eligible
from .pipeline import PdfIndexer
from .schema import FileRef
from .utils import ConfigurationError

logger = logging.getLogger(__name__)

app = FastAPI(title="PDF Indexer")


@lru_cache(maxsize=1)
def get_indexer() -> PdfIndexer:
    """Build the process-wide indexer once; backends are probed here."""
    return PdfIndexer(load_indexing_config())


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------
@app.on_event("startup")
def _startup() -> None:
    try:
        log_startup_config()
    except ConfigurationError as exc:
        # Requests still fail with 400 through the handler below.
        logger.error("Invalid PDF indexer configuration: %s", exc)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
@app.exception_handler(ConfigurationError)
async def _configuration_error_handler(request, exc: ConfigurationError):  # noqa: ARG001
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request, exc: Exception):  # noqa: ARG001
    if isinstance(exc, HTTPException):
        raise exc
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc) or "Internal server error"},
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
async def _stream_upload_to_temp(file: UploadFile) -> tuple[str, int]:
    """Stream *file* to a temp file in chunks; enforce size limit. Returns (path, size)."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file provided.")
    total = 0
    tmp = tempfile.NamedTemporaryFile(delete=False, suffix=Path(file.filename).suffix)
    try:
        while True:
            chunk = await file.read(UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > UPLOAD_MAX_BYTES:
                raise HTTPException(
                    status_code=413,
                    detail=f"File too large (limit {UPLOAD_MAX_BYTES // (1024*1024)} MB).",
                )
            tmp.write(chunk)
        tmp.flush()
    except Exception:
        tmp.close()
        os.unlink(tmp.name)
        raise
    finally:
        tmp.close()
    if total == 0:
        os.unlink(tmp.name)
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")
    return tmp.name, total


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/config")
async def api_config():
    """Expose available methods, effective selection and resolved limits."""
    return get_indexer().describe()


@app.post("/api/index")
async def index_endpoint(
    file: UploadFile = File(...),
    builtin: str = Form(""),
):
    """Return the final index value for an uploaded file."""
    indexer = get_indexer()
    temp_path, size = await _stream_upload_to_temp(file)
    try:
        file_ref = FileRef(
            path=Path(temp_path),
            ext=Path(file.filename).suffix.lstrip("."),
            size=size,
        )
        eligible = indexer.enabled and is_eligible(
            file_ref, indexer.config.file_extensions, indexer.config.max_file_size
        )
        # Extraction blocks for up to the time budget; keep it off the event loop.
        value = await run_in_threadpool(indexer.on_get_index_value, file_ref, builtin)
        return {"value": value, "eligible": eligible, "method": indexer.method.value}
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)
