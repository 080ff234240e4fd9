# main.py

from __future__ import annotations

from pathlib import Path
from typing import Optional

import os
import time
import json
import secrets
import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError

from linkscanner.config import load_settings
from linkscanner.errors import (
    ApiError,
    ConfigurationError,
    EmptyResponseError,
    InvalidInputError,
    LinkScannerError,
    RetryExhaustedError,
)
from linkscanner.models import AnalysisResult, AnalyzeRequest, AnalyzeResponse
from linkscanner.scan_tracker import ScanTracker
from linkscanner.url_scanner import analyze_url
from linkscanner.utils.report_renderer import risk_css_class

SENTRY_DSN = os.getenv("SENTRY_DSN", "")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")

if SENTRY_DSN:
    sentry_sdk.init(dsn=SENTRY_DSN, traces_sample_rate=0.2)

# ---------------------------------------------------------
# FastAPI + static
# ---------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent
STATIC_DIR = BASE_DIR / "static"

logger = logging.getLogger("linkscanner")
logging.basicConfig(level=logging.INFO, format="%(message)s")

app = FastAPI(title="Link Safety Scanner API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

TRACKER = ScanTracker()

ERROR_STATUS = {
    InvalidInputError: 400,
    ConfigurationError: 503,
    ApiError: 502,
    EmptyResponseError: 502,
    RetryExhaustedError: 504,
}


def _status_for(exc: LinkScannerError) -> int:
    for cls, status in ERROR_STATUS.items():
        if isinstance(exc, cls):
            return status
    return 500


@app.exception_handler(LinkScannerError)
async def scanner_exception_handler(request: Request, exc: LinkScannerError):
    status = _status_for(exc)
    logger.warning(json.dumps({
        "event": "scan_error",
        "path": request.url.path,
        "type": type(exc).__name__,
        "status": status,
        "error": exc.message,
    }))
    return JSONResponse({"error": exc.message}, status_code=status)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "Invalid request.", "detail": exc.errors()}, status_code=422)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(json.dumps({"event": "error", "path": request.url.path, "error": str(exc)}))
    return JSONResponse({"error": "Internal server error."}, status_code=500)


# Global headers middleware for security headers + request id
@app.middleware("http")
async def security_headers(request: Request, call_next):
    request_id = secrets.token_hex(8)
    request.state.request_id = request_id
    start_time = time.time()
    response = await call_next(request)
    duration = round((time.time() - start_time) * 1000, 2)
    logger.info(json.dumps({
        "event": "request",
        "request_id": request_id,
        "path": request.url.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration,
        "ip": _get_client_ip(request),
    }))
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "no-referrer"
    response.headers["Content-Security-Policy"] = "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; img-src 'self' data:; connect-src 'self'; frame-ancestors 'none';"
    return response


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------
def _get_client_ip(request: Request) -> str:
    xfwd = request.headers.get("x-forwarded-for")
    if xfwd:
        return xfwd.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def build_response(result: AnalysisResult, stale: bool = False) -> dict:
    return AnalyzeResponse(
        url=result.target_url,
        risk=result.risk_level,
        risk_class=risk_css_class(result.risk_level),
        report_html=result.rendered_report,
        citations=list(result.citations),
        stale=stale,
    ).model_dump(mode="json")


# ---------------------------------------------------------
# Pages
# ---------------------------------------------------------
@app.get("/")
def root():
    return FileResponse(STATIC_DIR / "index.html")


@app.get("/health")
def health():
    settings = load_settings()
    return {
        "status": "ok",
        "configured": settings.is_complete,
        "grounding_default": settings.grounding,
    }


# ---------------------------------------------------------
# Scanning
# ---------------------------------------------------------
@app.post("/analyze")
def analyze(body: AnalyzeRequest, request: Request):
    # plain def: runs in the threadpool, so retries/backoff don't block the loop
    client_id = body.client_id or _get_client_ip(request)
    token = TRACKER.begin(client_id)

    result = analyze_url(body.url, body.grounding)

    resp = build_response(result)
    if not TRACKER.apply(client_id, token, resp):
        logger.info(json.dumps({"event": "stale_result", "client_id": client_id, "token": token}))
        resp["stale"] = True
    return resp


@app.get("/latest")
def latest(request: Request, client_id: Optional[str] = None):
    key = client_id or _get_client_ip(request)
    resp = TRACKER.latest(key)
    if resp is None:
        return JSONResponse({"error": "No scan result for this client."}, status_code=404)
    return resp
