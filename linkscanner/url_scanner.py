# ---------------------------------------------------------
# URL Scanner — AI risk assessment (Gemini generateContent)
# ---------------------------------------------------------

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from linkscanner.ai.gemini_client import build_payload, send_with_retry
from linkscanner.config import Settings, load_settings
from linkscanner.errors import EmptyResponseError, InvalidInputError
from linkscanner.models import AnalysisResult, Citation, RiskLevel, ScanRequest
from linkscanner.utils.report_renderer import render_report

logger = logging.getLogger("linkscanner")

VALID_PREFIXES = ("http://", "https://")

RISK_PATTERN = re.compile(r"RISK:\s*(Safe|Suspicious|Malicious|Unknown)", re.IGNORECASE)


# ---------------------------------------------------------
# INPUT
# ---------------------------------------------------------

def validate(target_url: str) -> ScanRequest:
    """Scheme prefix check only. No parsing, DNS or reachability checks."""
    if not isinstance(target_url, str) or not target_url.startswith(VALID_PREFIXES):
        raise InvalidInputError("Enter a valid URL (starting with http:// or https://).")
    return ScanRequest(target_url=target_url)


# ---------------------------------------------------------
# RESPONSE HELPERS
# ---------------------------------------------------------

def _first(items: Any) -> Any:
    if isinstance(items, list) and items:
        return items[0]
    return None


def _first_candidate(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        return {}
    candidate = _first(raw.get("candidates"))
    return candidate if isinstance(candidate, dict) else {}


def extract_text(raw: Any) -> str:
    """candidates[0].content.parts[0].text, or EmptyResponseError."""
    content = _first_candidate(raw).get("content")
    part = _first(content.get("parts")) if isinstance(content, dict) else None
    text = part.get("text") if isinstance(part, dict) else None

    if not isinstance(text, str) or not text.strip():
        raise EmptyResponseError()
    return text


def parse_risk_level(text: str) -> RiskLevel:
    match = RISK_PATTERN.search(text or "")
    if not match:
        return RiskLevel.UNKNOWN
    return RiskLevel(match.group(1).lower())


def extract_citations(raw: Any) -> List[Citation]:
    """
    Web sources from grounding metadata, in response order.

    Entries missing a uri or a title are dropped. Older responses list them
    under ``groundingAttributions``, newer ones under ``groundingChunks``;
    both carry the source in a ``web`` object.
    """
    metadata = _first_candidate(raw).get("groundingMetadata")
    if not isinstance(metadata, dict):
        return []

    entries = metadata.get("groundingAttributions")
    if not isinstance(entries, list):
        entries = metadata.get("groundingChunks")
    if not isinstance(entries, list):
        return []

    citations: List[Citation] = []
    for entry in entries:
        web = entry.get("web") if isinstance(entry, dict) else None
        if not isinstance(web, dict):
            continue
        uri = web.get("uri")
        title = web.get("title")
        if isinstance(uri, str) and uri and isinstance(title, str) and title:
            citations.append(Citation(uri=uri, title=title))
    return citations


def interpret(raw: Any, target_url: str = "") -> AnalysisResult:
    text = extract_text(raw)
    return AnalysisResult(
        target_url=target_url,
        risk_level=parse_risk_level(text),
        rendered_report=render_report(text),
        raw_text=text,
        citations=tuple(extract_citations(raw)),
    )


# ---------------------------------------------------------
# MAIN ENTRY POINT
# ---------------------------------------------------------

def analyze_url(
    target_url: str,
    enable_grounding: Optional[bool] = None,
    *,
    settings: Optional[Settings] = None,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> AnalysisResult:
    """
    Validate, send with retry, interpret.

    Input is checked before configuration, and both before any network call.
    """
    scan = validate(target_url)

    settings = (settings or load_settings()).require()
    grounding = settings.grounding if enable_grounding is None else enable_grounding

    started = time.time()
    payload = build_payload(scan.target_url, grounding)
    raw = send_with_retry(payload, settings=settings, session=session, sleep=sleep)
    result = interpret(raw, scan.target_url)

    logger.info(json.dumps({
        "event": "scan_complete",
        "url": scan.target_url,
        "risk": result.risk_level.value,
        "citations": len(result.citations),
        "grounding": grounding,
        "duration_ms": round((time.time() - started) * 1000, 2),
    }))
    return result
