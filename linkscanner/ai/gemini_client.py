# linkscanner/ai/gemini_client.py

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from linkscanner.config import Settings, load_settings
from linkscanner.errors import ApiError, ConfigurationError, EmptyResponseError, RetryExhaustedError

logger = logging.getLogger("linkscanner")

MAX_RETRIES = 3

# raised before anything is sent: a malformed GEMINI_API_BASE, not a network fault
BAD_URL_ERRORS = (
    requests.exceptions.InvalidURL,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
)

SYSTEM_INSTRUCTION = """
You are a cybersecurity AI analyzing URLs.
Respond ALWAYS in markdown with:

**RISK: Safe/Suspicious/Malicious/Unknown**

The first line must be exactly one of:
RISK: Safe
RISK: Suspicious
RISK: Malicious
RISK: Unknown

Then provide:
- Reasoning
- Indicators
- Final recommendation
"""

USER_PROMPT = "Analyze this link for phishing risks: {url}"

_session: requests.Session | None = None


def get_session() -> requests.Session:
    """Lazily create one pooled session per process."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def build_payload(target_url: str, enable_grounding: bool = False) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "contents": [{"parts": [{"text": USER_PROMPT.format(url=target_url)}]}],
        "system_instruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
    }
    if enable_grounding:
        payload["tools"] = [{"google_search": {}}]
    return payload


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after failed attempt ``attempt`` (0-based) before re-sending."""
    return float(2 ** attempt)


def send_with_retry(
    payload: Dict[str, Any],
    *,
    settings: Optional[Settings] = None,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
    max_retries: int = MAX_RETRIES,
) -> Dict[str, Any]:
    """
    POST the payload to the generateContent endpoint.

    429 responses and transport failures (connection errors, timeouts) are
    retried up to ``max_retries`` more times with 1s, 2s, 4s... backoff.
    Any other non-2xx status raises ApiError straight away.
    """
    settings = (settings or load_settings()).require()
    session = session or get_session()

    last_error: Optional[BaseException] = None
    # requests errors quote the full URL, which carries the key
    last_cause_text = ""

    for attempt in range(max_retries + 1):
        if attempt > 0:
            delay = backoff_delay(attempt - 1)
            logger.info(json.dumps({
                "event": "scan_retry",
                "attempt": attempt,
                "delay_s": delay,
                "cause": last_cause_text,
            }))
            sleep(delay)

        try:
            res = session.post(
                settings.endpoint,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=settings.timeout,
            )
        except BAD_URL_ERRORS as exc:
            raise ConfigurationError(
                f"GEMINI_API_BASE does not form a valid URL: {settings.redact(str(exc))}"
            ) from None
        except requests.RequestException as exc:
            last_error = exc
            last_cause_text = settings.redact(str(exc))
            continue

        if res.status_code == 429:
            last_error = ApiError(429, settings.redact(res.text))
            last_cause_text = last_error.message
            continue

        if not 200 <= res.status_code < 300:
            logger.warning(json.dumps({
                "event": "scan_api_error",
                "endpoint": settings.redacted_endpoint,
                "status": res.status_code,
            }))
            raise ApiError(res.status_code, settings.redact(res.text))

        try:
            return res.json()
        except ValueError:
            raise EmptyResponseError("Gemini returned a response that is not valid JSON.")

    logger.error(json.dumps({
        "event": "scan_failed",
        "endpoint": settings.redacted_endpoint,
        "attempts": max_retries + 1,
        "cause": last_cause_text,
    }))
    raise RetryExhaustedError(last_error, last_cause_text)
