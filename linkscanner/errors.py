# linkscanner/errors.py

"""
Error taxonomy for a single link scan.

Every error carries a human-readable ``message`` that callers surface
verbatim. None of them are retried by the caller; retrying transient
transport failures happens inside ``send_with_retry`` only.
"""

from __future__ import annotations

from typing import Optional


class LinkScannerError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(LinkScannerError):
    pass


class ConfigurationError(LinkScannerError):
    pass


class ApiError(LinkScannerError):
    """Non-success HTTP status from the generation endpoint."""

    def __init__(self, status: int, body: str):
        super().__init__(f"API failed: {status} → {body}")
        self.status = status
        self.body = body


class RetryExhaustedError(LinkScannerError):
    def __init__(self, last_cause: Optional[BaseException], detail: Optional[str] = None):
        cause_msg = detail or getattr(last_cause, "message", None) or str(last_cause)
        super().__init__(f"Failed after retries → {cause_msg}")
        self.last_cause = last_cause


class EmptyResponseError(LinkScannerError):
    def __init__(self, message: str = "Empty response from Gemini."):
        super().__init__(message)
