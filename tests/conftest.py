# tests/conftest.py
import sys
import pytest
import requests
from pathlib import Path

# Ensure the repo root is in sys.path for imports
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from linkscanner.config import Settings  # noqa: E402

ENV_VARS = (
    "GEMINI_API_KEY",
    "API_KEY",
    "GEMINI_MODEL",
    "API_MODEL",
    "GEMINI_API_BASE",
    "LINK_SCAN_TIMEOUT",
    "LINK_SCAN_GROUNDING",
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Replays a scripted list of responses/exceptions, recording each call."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class SleepRecorder:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that exercise the HTTP service end to end"
    )


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def configured_env(clean_env):
    clean_env.setenv("GEMINI_API_KEY", "test-key")
    clean_env.setenv("GEMINI_MODEL", "gemini-test")
    return clean_env


@pytest.fixture
def settings():
    return Settings(api_key="test-key", model="gemini-test", timeout=5.0)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def make_session():
    return FakeSession


@pytest.fixture
def ok_response():
    def _make(payload):
        return FakeResponse(200, payload)
    return _make


@pytest.fixture
def rate_limited():
    return FakeResponse(429, text="Resource has been exhausted")


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection reset by peer")


@pytest.fixture
def safe_body():
    return {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"text": "**RISK: Safe**\n\n## Reasoning\nWell-known domain.\n\n- No indicators"}
                    ]
                }
            }
        ]
    }


@pytest.fixture
def grounded_body():
    return {
        "candidates": [
            {
                "content": {"parts": [{"text": "RISK: Malicious\n\nKnown phishing kit."}]},
                "groundingMetadata": {
                    "groundingAttributions": [
                        {"web": {"uri": "https://a", "title": "A"}},
                        {"web": {}},
                        {"web": {"uri": "https://b"}},
                        {"web": {"title": "C only"}},
                        {"web": {"uri": "https://d", "title": "D"}},
                    ]
                },
            }
        ]
    }
