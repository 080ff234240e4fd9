# linkscanner/config.py

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from linkscanner.errors import ConfigurationError

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_SECONDS = 30.0

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    api_key: str
    model: str
    api_base: str = DEFAULT_API_BASE
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    grounding: bool = False
    sentry_dsn: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.api_key and self.model)

    def require(self) -> "Settings":
        """Raise before any network call if the endpoint cannot be built."""
        if not self.is_complete:
            raise ConfigurationError(
                "Missing API key or model configuration (GEMINI_API_KEY / GEMINI_MODEL)."
            )
        return self

    @property
    def endpoint(self) -> str:
        base = self.api_base.rstrip("/")
        return f"{base}/models/{self.model}:generateContent?key={self.api_key}"

    def redact(self, text: str) -> str:
        """Mask the API key wherever it shows up in a message."""
        if not self.api_key:
            return text
        return text.replace(self.api_key, "***")

    @property
    def redacted_endpoint(self) -> str:
        base = self.api_base.rstrip("/")
        return f"{base}/models/{self.model}:generateContent?key=***"


def _env(*names: str, default: str = "") -> str:
    for name in names:
        value = os.getenv(name)
        if value:
            return value.strip()
    return default


def _parse_timeout(raw: Optional[str]) -> float:
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"LINK_SCAN_TIMEOUT must be a number of seconds, got {raw!r}.")
    if value <= 0:
        raise ConfigurationError("LINK_SCAN_TIMEOUT must be greater than zero.")
    return value


def load_settings() -> Settings:
    """
    Read configuration from the environment.

    Read fresh on every call so a redeploy with new variables (or a test
    using monkeypatch) is picked up without restarting the process.
    """
    return Settings(
        api_key=_env("GEMINI_API_KEY", "API_KEY"),
        model=_env("GEMINI_MODEL", "API_MODEL"),
        api_base=_env("GEMINI_API_BASE", default=DEFAULT_API_BASE),
        timeout=_parse_timeout(os.getenv("LINK_SCAN_TIMEOUT")),
        grounding=os.getenv("LINK_SCAN_GROUNDING", "").strip().lower() in _TRUTHY,
        sentry_dsn=os.getenv("SENTRY_DSN", ""),
    )
