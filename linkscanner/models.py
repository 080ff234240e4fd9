from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, Enum):
    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    MALICIOUS = "malicious"
    UNKNOWN = "unknown"


class ScanRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_url: str


class Citation(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str
    title: str


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_url: str
    risk_level: RiskLevel = RiskLevel.UNKNOWN
    rendered_report: str
    raw_text: str
    citations: Tuple[Citation, ...] = ()


class AnalyzeRequest(BaseModel):
    url: str = Field(..., description="Link to analyze; must start with http:// or https://.")
    grounding: Optional[bool] = Field(
        None,
        description="Enable search-grounded answers. Falls back to LINK_SCAN_GROUNDING.",
    )
    client_id: Optional[str] = Field(
        None,
        max_length=128,
        description="Caller key for last-call-wins tracking. Defaults to the client IP.",
    )


class AnalyzeResponse(BaseModel):
    url: str
    risk: RiskLevel
    risk_class: str
    report_html: str
    citations: List[Citation]
    stale: bool = False
