# linkscanner/utils/report_renderer.py

"""
Turns the model's markdown into HTML that is safe to drop into a page.

Model output is untrusted: raw HTML passes through Python-Markdown
untouched, so everything is run through nh3 afterwards.
"""

import markdown
import nh3

ALLOWED_TAGS = {
    "p", "br", "hr",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "strong", "em", "b", "i", "code", "pre", "blockquote",
    "ul", "ol", "li",
    "a",
    "table", "thead", "tbody", "tr", "th", "td",
}

ALLOWED_ATTRIBUTES = {
    "a": {"href", "title"},
}

URL_SCHEMES = {"http", "https", "mailto"}

RISK_CLASSES = {
    "safe": "risk-safe",
    "suspicious": "risk-suspicious",
    "malicious": "risk-malicious",
}


def render_report(text: str) -> str:
    html = markdown.markdown(text or "", extensions=["tables", "sane_lists"])
    return nh3.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        url_schemes=URL_SCHEMES,
        link_rel="noopener noreferrer",
    )


def risk_css_class(risk_level) -> str:
    # accepts the RiskLevel enum or its plain string value
    key = getattr(risk_level, "value", risk_level)
    return RISK_CLASSES.get(str(key).lower(), "risk-unknown")
