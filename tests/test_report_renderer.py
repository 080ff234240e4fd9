# tests/test_report_renderer.py
import pytest

from linkscanner.models import RiskLevel
from linkscanner.utils.report_renderer import render_report, risk_css_class


def test_markdown_is_rendered():
    html = render_report("**RISK: Suspicious**\n\n## Indicators\n\n- odd TLD\n- login form")
    assert "<strong>RISK: Suspicious</strong>" in html
    assert "<h2>Indicators</h2>" in html
    assert "<li>odd TLD</li>" in html


def test_script_tags_are_removed():
    html = render_report("RISK: Malicious\n\n<script>alert(1)</script>\n\n<p onclick=\"x()\">hi</p>")
    assert "<script" not in html
    assert "onclick" not in html


def test_javascript_links_are_dropped():
    html = render_report("[click me](javascript:void) and [ok](https://example.com)")
    assert "javascript:" not in html
    assert 'href="https://example.com"' in html
    assert "noopener" in html


def test_empty_text_renders_empty():
    assert render_report("") == ""


@pytest.mark.parametrize("level, expected", [
    (RiskLevel.SAFE, "risk-safe"),
    (RiskLevel.SUSPICIOUS, "risk-suspicious"),
    (RiskLevel.MALICIOUS, "risk-malicious"),
    (RiskLevel.UNKNOWN, "risk-unknown"),
    ("Malicious", "risk-malicious"),
    ("", "risk-unknown"),
])
def test_risk_css_class(level, expected):
    assert risk_css_class(level) == expected
