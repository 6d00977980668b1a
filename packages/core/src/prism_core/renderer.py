"""Markdown rendering of a ReviewResult into the PR comment body.

Pure and deterministic: the same ReviewResult always renders to the same
string, whatever backend or configuration produced it.
"""

from __future__ import annotations

import math

from prism_core.schema import Finding, ReviewResult

# Every comment starts with this token so the poster can find and replace
# its previous comment. Changing it orphans comments already posted.
PRISM_COMMENT_MARKER = "<!-- prism-review -->"

RISK_BADGES = {
    "low": "🟢 Low Risk",
    "medium": "🟡 Medium Risk",
    "high": "🔴 High Risk",
}

SEVERITY_ICONS = {
    "high": "🔴",
    "medium": "🟡",
    "low": "🔵",
}
_UNKNOWN_ICON = "⚪"

CATEGORY_LABELS = {
    "bug": "🐛 Bug",
    "security": "🔒 Security",
    "performance": "⚡ Performance",
    "maintainability": "🧹 Maintainability",
    "dx": "✨ DX",
}

_SEVERITY_RANK = {"high": 0, "medium": 1, "low": 2}

NO_FINDINGS_PLACEHOLDER = "_No findings. This PR looks great._"
_FOOTER = '<sub>Powered by <a href="https://github.com/prism-review/prism">PRism</a>: see through your pull requests.</sub>'
_FALLBACK_FOOTER = '<sub>Powered by <a href="https://github.com/prism-review/prism">PRism</a></sub>'


def _location(finding: Finding) -> str:
    return f"{finding.file}:{finding.line}" if finding.line is not None else finding.file


def _icon(severity: str) -> str:
    return SEVERITY_ICONS.get(severity, _UNKNOWN_ICON)


def sort_findings(findings: list[Finding]) -> list[Finding]:
    """High → medium → low → anything else; ties keep their original order."""
    return sorted(findings, key=lambda f: _SEVERITY_RANK.get(f.severity, len(_SEVERITY_RANK)))


def _render_findings_table(findings: list[Finding]) -> list[str]:
    lines = [
        "| Severity | Category | Finding | Location |",
        "|----------|----------|---------|----------|",
    ]
    for f in sort_findings(findings):
        category = CATEGORY_LABELS.get(f.category, f.category)
        lines.append(f"| {_icon(f.severity)} {f.severity} | {category} | {f.title} | `{_location(f)}` |")
    if not findings:
        lines += ["", NO_FINDINGS_PLACEHOLDER]
    lines.append("")
    return lines


def _render_finding_details(findings: list[Finding]) -> list[str]:
    if not findings:
        return []

    lines = ["<details>", "<summary>📋 Detailed Findings</summary>", ""]
    # Original order here; the table above is the sorted view.
    for f in findings:
        lines += [
            f"#### {_icon(f.severity)} {f.title}",
            f"**Location:** `{_location(f)}`  ",
            f"**Confidence:** {math.floor(f.confidence * 100 + 0.5)}%",
            "",
            f.message,
            "",
        ]
        if f.suggestion:
            lines += [f"> 💡 **Suggestion:** {f.suggestion}", ""]
    lines += ["</details>", ""]
    return lines


def _render_praise(praise: list[str]) -> list[str]:
    if not praise:
        return []
    return ["<details>", "<summary>🌟 What looks great</summary>", "", *(f"- {p}" for p in praise), "", "</details>", ""]


def render_comment(result: ReviewResult) -> str:
    badge = RISK_BADGES.get(result.overall_risk, result.overall_risk)
    lines = [
        PRISM_COMMENT_MARKER,
        "",
        f"## 🔬 PRism Review · {badge}",
        "",
        result.summary,
        "",
        "---",
        "",
        "### Findings",
        "",
        *_render_findings_table(result.findings),
        *_render_finding_details(result.findings),
        *_render_praise(result.praise),
        "---",
        "",
        _FOOTER,
        "",
    ]
    return "\n".join(lines)


def render_fallback_comment(reason: str) -> str:
    """Comment posted when the model output could not be validated. Carries no findings."""
    lines = [
        PRISM_COMMENT_MARKER,
        "",
        "## 🔬 PRism Review",
        "",
        "⚠️ PRism could not produce a structured review for this PR.",
        "",
        f"**Reason:** {reason}",
        "",
        "The LLM response did not match the expected schema. This can happen with very large diffs or "
        "model-specific formatting quirks. Try re-running the review.",
        "",
        "---",
        "",
        _FALLBACK_FOOTER,
        "",
    ]
    return "\n".join(lines)
