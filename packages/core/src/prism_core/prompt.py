from __future__ import annotations

from prism_core.config import PrismConfig
from prism_core.models import ChatMessage

PROFILE_INSTRUCTIONS: dict[str, str] = {
    "balanced": (
        "Review for bugs, security issues, performance problems, and code quality. Prioritize high-impact findings."
    ),
    "security": (
        "Focus primarily on security vulnerabilities, injection risks, auth flaws, data exposure, and unsafe "
        "patterns. Still note critical bugs."
    ),
    "performance": (
        "Focus primarily on performance bottlenecks, memory leaks, unnecessary allocations, N+1 queries, and "
        "algorithmic inefficiency. Still note critical bugs."
    ),
    "strict": (
        "Apply maximum scrutiny. Flag all code quality issues including naming, structure, error handling, edge "
        "cases, type safety, and test coverage gaps. Be thorough."
    ),
}

# Must stay in sync with schema.ReviewResult.
OUTPUT_CONTRACT = """{
  "summary": "One-paragraph summary of the PR changes and overall quality.",
  "overall_risk": "low" | "medium" | "high",
  "findings": [
    {
      "file": "path/to/file.py",
      "line": 42,
      "severity": "low" | "medium" | "high",
      "category": "bug" | "security" | "performance" | "maintainability" | "dx",
      "title": "Short finding title",
      "message": "What the issue is and why it matters.",
      "suggestion": "Concrete fix or improvement.",
      "confidence": 0.85
    }
  ],
  "praise": ["Genuinely good patterns worth calling out."]
}"""


def build_system_prompt(config: PrismConfig) -> str:
    """Build the reviewer persona, profile stance and output contract."""
    return f"""You are PRism, an expert code reviewer. You analyze pull request diffs and produce structured, actionable feedback.

Review profile: {config.profile.upper()}
{PROFILE_INSTRUCTIONS[config.profile]}

Rules:
- Be specific: reference exact file names and line numbers when possible.
- Be concise: no filler, no platitudes. Every finding must be actionable.
- Severity must reflect actual risk, not pedantic preference.
- Confidence (0-1) reflects how certain you are about each finding. Use < 0.6 for "might be an issue" and > 0.8 for "definitely wrong".
- Use null for "line" when a finding is not tied to a single line.
- Praise genuinely good patterns: developers deserve recognition.
- If the diff is trivial or looks fine, say so. Don't manufacture findings.

You MUST respond with valid JSON matching this exact schema (no markdown fences, no extra text):

{OUTPUT_CONTRACT}"""  # noqa: E501


def build_user_prompt(diff_block: str) -> str:
    return f"""Review the following pull request diff and respond with the JSON schema described above.

---

{diff_block}"""


def build_messages(config: PrismConfig, diff_block: str) -> list[ChatMessage]:
    return [
        ChatMessage(role="system", content=build_system_prompt(config)),
        ChatMessage(role="user", content=build_user_prompt(diff_block)),
    ]
