"""Review output schema and the validator that turns raw model text into it.

The JSON shape below is the contract embedded in the system prompt
(prompt.py). validate_review_text() never raises: callers branch on the
returned ValidationOutcome to pick the normal or the fallback renderer.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from prism_core.errors import ParseError, ResponseFormatError, SchemaValidationError

logger = logging.getLogger(__name__)

Severity = Literal["low", "medium", "high"]
RiskLevel = Literal["low", "medium", "high"]
Category = Literal["bug", "security", "performance", "maintainability", "dx"]

# A response that is entirely one fenced block: strip only the outer fence so
# fences inside JSON string values (code suggestions) survive.
_OUTER_FENCE_OPEN_RE = re.compile(r"^```[\w+-]*[ \t]*\n?")
_OUTER_FENCE_CLOSE_RE = re.compile(r"\n?\s*```$")
# Prose with an embedded block: take the first fenced block.
_INNER_FENCE_RE = re.compile(r"```[\w+-]*[ \t]*\n?(.*?)\n?\s*```", re.DOTALL)

NOT_JSON_REASON = "Could not parse structured output from the model: the response was not valid JSON."
SCHEMA_MISMATCH_REASON = "Could not parse structured output from the model: the JSON did not match the review schema."


class Finding(BaseModel):
    # Strict: no coercion of "0.9" or true into numbers.
    model_config = ConfigDict(frozen=True, strict=True)

    file: str
    line: int | None
    severity: Severity
    category: Category
    title: str
    message: str
    suggestion: str
    confidence: float = Field(ge=0, le=1)


class ReviewResult(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    summary: str
    overall_risk: RiskLevel
    findings: list[Finding]
    praise: list[str]


@dataclass(frozen=True)
class ValidationOutcome:
    review: ReviewResult | None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.review is not None


def extract_json_text(raw: str) -> str:
    """Return the JSON candidate inside *raw*.

    - A response wrapped in one fence (``` or ```json etc.) loses the outer fence.
    - A response that starts with JSON is used as-is, even if string values
      contain fenced code.
    - Otherwise the first fenced block anywhere in the text is used, falling
      back to the trimmed text.
    """
    text = raw.strip()
    if text.startswith("```"):
        cleaned = _OUTER_FENCE_OPEN_RE.sub("", text)
        return _OUTER_FENCE_CLOSE_RE.sub("", cleaned).strip()
    if text.startswith(("{", "[")):
        return text
    match = _INNER_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text


def load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Model output is not valid JSON: {e}") from e


def validate_review(data: Any) -> ReviewResult:
    try:
        return ReviewResult.model_validate(data)
    except ValidationError as e:
        raise SchemaValidationError(f"Model output does not match the review schema: {e}") from e


def parse_review_result(data: Any) -> ReviewResult | None:
    """Validate already-parsed data; None when it does not match the schema."""
    try:
        return validate_review(data)
    except SchemaValidationError:
        return None


def validate_review_text(raw: str) -> ValidationOutcome:
    """Fence extraction → JSON parse → schema validation, as one total function."""
    try:
        review = validate_review(load_json(extract_json_text(raw)))
    except ResponseFormatError as e:
        logger.warning("%s Raw response starts with: %s", e, raw[:200])
        reason = NOT_JSON_REASON if isinstance(e, ParseError) else SCHEMA_MISMATCH_REASON
        return ValidationOutcome(review=None, reason=reason)
    return ValidationOutcome(review=review)
