"""Tests for the result validator: fence extraction, JSON parsing, schema checks."""

import json

import pytest
from pydantic import ValidationError

from prism_core.errors import ParseError, SchemaValidationError
from prism_core.schema import (
    NOT_JSON_REASON,
    SCHEMA_MISMATCH_REASON,
    Finding,
    ReviewResult,
    extract_json_text,
    load_json,
    parse_review_result,
    validate_review,
    validate_review_text,
)

FINDING = {
    "file": "src/auth.ts",
    "line": 15,
    "severity": "high",
    "category": "security",
    "title": "Unvalidated redirect URL",
    "message": "The redirect URL is taken directly from user input.",
    "suggestion": "Validate against an allowlist.",
    "confidence": 0.92,
}
REVIEW = {
    "summary": "Refactors the auth module.",
    "overall_risk": "medium",
    "findings": [FINDING],
    "praise": ["Nice tests."],
}
VALID_JSON = json.dumps(REVIEW)


class TestExtractJsonText:
    def test_plain_json_is_trimmed(self):
        assert extract_json_text(f"\n  {VALID_JSON}  \n") == VALID_JSON

    def test_strips_json_fence(self):
        assert extract_json_text(f"```json\n{VALID_JSON}\n```") == VALID_JSON

    def test_strips_untagged_fence(self):
        assert extract_json_text(f"```\n{VALID_JSON}\n```") == VALID_JSON

    def test_extracts_fence_surrounded_by_prose(self):
        raw = f"Here is my review:\n\n```json\n{VALID_JSON}\n```\n\nLet me know!"
        assert extract_json_text(raw) == VALID_JSON

    def test_preserves_code_blocks_inside_values(self):
        """Backticks inside string values must not be treated as the outer fence."""
        review = dict(REVIEW, findings=[dict(FINDING, suggestion="Use:\n```ts\nallow(url)\n```")])
        payload = json.dumps(review)
        assert extract_json_text(f"```json\n{payload}\n```") == payload
        assert extract_json_text(payload) == payload

    def test_text_without_fence_returned_trimmed(self):
        assert extract_json_text("  not json at all ") == "not json at all"


class TestLoadJson:
    def test_invalid_json_raises_parse_error(self):
        with pytest.raises(ParseError):
            load_json("{summary: nope}")

    def test_valid_json(self):
        assert load_json('{"a": 1}') == {"a": 1}


class TestValidateReview:
    def test_accepts_contract_shape(self):
        review = validate_review(REVIEW)
        assert isinstance(review, ReviewResult)
        assert review.overall_risk == "medium"
        assert review.findings[0].line == 15
        assert review.findings[0].confidence == 0.92

    def test_null_line_allowed(self):
        review = validate_review(dict(REVIEW, findings=[dict(FINDING, line=None)]))
        assert review.findings[0].line is None

    def test_integer_confidence_accepted(self):
        review = validate_review(dict(REVIEW, findings=[dict(FINDING, confidence=1)]))
        assert review.findings[0].confidence == 1.0

    @pytest.mark.parametrize(
        "bad",
        [
            dict(REVIEW, overall_risk="critical"),
            dict(REVIEW, findings=[dict(FINDING, severity="blocker")]),
            dict(REVIEW, findings=[dict(FINDING, category="style")]),
            dict(REVIEW, findings=[dict(FINDING, confidence=1.5)]),
            dict(REVIEW, findings=[dict(FINDING, confidence=-0.1)]),
            dict(REVIEW, findings=[dict(FINDING, title=None)]),
            {k: v for k, v in REVIEW.items() if k != "praise"},
            {k: v for k, v in REVIEW.items() if k != "summary"},
            [REVIEW],
            dict(REVIEW, findings=[dict(FINDING, confidence="0.9")]),
            dict(REVIEW, findings=[dict(FINDING, line="15")]),
            dict(REVIEW, findings=[dict(FINDING, line=True)]),
            dict(REVIEW, praise="Nice tests."),
        ],
    )
    def test_rejects_wrong_shape(self, bad):
        with pytest.raises(SchemaValidationError):
            validate_review(bad)

    def test_finding_missing_line_key_rejected(self):
        finding = {k: v for k, v in FINDING.items() if k != "line"}
        assert parse_review_result(dict(REVIEW, findings=[finding])) is None

    def test_parse_review_result_returns_none_on_mismatch(self):
        assert parse_review_result({"summary": "x"}) is None

    def test_parse_review_result_returns_model(self):
        assert parse_review_result(REVIEW).summary == "Refactors the auth module."

    def test_models_are_immutable(self):
        finding = Finding(**FINDING)
        with pytest.raises(ValidationError):
            finding.title = "changed"


class TestValidateReviewText:
    def test_success(self):
        outcome = validate_review_text(f"```json\n{VALID_JSON}\n```")
        assert outcome.ok
        assert outcome.reason is None
        assert outcome.review.findings[0].title == "Unvalidated redirect URL"

    def test_not_json_gives_parse_reason(self):
        outcome = validate_review_text("I think this PR is fine.")
        assert not outcome.ok
        assert outcome.review is None
        assert outcome.reason == NOT_JSON_REASON

    def test_wrong_shape_gives_schema_reason(self):
        outcome = validate_review_text('{"summary": "ok", "overall_risk": "low"}')
        assert not outcome.ok
        assert outcome.reason == SCHEMA_MISMATCH_REASON

    def test_empty_findings_are_valid(self):
        outcome = validate_review_text('{"summary": "All good.", "overall_risk": "low", "findings": [], "praise": []}')
        assert outcome.ok
        assert outcome.review.findings == []

    def test_never_raises_on_garbage(self):
        for raw in ["", "```", "```json\n```", "null", "[]", "42", "{"]:
            assert validate_review_text(raw).review is None

    @pytest.mark.parametrize(
        "finding",
        [dict(FINDING, confidence="0.9"), dict(FINDING, line="15"), dict(FINDING, line=True)],
    )
    def test_coercible_values_rejected(self, finding):
        outcome = validate_review_text(json.dumps(dict(REVIEW, findings=[finding])))
        assert not outcome.ok
        assert outcome.reason == SCHEMA_MISMATCH_REASON
