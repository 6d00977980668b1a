"""Core review orchestration.

prepare diffs → build prompts → provider.chat (with retry) → validate → render
"""

from __future__ import annotations

import enum
import logging
import os
from typing import Sequence

from prism_core.config import PrismConfig
from prism_core.diff import build_diff_block, prepare_diffs
from prism_core.hash import compute_review_hash
from prism_core.models import EngineResult, PullRequestFile
from prism_core.prompt import build_messages
from prism_core.providers.base import BaseProvider
from prism_core.providers.factory import EnvLookup, create_provider
from prism_core.renderer import render_comment, render_fallback_comment
from prism_core.schema import ReviewResult, validate_review_text

logger = logging.getLogger(__name__)

EMPTY_DIFF_SENTINEL = "empty"
EMPTY_REVIEW_SUMMARY = (
    "No reviewable files found in this PR: all changes are in generated, binary, or dependency files."
)


class ReviewStatus(str, enum.Enum):
    EMPTY = "empty"  # nothing reviewable; no model call was made
    UNPARSEABLE = "unparseable"  # model answered, output failed validation
    REVIEWED = "reviewed"


async def run_review(
    config: PrismConfig,
    files: Sequence[PullRequestFile],
    *,
    provider: BaseProvider | None = None,
    env: EnvLookup = os.environ.get,
) -> EngineResult:
    """Review *files* and return the rendered comment with its hash.

    Raises ConfigurationError for an unusable config and ProviderError when
    the backend keeps failing after retries. Malformed model output is not an
    error: it yields a fallback comment with ``review=None``.
    """
    prepared = prepare_diffs(
        files,
        max_files=config.max_files,
        max_diff_bytes=config.max_diff_bytes,
        max_patch_bytes=config.max_patch_bytes,
        extra_patterns=config.exclude,
    )
    truncated = prepared.total_bytes >= config.max_diff_bytes

    if not prepared.files:
        logger.info("No reviewable files among %d changed file(s); skipping model call", len(files))
        review = ReviewResult(summary=EMPTY_REVIEW_SUMMARY, overall_risk="low", findings=[], praise=[])
        return EngineResult(
            comment=render_comment(review),
            review=review,
            hash=compute_review_hash(EMPTY_DIFF_SENTINEL, config),
            truncated=False,
            status=ReviewStatus.EMPTY.value,
        )

    if prepared.omitted:
        logger.info("Reviewing %d file(s); %d left out by size limits", len(prepared.files), prepared.omitted)

    diff_block = build_diff_block(prepared.files)
    review_hash = compute_review_hash(diff_block, config)

    if provider is None:
        provider = create_provider(config, env=env)
    raw = await provider.chat(build_messages(config, diff_block))

    outcome = validate_review_text(raw)
    if not outcome.ok:
        return EngineResult(
            comment=render_fallback_comment(outcome.reason or "Unknown error"),
            review=None,
            hash=review_hash,
            truncated=truncated,
            status=ReviewStatus.UNPARSEABLE.value,
            files_reviewed=len(prepared.files),
        )

    return EngineResult(
        comment=render_comment(outcome.review),
        review=outcome.review,
        hash=review_hash,
        truncated=truncated,
        status=ReviewStatus.REVIEWED.value,
        files_reviewed=len(prepared.files),
    )
