"""Plain value types passed between pipeline stages.

The model-facing review shape (Finding, ReviewResult) lives in schema.py
because it is validated with pydantic; everything here is constructed by our
own code and needs no validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from prism_core.schema import ReviewResult

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class PullRequestFile:
    """One changed file as supplied by the caller for a single run."""

    path: str
    patch: str = ""
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    status: str = "modified"

    @classmethod
    def from_dict(cls, data: dict) -> PullRequestFile:
        """Build from a GitHub "list pull request files" item or our own JSON shape."""
        path = data.get("path") or data.get("filename")
        if not path:
            raise ValueError(f"Changed file entry has no 'path' or 'filename': {data!r}")
        additions = int(data.get("additions") or 0)
        deletions = int(data.get("deletions") or 0)
        return cls(
            path=path,
            patch=data.get("patch") or "",
            additions=additions,
            deletions=deletions,
            changes=int(data.get("changes") or additions + deletions),
            status=data.get("status") or "modified",
        )


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str
    created: float | None = None  # unix seconds
    owned_by: str | None = None
    featured: bool = False


@dataclass(frozen=True)
class EngineResult:
    """Terminal output of one run_review() call."""

    comment: str
    review: ReviewResult | None
    hash: str
    truncated: bool
    status: str  # a ReviewStatus value
    files_reviewed: int = 0
