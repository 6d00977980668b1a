"""Turn the changed-file list into a size-bounded diff block for the prompt."""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from prism_core.models import PullRequestFile

TRUNCATION_MARKER = "\n... [diff truncated]"

# Matched by is_noise_file(): globs against path or basename, "dir/" against
# any path segment, anything else as a case-insensitive path suffix.
NOISE_PATTERNS: tuple[str, ...] = (
    # Lock files
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "Cargo.lock",
    "Gemfile.lock",
    "composer.lock",
    "poetry.lock",
    "Pipfile.lock",
    "uv.lock",
    "go.sum",
    ".lock",
    # Bundled / generated output
    ".min.js",
    ".min.css",
    ".map",
    ".snap",
    "*.generated.*",
    "*_pb2.py",
    "*.pb.go",
    "dist/",
    "build/",
    "__generated__/",
    # Vendored dependencies
    "vendor/",
    "node_modules/",
    "third_party/",
    # Binary assets
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".webp",
    ".bmp",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
    ".mp4",
    ".mp3",
    ".wav",
    ".ogg",
    ".zip",
    ".tar",
    ".gz",
    ".rar",
    ".7z",
    ".jar",
    ".exe",
    ".dll",
    ".so",
    ".dylib",
)

_GLOB_CHARS = set("*?[")


@dataclass(frozen=True)
class PreparedDiff:
    files: tuple[PullRequestFile, ...]
    total_bytes: int
    omitted: int = 0  # reviewable files left out by the file or byte cap


def is_noise_file(path: str, patterns: Iterable[str] = NOISE_PATTERNS) -> bool:
    """Return True if path matches any noise pattern.

    Supports:
    - fnmatch globs on the full path or the basename: "*.generated.*"
    - Directory names ending in "/", case-insensitive: "vendor/" matches "Vendor/x.go" and "a/vendor/x.go"
    - Plain suffixes, case-insensitive: ".png", "yarn.lock"
    """
    lowered = path.lower()
    basename = path.rsplit("/", 1)[-1]
    for pattern in patterns:
        if _GLOB_CHARS & set(pattern):
            if fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(basename, pattern):
                return True
        elif pattern.endswith("/"):
            directory = pattern.lower()
            if lowered.startswith(directory) or ("/" + directory) in lowered:
                return True
        elif lowered.endswith(pattern.lower()):
            return True
    return False


def filter_files(files: Iterable[PullRequestFile], extra_patterns: Sequence[str] = ()) -> list[PullRequestFile]:
    """Drop noise files and files without a textual patch (binary, renames)."""
    patterns = NOISE_PATTERNS + tuple(extra_patterns)
    return [f for f in files if f.patch and not is_noise_file(f.path, patterns)]


def truncate_patch(patch: str, max_bytes: int) -> str:
    """Keep the leading *max_bytes* of patch (UTF-8) and append a visible marker."""
    encoded = patch.encode("utf-8")
    if len(encoded) <= max_bytes:
        return patch
    # errors="ignore" drops a multi-byte character cut in half at the boundary.
    return encoded[:max_bytes].decode("utf-8", errors="ignore") + TRUNCATION_MARKER


def patch_size(patch: str) -> int:
    return len(patch.encode("utf-8"))


def prepare_diffs(
    files: Sequence[PullRequestFile],
    max_files: int,
    max_diff_bytes: int,
    max_patch_bytes: int = 20_000,
    extra_patterns: Sequence[str] = (),
) -> PreparedDiff:
    """Filter, truncate and greedily select files in their given order.

    Selection stops at the first file that would come after either cap is
    reached, so the total can overshoot max_diff_bytes by at most the last
    included file's (truncated) size.
    """
    candidates = filter_files(files, extra_patterns)
    selected: list[PullRequestFile] = []
    total = 0

    for f in candidates:
        if len(selected) >= max_files or total >= max_diff_bytes:
            break
        patch = truncate_patch(f.patch, max_patch_bytes)
        if patch != f.patch:
            f = replace(f, patch=patch)
        selected.append(f)
        total += patch_size(patch)

    return PreparedDiff(files=tuple(selected), total_bytes=total, omitted=len(candidates) - len(selected))


def build_diff_block(files: Iterable[PullRequestFile]) -> str:
    return "\n\n".join(f"### {f.path}\n```diff\n{f.patch}\n```" for f in files)
