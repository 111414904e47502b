"""Path normalizer: canonical forward-slash, root-relative path strings."""

from __future__ import annotations

import re

_SLASH_RUN_RE = re.compile(r"[\\/]+")


def normalize_path(path: object) -> str:
    """Canonicalize *path* into a forward-slash, ``.``/``..``-collapsed string.

    Backslashes become forward slashes, runs of separators collapse to one,
    ``.`` segments are dropped and ``..`` removes the preceding segment.
    Excess ``..`` segments are dropped rather than raising.  The result never
    starts with ``/`` or ``./`` and the function is idempotent.

    Examples::

        normalize_path("  ./src\\features//cart/../a.ts ")  ->  "src/features/a.ts"
        normalize_path("/../../x")                        ->  "x"
        normalize_path("   ")                             ->  ""
    """
    if path is None:
        return ""
    text = str(path).strip()
    if not text:
        return ""

    segments: list[str] = []
    for segment in _SLASH_RUN_RE.split(text):
        if segment in ("", "."):
            continue
        if segment == "..":
            if segments:
                segments.pop()
            continue
        segments.append(segment)

    return "/".join(segments)


def split_segments(path: str) -> list[str]:
    """Split an already normalized path into its segments (``""`` -> ``[]``)."""
    return path.split("/") if path else []


def parent_dir(path: str) -> str:
    """Return the directory part of a normalized path (``""`` at the top)."""
    head, _, _ = path.rpartition("/")
    return head
