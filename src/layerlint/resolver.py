"""Specifier resolver: map import specifiers onto project-relative paths."""

from __future__ import annotations

from typing import TYPE_CHECKING

from layerlint.paths import normalize_path, parent_dir, split_segments

if TYPE_CHECKING:
    from layerlint.config import ProjectConfig


def is_relative_specifier(specifier: str) -> bool:
    """Return True for ``.``, ``..``, ``./x`` and ``../x`` style specifiers."""
    text = str(specifier).strip().replace("\\", "/")
    return text in (".", "..") or text.startswith(("./", "../"))


def _find_root(specifier: str, root: str, *, strict: bool) -> int:
    """Return the offset of *root* inside *specifier*, or -1.

    The default mode is a plain substring search.  In strict mode the root
    must match whole path segments.
    """
    if not strict:
        return specifier.find(root)

    parts = split_segments(specifier)
    root_parts = split_segments(root)
    width = len(root_parts)
    offset = 0
    for idx in range(len(parts) - width + 1):
        if parts[idx : idx + width] == root_parts:
            return offset
        offset += len(parts[idx]) + 1
    return -1


def resolve_specifier(
    specifier: str,
    file_location: str | None,
    config: ProjectConfig,
) -> str | None:
    """Resolve an import *specifier* found in *file_location* to a project path.

    Resolution order:

    1. Relative specifiers (``./x``, ``../x``) are joined onto the directory
       of *file_location* before any other check.
    2. ``<alias>/rest`` becomes ``<source_root>/rest``.  The alias must be a
       whole leading segment, so ``@scope`` never matches alias ``@``.
    3. A specifier containing the source root returns the suffix starting at
       the first occurrence (segment-aware when ``strict_root_match`` is on).
    4. Anything else is external and yields ``None``.

    Never raises; malformed input resolves to ``None``.
    """
    if specifier is None:
        return None

    raw = str(specifier)
    if is_relative_specifier(raw):
        base = parent_dir(normalize_path(file_location or ""))
        raw = f"{base}/{raw.strip()}" if base else raw.strip()

    spec = normalize_path(raw)
    if not spec:
        return None

    root = normalize_path(config.source_root)
    alias = normalize_path(config.alias)

    if alias and spec.startswith(f"{alias}/"):
        rest = spec[len(alias) + 1 :]
        return normalize_path(f"{root}/{rest}" if root else rest) or None

    if root:
        idx = _find_root(spec, root, strict=config.strict_root_match)
        if idx != -1:
            return spec[idx:]

    return None
