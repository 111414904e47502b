"""Layer classifier: assign a normalized project path to an architectural layer."""

from __future__ import annotations

import enum
import posixpath
from dataclasses import dataclass
from typing import TYPE_CHECKING

from layerlint.paths import normalize_path, split_segments

if TYPE_CHECKING:
    from layerlint.config import LayerRoot, ProjectConfig


class Layer(enum.Enum):
    """Architectural role of a directory subtree."""

    APP = "app"
    FEATURE = "feature"
    SHARED_UI = "shared-ui"
    SHARED_UTIL = "shared-util"
    COMPONENT = "component"
    UNCLASSIFIED = "unclassified"


SHARED_LAYERS: frozenset[Layer] = frozenset({Layer.SHARED_UI, Layer.SHARED_UTIL})


def layer_from_name(name: object) -> Layer:
    """Look up a :class:`Layer` by its configuration name (``shared_ui`` == ``shared-ui``).

    Raises ``ValueError`` for unknown names.
    """
    key = str(name).strip().lower().replace("_", "-")
    for layer in Layer:
        if layer.value == key:
            return layer
    msg = f"unknown layer '{name}', must be one of {sorted(lyr.value for lyr in Layer)}"
    raise ValueError(msg)


@dataclass(frozen=True)
class ClassifiedPath:
    """Layer identity of a single project path.

    ``feature_name`` is only set for :attr:`Layer.FEATURE` paths.
    ``requires_index`` mirrors the matched layer root's configuration so the
    rule engine can stay a function of two classified paths.  ``layer_path``
    is the part of the path below the layer root (``""`` for the root).
    """

    raw_path: str
    normalized_path: str
    layer: Layer
    feature_name: str | None = None
    is_index_entry: bool = False
    layer_root: str | None = None
    requires_index: bool = False
    layer_path: str | None = None


def _is_index_name(segment: str) -> bool:
    stem, _ = posixpath.splitext(segment)
    return stem == "index"


def _strip_prefix(segments: list[str], prefix: tuple[str, ...]) -> list[str] | None:
    """Drop *prefix* from *segments*; ``None`` when *segments* do not start with it."""
    width = len(prefix)
    if tuple(segments[:width]) != prefix:
        return None
    return segments[width:]


def _match_root(
    segments: list[str], layers: tuple[LayerRoot, ...]
) -> tuple[LayerRoot, list[str]] | None:
    """Return the first layer root (priority order) matching *segments*."""
    for layer_root in layers:
        if not layer_root.segments:
            continue
        rest = _strip_prefix(segments, layer_root.segments)
        if rest is not None:
            return layer_root, rest
    return None


def classify(path: str, config: ProjectConfig) -> ClassifiedPath:
    """Classify *path* against the configured layer roots.

    The path is normalized first, the source root prefix is stripped, and the
    first layer root (in configured priority order) whose segments prefix the
    remainder wins.  Paths outside the source root, empty paths and paths
    matching no root are :attr:`Layer.UNCLASSIFIED`.

    For feature paths the segment right below the features root is the
    feature name.  The features root itself, and an ``index`` file placed
    directly in it, are the features barrel: no feature name, index entry.
    With ``directory_index`` (the default) a bare feature directory such as
    ``src/features/cart`` and a bare layer root such as ``src/shared/ui``
    are directory imports of their barrel and count as index entries.

    Classification is total and never raises.
    """
    raw = "" if path is None else str(path)
    normalized = normalize_path(raw)
    segments = split_segments(normalized)
    is_index = bool(segments) and _is_index_name(segments[-1])

    unclassified = ClassifiedPath(
        raw_path=raw,
        normalized_path=normalized,
        layer=Layer.UNCLASSIFIED,
        is_index_entry=is_index,
    )
    if not segments:
        return unclassified

    relative = _strip_prefix(segments, config.source_root_segments)
    if relative is None:
        return unclassified

    match = _match_root(relative, config.layers)
    if match is None:
        return unclassified

    layer_root, rest = match
    feature_name: str | None = None

    if layer_root.layer is Layer.FEATURE:
        if not rest or (len(rest) == 1 and _is_index_name(rest[0])):
            is_index = True
        else:
            feature_name = rest[0]
            if config.directory_index and len(rest) == 1:
                is_index = True
    elif not rest and config.directory_index:
        is_index = True

    return ClassifiedPath(
        raw_path=raw,
        normalized_path=normalized,
        layer=layer_root.layer,
        feature_name=feature_name,
        is_index_entry=is_index,
        layer_root=layer_root.root,
        requires_index=layer_root.requires_index,
        layer_path="/".join(rest),
    )
