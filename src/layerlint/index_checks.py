"""Index checks: every feature and index-requiring layer root must ship a barrel file."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from layerlint.classifier import Layer
from layerlint.linter import Violation, is_ignored
from layerlint.paths import normalize_path

if TYPE_CHECKING:
    from pathlib import Path

    from layerlint.config import ProjectConfig

logger = logging.getLogger(__name__)

FEATURE_INDEX_RULE = "feature-index-required"
LAYER_INDEX_RULE = "layer-index-required"


def _has_index(directory: Path, index_names: tuple[str, ...]) -> bool:
    return any((directory / name).is_file() for name in index_names)


def _expected(rel_dir: str, index_names: tuple[str, ...]) -> str:
    return f"{rel_dir}/{index_names[0]}" if index_names else rel_dir


def check_index_files(project_root: Path, config: ProjectConfig) -> list[Violation]:
    """Report feature directories and layer roots that lack an index file.

    * Each directory directly below a feature root must contain one of
      ``config.index_names`` (``feature-index-required``).
    * Each layer root configured with ``requires_index`` must contain one
      when the directory exists (``layer-index-required``).

    Severity overrides from ``config.severities`` apply; ``off`` disables a
    check.  Missing directories are not an error.
    """
    source_root = normalize_path(config.source_root)
    base = project_root / source_root if source_root else project_root
    feature_severity = config.level_for(FEATURE_INDEX_RULE)
    layer_severity = config.level_for(LAYER_INDEX_RULE)
    violations: list[Violation] = []

    for layer_root in config.layers:
        root_dir = base / layer_root.root
        if not root_dir.is_dir():
            continue
        rel_root = f"{source_root}/{layer_root.root}" if source_root else layer_root.root

        if layer_root.requires_index and layer_severity != "off":
            if not _has_index(root_dir, config.index_names):
                violations.append(
                    Violation(
                        file_path=_expected(rel_root, config.index_names),
                        import_specifier=None,
                        rule_id=LAYER_INDEX_RULE,
                        message=(
                            f"'{rel_root}' is missing a public API file "
                            f"(expected one of {', '.join(config.index_names)})"
                        ),
                        severity=layer_severity,
                    )
                )

        if layer_root.layer is not Layer.FEATURE or feature_severity == "off":
            continue

        for feature_dir in sorted(p for p in root_dir.iterdir() if p.is_dir()):
            rel_dir = f"{rel_root}/{feature_dir.name}"
            if is_ignored(rel_dir, config.ignores) or _has_index(feature_dir, config.index_names):
                continue
            logger.debug("Feature %s has no index file", rel_dir)
            violations.append(
                Violation(
                    file_path=_expected(rel_dir, config.index_names),
                    import_specifier=None,
                    rule_id=FEATURE_INDEX_RULE,
                    message=(
                        f"feature '{feature_dir.name}' is missing a public API file "
                        f"(expected one of {', '.join(config.index_names)})"
                    ),
                    severity=feature_severity,
                )
            )

    return violations
