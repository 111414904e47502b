"""Linter orchestrator: resolve, classify and evaluate imports, format results."""

from __future__ import annotations

import fnmatch
import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from layerlint.classifier import ClassifiedPath, classify
from layerlint.config import ProjectConfig, find_config, load_config
from layerlint.import_extractor import ImportInfo, extract_imports
from layerlint.paths import normalize_path
from layerlint.resolver import resolve_specifier
from layerlint.rule_engine import evaluate

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from layerlint.rule_engine import BoundaryRule

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LintError(Exception):
    """Raised when lint encounters a configuration error."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """A single boundary violation, one per offending import."""

    file_path: str
    import_specifier: str | None  # None for file-structure findings
    rule_id: str
    message: str
    severity: str = "error"  # "error" | "warn"
    line_number: int | None = None
    resolved_path: str | None = None


@dataclass
class LintResult:
    """Result of a lint run."""

    violations: list[Violation] = field(default_factory=list)
    rules_evaluated: int = 0
    files_scanned: int = 0
    imports_checked: int = 0
    elapsed_ms: float = 0.0

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == "error")


# ---------------------------------------------------------------------------
# Per-import / per-file evaluation
# ---------------------------------------------------------------------------


def is_ignored(file_path: str, patterns: Iterable[str]) -> bool:
    """Return True if the normalized *file_path* matches any fnmatch pattern."""
    return any(fnmatch.fnmatchcase(file_path, pattern) for pattern in patterns)


def is_allowed_specifier(specifier: str, allow: Iterable[str]) -> bool:
    """Allow-list match: exact specifier, or ``prefix/*`` for everything below prefix."""
    for pattern in allow:
        if pattern == specifier:
            return True
        if pattern.endswith("/*") and specifier.startswith(pattern[:-1]):
            return True
    return False


def _classify_cached(
    path: str, config: ProjectConfig, cache: dict[str, ClassifiedPath] | None
) -> ClassifiedPath:
    if cache is None:
        return classify(path, config)
    classified = cache.get(path)
    if classified is None:
        classified = classify(path, config)
        cache[path] = classified
    return classified


def check_import(
    source: ClassifiedPath,
    specifier: str,
    config: ProjectConfig,
    *,
    rules: tuple[BoundaryRule, ...] | None = None,
    line_number: int | None = None,
    cache: dict[str, ClassifiedPath] | None = None,
) -> Violation | None:
    """Evaluate one import edge and return its violation, if any.

    External specifiers (unresolvable), allow-listed specifiers and
    self-imports are skipped without consulting the rule table.
    """
    if is_allowed_specifier(specifier, config.allow):
        return None

    resolved = resolve_specifier(specifier, source.normalized_path, config)
    if resolved is None or resolved == source.normalized_path:
        return None

    target = _classify_cached(resolved, config, cache)
    table = rules if rules is not None else config.rule_table
    verdict = evaluate(source, target, table)
    if verdict.allowed or verdict.rule_id is None:
        return None

    rule = next(r for r in table if r.rule_id == verdict.rule_id)
    severity = config.severity_for(rule)
    if severity == "off":
        return None

    return Violation(
        file_path=source.normalized_path,
        import_specifier=specifier,
        rule_id=verdict.rule_id,
        message=f"{verdict.reason}: '{specifier}'",
        severity=severity,
        line_number=line_number,
        resolved_path=resolved,
    )


def lint_file(
    file_path: str,
    imports: Iterable[ImportInfo | str],
    config: ProjectConfig,
    *,
    cache: dict[str, ClassifiedPath] | None = None,
) -> list[Violation]:
    """Evaluate every import of a single file.

    *file_path* is the project-relative (or absolute) path of the importing
    file; it is mapped onto the source root the same way specifiers are.
    *imports* may be :class:`ImportInfo` records or bare specifier strings.
    """
    location = resolve_specifier(file_path, None, config) or normalize_path(file_path)
    if is_ignored(location, config.ignores):
        logger.debug("Ignoring %s", location)
        return []

    source = _classify_cached(location, config, cache)
    rules = config.rule_table
    violations: list[Violation] = []

    for item in imports:
        if isinstance(item, ImportInfo):
            if item.is_type_only and config.ignore_type_imports:
                continue
            specifier, line_number = item.specifier, item.line_number
        else:
            specifier, line_number = item, None

        violation = check_import(
            source, specifier, config, rules=rules, line_number=line_number, cache=cache
        )
        if violation is not None:
            violations.append(violation)

    return violations


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def _collect_source_files(project_root: Path, config: ProjectConfig) -> list[Path]:
    """Collect all files with a configured extension under the source root."""
    base = project_root / normalize_path(config.source_root)
    if not base.is_dir():
        logger.warning("Source root %s does not exist", base)
        return []

    extensions = {ext.lower() for ext in config.extensions}
    return sorted(
        path
        for path in base.rglob("*")
        if path.is_file()
        and path.suffix.lower() in extensions
        and "node_modules" not in path.parts
    )


def _resolve_config(
    project_root: Path, config: ProjectConfig | None, config_path: Path | None
) -> ProjectConfig:
    if config is not None:
        return config
    if config_path is None:
        config_path = find_config(project_root)
    if config_path is None:
        return ProjectConfig()
    try:
        return load_config(config_path)
    except ValueError as exc:
        msg = f"Invalid configuration: {exc}"
        raise LintError(msg) from exc


def lint(
    project_root: Path,
    *,
    config: ProjectConfig | None = None,
    config_path: Path | None = None,
    jobs: int = 1,
) -> LintResult:
    """Lint every source file under the project's source root.

    Parameters
    ----------
    project_root:
        Root of the project (the directory containing the source root).
    config:
        Explicit configuration; takes precedence over *config_path*.
    config_path:
        Optional path to a YAML configuration file.  When both are *None*
        the file is discovered under *project_root*, falling back to the
        defaults.
    jobs:
        Number of worker threads.  Files are independent, so any value
        yields the same (sorted) result.

    Returns
    -------
    LintResult
        Summary with violations, counts, and timing.

    Raises
    ------
    LintError
        When the configuration file is present but invalid.
    """
    start = time.monotonic()
    active = _resolve_config(project_root, config, config_path)
    files = _collect_source_files(project_root, active)

    def _lint_one(path: Path) -> tuple[int, list[Violation]]:
        rel = path.relative_to(project_root).as_posix()
        imports = extract_imports(path, display_path=rel)
        logger.debug("%s: %d imports", rel, len(imports))
        return len(imports), lint_file(rel, imports, active, cache={})

    if jobs > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as executor:
            outcomes = list(executor.map(_lint_one, files))
    else:
        outcomes = [_lint_one(path) for path in files]

    violations = [v for _, file_violations in outcomes for v in file_violations]
    imports_checked = sum(count for count, _ in outcomes)

    if active.index_checks:
        # Lazy import to avoid circular dependency: linter -> index_checks -> linter
        from layerlint.index_checks import check_index_files

        violations.extend(check_index_files(project_root, active))

    violations.sort(key=lambda v: (v.file_path, v.line_number or 0, v.rule_id))
    elapsed = (time.monotonic() - start) * 1000

    return LintResult(
        violations=violations,
        rules_evaluated=len(active.rule_table),
        files_scanned=len(files),
        imports_checked=imports_checked,
        elapsed_ms=elapsed,
    )


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_rich(result: LintResult) -> str:
    """Format a LintResult as human-readable text.

    Example output with violations::

        Rules: 11 loaded
        Files: 25 scanned, 142 imports checked

        x cross-feature-deep-import
          src/features/cart/view.ts:3 -> cross-feature deep import forbidden: '@/features/checkout/api'

        1 violation found (11 rules evaluated, 0.1s)
    """
    lines: list[str] = [
        f"Rules: {result.rules_evaluated} loaded",
        f"Files: {result.files_scanned} scanned, {result.imports_checked} imports checked",
        "",
    ]

    elapsed_str = f"{result.elapsed_ms / 1000:.1f}s"

    if not result.violations:
        lines.append(
            f"✓ No violations found ({result.rules_evaluated} rules evaluated, {elapsed_str})"
        )
        return "\n".join(lines)

    for v in result.violations:
        marker = "✗" if v.severity == "error" else "!"
        lines.append(f"{marker} {v.rule_id}")
        loc = v.file_path
        if v.line_number is not None:
            loc += f":{v.line_number}"
        lines.append(f"  {loc} → {v.message}")
        lines.append("")

    count = len(result.violations)
    noun = "violation" if count == 1 else "violations"
    lines.append(
        f"{count} {noun} found ({result.rules_evaluated} rules evaluated, {elapsed_str})"
    )
    return "\n".join(lines)


def violation_to_dict(v: Violation) -> dict[str, object]:
    return {
        "rule_id": v.rule_id,
        "severity": v.severity,
        "file_path": v.file_path,
        "line_number": v.line_number,
        "import_specifier": v.import_specifier,
        "resolved_path": v.resolved_path,
        "message": v.message,
    }


def format_json(result: LintResult) -> str:
    """Format a LintResult as structured JSON with ``violations`` and ``summary``."""
    output: dict[str, object] = {
        "violations": [violation_to_dict(v) for v in result.violations],
        "summary": {
            "rules_evaluated": result.rules_evaluated,
            "violations_count": len(result.violations),
            "errors_count": result.error_count,
            "files_scanned": result.files_scanned,
            "imports_checked": result.imports_checked,
            "elapsed_ms": result.elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


def format_porcelain(result: LintResult) -> str:
    """Format a LintResult as one line per violation.

    Format: ``rule_id:severity:file_path:line:specifier``.  Missing values
    are empty strings; no violations yields an empty string.
    """
    lines: list[str] = []
    for v in result.violations:
        line_number = str(v.line_number) if v.line_number is not None else ""
        specifier = v.import_specifier if v.import_specifier is not None else ""
        lines.append(f"{v.rule_id}:{v.severity}:{v.file_path}:{line_number}:{specifier}")
    return "\n".join(lines)
