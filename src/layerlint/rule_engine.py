"""Boundary rule engine: declarative dependency-direction table and its evaluation."""

from __future__ import annotations

import enum
import fnmatch
from dataclasses import dataclass
from typing import TYPE_CHECKING

from layerlint.classifier import SHARED_LAYERS, Layer, layer_from_name

if TYPE_CHECKING:
    from collections.abc import Iterable

    from layerlint.classifier import ClassifiedPath

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VALID_FEATURE_RELATIONS: frozenset[str] = frozenset({"same", "other"})
VALID_TARGET_INDEX: frozenset[str] = frozenset(
    {"index", "not-index", "index-satisfied", "index-missing"}
)
VALID_RULE_SEVERITIES: frozenset[str] = frozenset({"error", "warn"})


class VerdictKind(enum.Enum):
    """Outcome of evaluating one import edge."""

    ALLOWED = "allow"
    DENIED = "deny"
    REQUIRES_INDEX = "require-index"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Verdict:
    """Result of :func:`evaluate`.

    ``REQUIRES_INDEX`` is a denial that the importer can fix by targeting the
    public entry point (barrel) instead of an internal file.
    """

    kind: VerdictKind
    rule_id: str | None = None
    reason: str | None = None

    @property
    def allowed(self) -> bool:
        return self.kind is VerdictKind.ALLOWED

    @property
    def denied(self) -> bool:
        return self.kind is not VerdictKind.ALLOWED


ALLOWED = Verdict(VerdictKind.ALLOWED)


@dataclass(frozen=True)
class BoundaryRule:
    """One row of the dependency-direction table.

    ``from_layers`` / ``to_layers`` set to ``None`` match any layer.
    ``feature`` constrains feature-to-feature edges (``same`` | ``other``).
    ``target_index`` constrains the imported path:

    * ``index`` / ``not-index``: the target is / is not an index entry
    * ``index-satisfied``: the target is an index entry or its layer does
      not require one
    * ``index-missing``: the target layer requires an index and the target
      is not one

    ``from_paths`` / ``to_paths`` are fnmatch globs on the endpoint's path
    below its layer root (``router.ts``, ``*/routes.ts``); ``None`` matches
    any path.
    """

    rule_id: str
    description: str
    from_layers: frozenset[Layer] | None
    to_layers: frozenset[Layer] | None
    verdict: VerdictKind
    feature: str | None = None
    target_index: str | None = None
    severity: str = "error"  # "error" | "warn"
    from_paths: tuple[str, ...] | None = None
    to_paths: tuple[str, ...] | None = None

    def matches(self, source: ClassifiedPath, target: ClassifiedPath) -> bool:
        """Return True if this row applies to the ``source -> target`` edge."""
        if self.from_layers is not None and source.layer not in self.from_layers:
            return False
        if self.to_layers is not None and target.layer not in self.to_layers:
            return False
        if self.from_paths is not None and not _path_matches(source, self.from_paths):
            return False
        if self.to_paths is not None and not _path_matches(target, self.to_paths):
            return False

        if self.feature is not None:
            if source.layer is not Layer.FEATURE or target.layer is not Layer.FEATURE:
                return False
            same = source.feature_name == target.feature_name
            if (self.feature == "same") != same:
                return False

        if self.target_index == "index":
            return target.is_index_entry
        if self.target_index == "not-index":
            return not target.is_index_entry
        if self.target_index == "index-satisfied":
            return target.is_index_entry or not target.requires_index
        if self.target_index == "index-missing":
            return target.requires_index and not target.is_index_entry
        return True


def _path_matches(path: ClassifiedPath, patterns: tuple[str, ...]) -> bool:
    if path.layer_path is None:
        return False
    return any(fnmatch.fnmatchcase(path.layer_path, pattern) for pattern in patterns)


def _layers(*layers: Layer) -> frozenset[Layer]:
    return frozenset(layers)


_FEATURE = _layers(Layer.FEATURE)
_APP = _layers(Layer.APP)
_UNCLASSIFIED = _layers(Layer.UNCLASSIFIED)

# Rows are mutually exclusive for classified endpoints; order is still the
# evaluation order.  Deep-import rows return REQUIRES_INDEX rather than DENIED;
# check ``Verdict.denied``, which covers both, instead of comparing kinds.
DEFAULT_RULES: tuple[BoundaryRule, ...] = (
    BoundaryRule(
        rule_id="outside-managed-tree",
        description="import target is outside every configured layer",
        from_layers=None,
        to_layers=_UNCLASSIFIED,
        verdict=VerdictKind.ALLOWED,
    ),
    BoundaryRule(
        rule_id="unmanaged-importer",
        description="importing file is outside every configured layer",
        from_layers=_UNCLASSIFIED,
        to_layers=None,
        verdict=VerdictKind.ALLOWED,
    ),
    BoundaryRule(
        rule_id="intra-feature",
        description="import within the same feature",
        from_layers=_FEATURE,
        to_layers=_FEATURE,
        verdict=VerdictKind.ALLOWED,
        feature="same",
    ),
    BoundaryRule(
        rule_id="cross-feature-index",
        description="import of another feature through its public entry point",
        from_layers=_FEATURE,
        to_layers=_FEATURE,
        verdict=VerdictKind.ALLOWED,
        feature="other",
        target_index="index",
    ),
    BoundaryRule(
        rule_id="cross-feature-deep-import",
        description="cross-feature deep import forbidden",
        from_layers=_FEATURE,
        to_layers=_FEATURE,
        verdict=VerdictKind.REQUIRES_INDEX,
        feature="other",
        target_index="not-index",
    ),
    BoundaryRule(
        rule_id="feature-shared-import",
        description="feature import of shared code",
        from_layers=_FEATURE,
        to_layers=SHARED_LAYERS,
        verdict=VerdictKind.ALLOWED,
        target_index="index-satisfied",
    ),
    BoundaryRule(
        rule_id="shared-index-required",
        description="must import shared module via its index",
        from_layers=_FEATURE,
        to_layers=SHARED_LAYERS,
        verdict=VerdictKind.REQUIRES_INDEX,
        target_index="index-missing",
    ),
    BoundaryRule(
        rule_id="shared-imports-feature",
        description="shared code may not depend on feature code",
        from_layers=SHARED_LAYERS,
        to_layers=_FEATURE,
        verdict=VerdictKind.DENIED,
    ),
    BoundaryRule(
        rule_id="app-feature-index",
        description="app import of a feature through its public entry point",
        from_layers=_APP,
        to_layers=_FEATURE,
        verdict=VerdictKind.ALLOWED,
        target_index="index",
    ),
    BoundaryRule(
        rule_id="app-feature-deep-import",
        description="app layer must import features via their index",
        from_layers=_APP,
        to_layers=_FEATURE,
        verdict=VerdictKind.REQUIRES_INDEX,
        target_index="not-index",
    ),
    BoundaryRule(
        rule_id="app-imports",
        description="app layer may import any non-feature layer",
        from_layers=_APP,
        to_layers=_layers(Layer.APP, Layer.SHARED_UI, Layer.SHARED_UTIL, Layer.COMPONENT),
        verdict=VerdictKind.ALLOWED,
    ),
)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def evaluate(
    source: ClassifiedPath,
    target: ClassifiedPath,
    rules: Iterable[BoundaryRule] = DEFAULT_RULES,
) -> Verdict:
    """Evaluate the ``source -> target`` import edge against *rules*.

    Unclassified endpoints are always allowed, whatever the table says.
    Otherwise the first matching row decides; an edge no row covers is
    allowed.  Pure and stateless.
    """
    if Layer.UNCLASSIFIED in (source.layer, target.layer):
        return ALLOWED

    for rule in rules:
        if rule.matches(source, target):
            return Verdict(kind=rule.verdict, rule_id=rule.rule_id, reason=rule.description)

    return ALLOWED


def rule_to_dict(rule: BoundaryRule) -> dict[str, object]:
    """Serialize a rule row for JSON / table output."""

    def _names(layers: frozenset[Layer] | None) -> list[str]:
        if layers is None:
            return ["*"]
        return sorted(layer.value for layer in layers)

    return {
        "rule_id": rule.rule_id,
        "from": _names(rule.from_layers),
        "to": _names(rule.to_layers),
        "feature": rule.feature,
        "target_index": rule.target_index,
        "verdict": rule.verdict.value,
        "severity": rule.severity,
        "from_paths": list(rule.from_paths) if rule.from_paths is not None else None,
        "to_paths": list(rule.to_paths) if rule.to_paths is not None else None,
        "description": rule.description,
    }


# ---------------------------------------------------------------------------
# YAML parsing
# ---------------------------------------------------------------------------


def _parse_layer_set(raw: object, context: str) -> frozenset[Layer] | None:
    """Parse ``from`` / ``to``: a layer name, a list of names, or ``*`` for any."""
    if raw is None or raw == "*":
        return None
    names = raw if isinstance(raw, list) else [raw]
    if not names:
        msg = f"{context}: layer list must not be empty"
        raise ValueError(msg)

    layers: set[Layer] = set()
    for name in names:
        try:
            layer = layer_from_name(name)
        except ValueError as exc:
            msg = f"{context}: {exc}"
            raise ValueError(msg) from exc
        if layer is Layer.UNCLASSIFIED:
            msg = f"{context}: rules cannot constrain the 'unclassified' layer"
            raise ValueError(msg)
        layers.add(layer)
    return frozenset(layers)


def _parse_path_globs(raw: object, context: str) -> tuple[str, ...] | None:
    """Parse ``from_paths`` / ``to_paths``: one glob or a list of globs."""
    if raw is None:
        return None
    patterns = raw if isinstance(raw, list) else [raw]
    if not patterns or not all(isinstance(p, str) and p.strip() for p in patterns):
        msg = f"{context}: must be a glob or a non-empty list of globs"
        raise ValueError(msg)
    return tuple(p.strip() for p in patterns)


def _parse_rule(idx: int, data: object, seen_ids: set[str]) -> BoundaryRule:
    if not isinstance(data, dict):
        msg = f"rules: rule at index {idx} must be a mapping"
        raise ValueError(msg)

    name = data.get("name")
    if name is None or not isinstance(name, str) or not name.strip():
        msg = f"rules: rule at index {idx} missing required 'name' field"
        raise ValueError(msg)
    if name in seen_ids:
        msg = f"rules: Duplicate rule name '{name}'"
        raise ValueError(msg)
    seen_ids.add(name)

    context = f"Rule '{name}'"
    description = str(data.get("description", name))

    verdict_raw = str(data.get("verdict", "deny"))
    try:
        verdict = VerdictKind(verdict_raw)
    except ValueError as exc:
        msg = (
            f"{context}: invalid verdict '{verdict_raw}', "
            f"must be one of {sorted(v.value for v in VerdictKind)}"
        )
        raise ValueError(msg) from exc

    feature_raw = data.get("feature")
    feature: str | None = str(feature_raw) if feature_raw is not None else None
    if feature is not None and feature not in VALID_FEATURE_RELATIONS:
        msg = (
            f"{context}: invalid feature relation '{feature}', "
            f"must be one of {sorted(VALID_FEATURE_RELATIONS)}"
        )
        raise ValueError(msg)

    index_raw = data.get("target_index")
    target_index: str | None = str(index_raw) if index_raw is not None else None
    if target_index is not None and target_index not in VALID_TARGET_INDEX:
        msg = (
            f"{context}: invalid target_index '{target_index}', "
            f"must be one of {sorted(VALID_TARGET_INDEX)}"
        )
        raise ValueError(msg)

    severity = str(data.get("severity", "error"))
    if severity not in VALID_RULE_SEVERITIES:
        msg = (
            f"{context}: invalid severity '{severity}', "
            f"must be one of {sorted(VALID_RULE_SEVERITIES)}"
        )
        raise ValueError(msg)

    return BoundaryRule(
        rule_id=name,
        description=description,
        from_layers=_parse_layer_set(data.get("from"), f"{context} from"),
        to_layers=_parse_layer_set(data.get("to"), f"{context} to"),
        verdict=verdict,
        feature=feature,
        target_index=target_index,
        severity=severity,
        from_paths=_parse_path_globs(data.get("from_paths"), f"{context} from_paths"),
        to_paths=_parse_path_globs(data.get("to_paths"), f"{context} to_paths"),
    )


def parse_rules(rules_data: object) -> tuple[BoundaryRule, ...]:
    """Parse the ``rules`` list of a configuration file into extra table rows.

    YAML example::

        rules:
          - name: feature-no-app
            description: feature code may not import the app shell
            from: feature
            to: app
            verdict: deny
            severity: warn
          - name: app-router-routes
            from: app
            from_paths: router.ts
            to: feature
            to_paths: ["*/routes.ts", "*/routes"]
            verdict: allow

    Raises ``ValueError`` on schema errors, including names that clash with
    the built-in rows.
    """
    if rules_data is None:
        return ()
    if not isinstance(rules_data, list):
        msg = "rules: 'rules' must be a list"
        raise ValueError(msg)

    seen_ids: set[str] = {rule.rule_id for rule in DEFAULT_RULES}
    return tuple(_parse_rule(idx, data, seen_ids) for idx, data in enumerate(rules_data))
