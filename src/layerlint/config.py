"""Project configuration: layer roots, alias, rule overrides, loaded from YAML."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import yaml

from layerlint.classifier import Layer, layer_from_name
from layerlint.paths import normalize_path, split_segments
from layerlint.rule_engine import DEFAULT_RULES, BoundaryRule, parse_rules

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_SOURCE_ROOT = "src"
DEFAULT_ALIAS = "@"
DEFAULT_EXTENSIONS: tuple[str, ...] = (
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".ts",
    ".tsx",
    ".mts",
    ".cts",
    ".vue",
)
DEFAULT_INDEX_NAMES: tuple[str, ...] = ("index.ts", "index.js")
CONFIG_FILE_NAMES: tuple[str, ...] = (
    ".layerlint.yml",
    "layerlint.yml",
    ".layerlint/config.yml",
)
VALID_SEVERITIES: frozenset[str] = frozenset({"error", "warn", "off"})


@dataclass(frozen=True)
class LayerRoot:
    """A layer and the directory (relative to the source root) that holds it."""

    layer: Layer
    root: str
    requires_index: bool = False

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(split_segments(normalize_path(self.root)))


# More specific roots come first: ``shared/ui`` must win over ``shared``.
DEFAULT_LAYERS: tuple[LayerRoot, ...] = (
    LayerRoot(Layer.FEATURE, "features"),
    LayerRoot(Layer.SHARED_UI, "shared/ui", requires_index=True),
    LayerRoot(Layer.SHARED_UTIL, "shared/utils"),
    LayerRoot(Layer.SHARED_UTIL, "shared"),
    LayerRoot(Layer.APP, "app"),
    LayerRoot(Layer.COMPONENT, "components"),
)


@dataclass(frozen=True)
class ProjectConfig:
    """Immutable configuration for one lint pass.

    Layer roots are matched in order, so configuration authors list them
    from most to least specific.  ``rules`` holds extra rows evaluated
    before the built-in table; ``severities`` holds ``(rule_id, level)``
    overrides for any rule id (``off`` silences it).  A bare feature
    directory or layer root counts as its own index entry unless
    ``directory_index`` is turned off.
    """

    source_root: str = DEFAULT_SOURCE_ROOT
    alias: str = DEFAULT_ALIAS
    layers: tuple[LayerRoot, ...] = DEFAULT_LAYERS
    strict_root_match: bool = False
    directory_index: bool = True
    ignores: tuple[str, ...] = ()
    allow: tuple[str, ...] = ()
    ignore_type_imports: bool = True
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    index_checks: bool = False
    index_names: tuple[str, ...] = DEFAULT_INDEX_NAMES
    rules: tuple[BoundaryRule, ...] = ()
    severities: tuple[tuple[str, str], ...] = ()

    @property
    def source_root_segments(self) -> tuple[str, ...]:
        return tuple(split_segments(normalize_path(self.source_root)))

    @property
    def rule_table(self) -> tuple[BoundaryRule, ...]:
        """Custom rows followed by the built-in table."""
        return self.rules + DEFAULT_RULES

    def level_for(self, rule_id: str, default: str = "error") -> str:
        """Configured severity for *rule_id*, or *default* without an override."""
        for key, level in self.severities:
            if key == rule_id:
                return level
        return default

    def severity_for(self, rule: BoundaryRule) -> str:
        return self.level_for(rule.rule_id, rule.severity)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_KNOWN_KEYS: frozenset[str] = frozenset(
    {
        "source_root",
        "alias",
        "layers",
        "strict_root_match",
        "directory_index",
        "ignores",
        "allow",
        "ignore_type_imports",
        "extensions",
        "index_checks",
        "index_names",
        "rules",
        "severity",
    }
)


def _str_value(data: dict[str, object], key: str, default: str) -> str:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str) or not normalize_path(value):
        logger.warning("Config '%s' must be a non-empty string, using default %r", key, default)
        return default
    return value


def _bool_value(data: dict[str, object], key: str, default: bool) -> bool:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        logger.warning("Config '%s' must be a boolean, using default %r", key, default)
        return default
    return value


def _str_tuple(data: dict[str, object], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        logger.warning("Config '%s' must be a list of strings, using default", key)
        return default
    return tuple(str(item) for item in value)


def _parse_layers(raw: object) -> tuple[LayerRoot, ...]:
    """Parse the ``layers`` list of ``{name, root, requires_index}`` mappings."""
    if not isinstance(raw, list):
        msg = "layers: 'layers' must be a list"
        raise ValueError(msg)
    if not raw:
        msg = "layers: at least one layer must be configured"
        raise ValueError(msg)

    roots: list[LayerRoot] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            msg = f"layers: layer at index {idx} must be a mapping"
            raise ValueError(msg)

        name = item.get("name")
        if name is None:
            msg = f"layers: layer at index {idx} missing required 'name' field"
            raise ValueError(msg)
        try:
            layer = layer_from_name(name)
        except ValueError as exc:
            msg = f"layers: layer at index {idx}: {exc}"
            raise ValueError(msg) from exc
        if layer is Layer.UNCLASSIFIED:
            msg = f"layers: layer at index {idx} cannot use the 'unclassified' layer"
            raise ValueError(msg)

        root = item.get("root")
        if not isinstance(root, str) or not normalize_path(root):
            msg = f"layers: layer at index {idx} missing required 'root' field"
            raise ValueError(msg)

        requires_index = item.get("requires_index", False)
        if not isinstance(requires_index, bool):
            logger.warning(
                "Layer at index %d: 'requires_index' must be a boolean, using default False",
                idx,
            )
            requires_index = False
        roots.append(LayerRoot(layer, normalize_path(root), requires_index=requires_index))

    return tuple(roots)


def _parse_severities(raw: object) -> tuple[tuple[str, str], ...]:
    if raw is None:
        return ()
    if not isinstance(raw, dict):
        logger.warning("Config 'severity' must be a mapping of rule id to level, ignoring")
        return ()

    severities: list[tuple[str, str]] = []
    for rule_id, level in raw.items():
        level_str = str(level)
        if level_str not in VALID_SEVERITIES:
            msg = (
                f"severity: invalid level '{level_str}' for rule '{rule_id}', "
                f"must be one of {sorted(VALID_SEVERITIES)}"
            )
            raise ValueError(msg)
        severities.append((str(rule_id), level_str))
    return tuple(severities)


def parse_config(data: object) -> ProjectConfig:
    """Build a :class:`ProjectConfig` from a parsed YAML mapping.

    Missing keys take their documented defaults.  Unknown keys and wrongly
    typed scalars are logged and ignored.  Broken ``layers`` / ``rules`` /
    ``severity`` entries raise ``ValueError``.
    """
    if data is None:
        return ProjectConfig()
    if not isinstance(data, dict):
        msg = "config must be a YAML mapping"
        raise ValueError(msg)

    for key in sorted(set(data) - _KNOWN_KEYS):
        logger.warning("Unknown config key '%s' ignored", key)

    layers = DEFAULT_LAYERS
    if data.get("layers") is not None:
        layers = _parse_layers(data["layers"])

    return ProjectConfig(
        source_root=_str_value(data, "source_root", DEFAULT_SOURCE_ROOT),
        alias=_str_value(data, "alias", DEFAULT_ALIAS),
        layers=layers,
        strict_root_match=_bool_value(data, "strict_root_match", False),
        directory_index=_bool_value(data, "directory_index", True),
        ignores=_str_tuple(data, "ignores", ()),
        allow=_str_tuple(data, "allow", ()),
        ignore_type_imports=_bool_value(data, "ignore_type_imports", True),
        extensions=_str_tuple(data, "extensions", DEFAULT_EXTENSIONS),
        index_checks=_bool_value(data, "index_checks", False),
        index_names=_str_tuple(data, "index_names", DEFAULT_INDEX_NAMES),
        rules=parse_rules(data.get("rules")),
        severities=_parse_severities(data.get("severity")),
    )


def find_config(project_root: Path) -> Path | None:
    """Return the first configuration file found under *project_root*."""
    for name in CONFIG_FILE_NAMES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path) -> ProjectConfig:
    """Read and parse a YAML configuration file.

    Raises ``ValueError`` on schema errors and on malformed YAML.
    """
    with config_path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            msg = f"{config_path.name}: invalid YAML: {exc}"
            raise ValueError(msg) from exc

    logger.debug("Loaded configuration from %s", config_path)
    return parse_config(data)
