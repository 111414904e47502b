"""Tests for layerlint.classifier: layer classification."""

from __future__ import annotations

import pytest

from layerlint.classifier import ClassifiedPath, Layer, classify, layer_from_name
from layerlint.config import LayerRoot, ProjectConfig


class TestDefaultLayers:
    """Classification against the default layer roots."""

    @pytest.mark.parametrize(
        ("path", "layer"),
        [
            ("src/app/main.ts", Layer.APP),
            ("src/app/layouts/Default.vue", Layer.APP),
            ("src/features/cart/view.ts", Layer.FEATURE),
            ("src/shared/ui/Button.vue", Layer.SHARED_UI),
            ("src/shared/utils/format.ts", Layer.SHARED_UTIL),
            ("src/shared/api/client.ts", Layer.SHARED_UTIL),
            ("src/components/Header.vue", Layer.COMPONENT),
            ("src/main.ts", Layer.UNCLASSIFIED),
            ("src/router/index.ts", Layer.UNCLASSIFIED),
            ("tests/features/cart.spec.ts", Layer.UNCLASSIFIED),
            ("features/cart/view.ts", Layer.UNCLASSIFIED),
        ],
    )
    def test_layer(self, config: ProjectConfig, path: str, layer: Layer) -> None:
        assert classify(path, config).layer is layer

    def test_specific_root_wins_over_generic_prefix(self, config: ProjectConfig) -> None:
        """shared/ui/x is SharedUI, not the generic shared fallback."""
        result = classify("src/shared/ui/forms/Input.vue", config)
        assert result.layer is Layer.SHARED_UI
        assert result.layer_root == "shared/ui"
        assert result.requires_index is True

    def test_root_prefix_must_be_whole_segments(self, config: ProjectConfig) -> None:
        assert classify("src/apps/main.ts", config).layer is Layer.UNCLASSIFIED
        assert classify("src/shared-old/x.ts", config).layer is Layer.UNCLASSIFIED

    def test_path_is_normalized_first(self, config: ProjectConfig) -> None:
        result = classify("  ./src\\features\\cart\\..\\checkout\\index.ts ", config)
        assert result.normalized_path == "src/features/checkout/index.ts"
        assert result.layer is Layer.FEATURE
        assert result.feature_name == "checkout"
        assert result.raw_path == "  ./src\\features\\cart\\..\\checkout\\index.ts "


class TestFeatureName:
    """Feature name capture below the features root."""

    def test_feature_name(self, config: ProjectConfig) -> None:
        result = classify("src/features/cart/components/Item.vue", config)
        assert result.feature_name == "cart"
        assert result.is_index_entry is False

    def test_feature_root_itself(self, config: ProjectConfig) -> None:
        result = classify("src/features", config)
        assert result.layer is Layer.FEATURE
        assert result.feature_name is None
        assert result.is_index_entry is True

    def test_features_barrel(self, config: ProjectConfig) -> None:
        result = classify("src/features/index.ts", config)
        assert result.layer is Layer.FEATURE
        assert result.feature_name is None
        assert result.is_index_entry is True

    def test_non_feature_layers_have_no_feature_name(self, config: ProjectConfig) -> None:
        assert classify("src/shared/ui/cart/Button.vue", config).feature_name is None
        assert classify("src/app/cart.ts", config).feature_name is None


class TestIndexEntry:
    """is_index_entry detection."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("src/features/cart/index.ts", True),
            ("src/features/cart/index.js", True),
            ("src/features/cart/index", True),
            ("src/shared/ui/index.ts", True),
            ("src/features/cart/indexes.ts", False),
            ("src/features/cart/view.ts", False),
            ("src/features/cart", True),
            ("src/features/cart/sub/index.ts", True),
            ("lib/index.ts", True),
            ("src/shared/ui", True),
        ],
    )
    def test_index(self, config: ProjectConfig, path: str, expected: bool) -> None:
        assert classify(path, config).is_index_entry is expected

    def test_directory_imports_are_index_entries(self, config: ProjectConfig) -> None:
        """A bare feature directory or layer root is a directory import of its barrel."""
        feature_dir = classify("src/features/cart", config)
        assert feature_dir.feature_name == "cart"
        assert feature_dir.is_index_entry is True
        assert classify("src/shared/ui", config).is_index_entry is True
        assert classify("src/features/cart/view", config).is_index_entry is False

    def test_directory_index_disabled(self) -> None:
        cfg = ProjectConfig(directory_index=False)
        feature_dir = classify("src/features/cart", cfg)
        assert feature_dir.feature_name == "cart"
        assert feature_dir.is_index_entry is False
        assert classify("src/shared/ui", cfg).is_index_entry is False


class TestLayerPath:
    """layer_path is the part of the path below the layer root."""

    def test_layer_path(self, config: ProjectConfig) -> None:
        assert classify("src/app/router.ts", config).layer_path == "router.ts"
        assert classify("src/features/cart/routes.ts", config).layer_path == "cart/routes.ts"
        assert classify("src/shared/ui", config).layer_path == ""

    def test_unclassified_has_no_layer_path(self, config: ProjectConfig) -> None:
        assert classify("src/main.ts", config).layer_path is None
        assert classify("", config).layer_path is None


class TestTotality:
    """Classification never fails and is deterministic."""

    @pytest.mark.parametrize(
        "path", ["", "   ", "/", "..", "\\\\\\", "src", "src/", "???", "src/features/../.."]
    )
    def test_garbage_is_unclassified(self, config: ProjectConfig, path: str) -> None:
        result = classify(path, config)
        assert result.layer is Layer.UNCLASSIFIED
        assert result.feature_name is None

    def test_none_path(self, config: ProjectConfig) -> None:
        assert classify(None, config).layer is Layer.UNCLASSIFIED  # type: ignore[arg-type]

    def test_deterministic(self, config: ProjectConfig) -> None:
        first = classify("src/features/cart/view.ts", config)
        second = classify("src/features/cart/view.ts", config)
        assert first == second
        assert isinstance(first, ClassifiedPath)


class TestCustomConfig:
    """Layer roots, source root and priority come from configuration."""

    def test_custom_roots(self) -> None:
        cfg = ProjectConfig(
            source_root="client",
            layers=(
                LayerRoot(Layer.FEATURE, "modules"),
                LayerRoot(Layer.SHARED_UI, "kit"),
            ),
        )
        result = classify("client/modules/profile/api.ts", cfg)
        assert result.layer is Layer.FEATURE
        assert result.feature_name == "profile"
        assert classify("client/kit/Button.vue", cfg).layer is Layer.SHARED_UI
        assert classify("client/features/x.ts", cfg).layer is Layer.UNCLASSIFIED
        assert classify("src/modules/profile/api.ts", cfg).layer is Layer.UNCLASSIFIED

    def test_priority_order_is_applied(self) -> None:
        """A generic root listed first shadows a more specific one."""
        cfg = ProjectConfig(
            layers=(
                LayerRoot(Layer.SHARED_UTIL, "shared"),
                LayerRoot(Layer.SHARED_UI, "shared/ui"),
            ),
        )
        assert classify("src/shared/ui/Button.vue", cfg).layer is Layer.SHARED_UTIL

    def test_empty_source_root(self) -> None:
        cfg = ProjectConfig(source_root="")
        assert classify("features/cart/view.ts", cfg).layer is Layer.FEATURE

    def test_nested_source_root(self) -> None:
        cfg = ProjectConfig(source_root="packages/web/src")
        result = classify("packages/web/src/app/main.ts", cfg)
        assert result.layer is Layer.APP


class TestLayerFromName:
    """layer_from_name() lookup."""

    @pytest.mark.parametrize(
        ("name", "layer"),
        [
            ("feature", Layer.FEATURE),
            ("shared-ui", Layer.SHARED_UI),
            ("shared_ui", Layer.SHARED_UI),
            ("Shared-Util", Layer.SHARED_UTIL),
            (" app ", Layer.APP),
            ("component", Layer.COMPONENT),
        ],
    )
    def test_known(self, name: str, layer: Layer) -> None:
        assert layer_from_name(name) is layer

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="unknown layer 'widgets'"):
            layer_from_name("widgets")
