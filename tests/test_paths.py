"""Tests for layerlint.paths: path normalization."""

from __future__ import annotations

import pytest

from layerlint.paths import normalize_path, parent_dir, split_segments


class TestNormalizePath:
    """normalize_path() canonicalization rules."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("src/features/cart/view.ts", "src/features/cart/view.ts"),
            ("  src/app/main.ts  ", "src/app/main.ts"),
            ("src\\features\\cart\\view.ts", "src/features/cart/view.ts"),
            ("src//features///cart", "src/features/cart"),
            ("src\\\\shared//\\ui", "src/shared/ui"),
            ("/src/app", "src/app"),
            ("///src/app", "src/app"),
            ("./src/app", "src/app"),
            ("src/./app/./main.ts", "src/app/main.ts"),
            ("src/features/cart/../checkout/index.ts", "src/features/checkout/index.ts"),
            ("src/app/", "src/app"),
            ("C:\\project\\src\\app", "C:/project/src/app"),
        ],
    )
    def test_canonical_form(self, raw: str, expected: str) -> None:
        assert normalize_path(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "\t\n", ".", "./", "/", "//"])
    def test_empty_results(self, raw: str) -> None:
        assert normalize_path(raw) == ""

    def test_excess_parent_segments_are_dropped(self) -> None:
        """Underflowing '..' never raises."""
        assert normalize_path("../../x") == "x"
        assert normalize_path("/../../src/app") == "src/app"
        assert normalize_path("a/../../b") == "b"
        assert normalize_path("..") == ""

    def test_none_is_empty(self) -> None:
        assert normalize_path(None) == ""

    def test_non_string_input(self) -> None:
        assert normalize_path(123) == "123"

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "  ./a\\b//c/../d ",
            "/../..//x/./y/",
            "\\\\server\\share\\src",
            "..\\..\\src\\features",
            "src/features/cart/view.ts",
            " . / .. / a ",
        ],
    )
    def test_idempotent(self, raw: str) -> None:
        once = normalize_path(raw)
        assert normalize_path(once) == once

    @pytest.mark.parametrize("raw", ["/a", "a//b", "a\\b", "./a", "../a/./b//c"])
    def test_output_shape(self, raw: str) -> None:
        result = normalize_path(raw)
        assert not result.startswith("/")
        assert "\\" not in result
        assert "//" not in result
        assert not result.startswith("./")


class TestSegments:
    """split_segments() and parent_dir() helpers."""

    def test_split(self) -> None:
        assert split_segments("src/app/main.ts") == ["src", "app", "main.ts"]
        assert split_segments("") == []

    def test_parent_dir(self) -> None:
        assert parent_dir("src/app/main.ts") == "src/app"
        assert parent_dir("main.ts") == ""
