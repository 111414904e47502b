"""Shared test fixtures for layerlint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from layerlint.config import ProjectConfig

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def config() -> ProjectConfig:
    """Default configuration (src root, '@' alias, default layers)."""
    return ProjectConfig()


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a minimal layered project tree for testing.

    Layout::

        src/app/main.ts
        src/features/cart/{index.ts,view.ts}
        src/features/checkout/{index.ts,helpers.ts}
        src/shared/ui/{index.ts,Button.vue}
        src/shared/utils/format.ts
    """
    files = {
        "src/app/main.ts": "import { mount } from 'vue'\n",
        "src/features/cart/index.ts": "export * from './view'\n",
        "src/features/cart/view.ts": "export const view = 1\n",
        "src/features/checkout/index.ts": "export * from './helpers'\n",
        "src/features/checkout/helpers.ts": "export const help = 1\n",
        "src/shared/ui/index.ts": "export { default as Button } from './Button.vue'\n",
        "src/shared/ui/Button.vue": "<template><button /></template>\n",
        "src/shared/utils/format.ts": "export const fmt = (s: string) => s\n",
    }
    for rel, content in files.items():
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return tmp_path
