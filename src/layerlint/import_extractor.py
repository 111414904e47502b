"""Import extractor: pull import specifiers out of JS/TS/Vue sources via tree-sitter."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from tree_sitter import Node as TSNode

logger = logging.getLogger(__name__)

_VUE_SCRIPT_RE = re.compile(
    r"<script\b(?P<attrs>[^>]*)>(?P<body>.*?)</script\s*>",
    re.DOTALL | re.IGNORECASE,
)
_VUE_LANG_RE = re.compile(r"""\blang\s*=\s*["']?(?P<lang>[a-z]+)""", re.IGNORECASE)


@dataclass(frozen=True)
class ImportInfo:
    """A single import extracted from source code."""

    file_path: str  # path of the importing file as given
    line_number: int  # 1-based line number
    specifier: str  # raw module specifier (e.g. "@/features/cart")
    is_type_only: bool = False  # `import type ...` / `export type ... from`


# ---- Grammar loaders (lazy, handle ImportError) ----


def _load_typescript() -> Language:
    import tree_sitter_typescript as tstypescript

    return Language(tstypescript.language_typescript())


def _load_tsx() -> Language:
    import tree_sitter_typescript as tstypescript

    return Language(tstypescript.language_tsx())


_GRAMMAR_LOADERS: dict[str, Callable[[], Language]] = {
    "typescript": _load_typescript,
    "tsx": _load_tsx,
}

# Extension -> grammar name.  `.vue` is handled per <script> block.
_EXTENSION_GRAMMARS: dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".js": "typescript",
    ".mjs": "typescript",
    ".cjs": "typescript",
    ".tsx": "tsx",
    ".jsx": "tsx",
}

_VUE_LANG_GRAMMARS: dict[str, str] = {
    "ts": "typescript",
    "js": "typescript",
    "tsx": "tsx",
    "jsx": "tsx",
}

# Cache for loaded grammars (None means "tried and failed").
_LANG_CACHE: dict[str, Language | None] = {}


def get_language(grammar: str) -> Language | None:
    """Return the tree-sitter language for *grammar*, or ``None`` if unavailable."""
    if grammar in _LANG_CACHE:
        return _LANG_CACHE[grammar]

    loader = _GRAMMAR_LOADERS.get(grammar)
    if loader is None:
        _LANG_CACHE[grammar] = None
        return None

    try:
        language: Language | None = loader()
    except ImportError:
        logger.warning("tree-sitter grammar '%s' is not installed, skipping those files", grammar)
        language = None

    _LANG_CACHE[grammar] = language
    return language


def clear_cache() -> None:
    """Clear the grammar cache (useful for testing)."""
    _LANG_CACHE.clear()


def supported_extensions() -> frozenset[str]:
    """Return the file extensions the extractor understands."""
    return frozenset(_EXTENSION_GRAMMARS) | {".vue"}


# ---------------------------------------------------------------------------
# AST helpers
# ---------------------------------------------------------------------------


def _string_value(node: TSNode | None) -> str | None:
    """Extract the literal value of a ``string`` node (``None`` for non-strings)."""
    if node is None or node.type != "string":
        return None
    for child in node.children:
        if child.type == "string_fragment":
            return child.text.decode("utf-8") if child.text else None
    return None


def _statement_source(node: TSNode) -> str | None:
    """Source specifier of an import/export statement, if it has one."""
    source = _string_value(node.child_by_field_name("source"))
    if source is not None:
        return source
    # `import x = require('y')`
    for child in node.children:
        if child.type == "import_require_clause":
            return _string_value(child.child_by_field_name("source"))
    return None


def _is_type_only(node: TSNode) -> bool:
    return any(child.type == "type" for child in node.children)


def _call_source(node: TSNode) -> str | None:
    """Specifier of ``import('x')`` / ``require('x')`` calls with a literal argument."""
    function = node.child_by_field_name("function")
    if function is None:
        return None
    is_dynamic_import = function.type == "import"
    is_require = function.type == "identifier" and function.text == b"require"
    if not (is_dynamic_import or is_require):
        return None

    arguments = node.child_by_field_name("arguments")
    if arguments is None:
        return None
    for child in arguments.children:
        if child.type == "string":
            return _string_value(child)
    return None


def _collect_imports(root: TSNode, file_path: str, line_offset: int) -> list[ImportInfo]:
    results: list[ImportInfo] = []
    stack: list[TSNode] = [root]

    while stack:
        node = stack.pop()
        source: str | None = None
        type_only = False

        if node.type == "import_statement":
            source = _statement_source(node)
            type_only = _is_type_only(node)
        elif node.type == "export_statement":
            source = _statement_source(node)
            type_only = source is not None and _is_type_only(node)
        elif node.type == "call_expression":
            source = _call_source(node)

        if source:
            results.append(
                ImportInfo(
                    file_path=file_path,
                    line_number=node.start_point.row + 1 + line_offset,
                    specifier=source,
                    is_type_only=type_only,
                )
            )
            if node.type != "call_expression":
                continue

        stack.extend(reversed(node.children))

    results.sort(key=lambda info: info.line_number)
    return results


def _parse(content: str, grammar: str, file_path: str, line_offset: int = 0) -> list[ImportInfo]:
    language = get_language(grammar)
    if language is None:
        return []
    parser = Parser(language)
    tree = parser.parse(content.encode("utf-8"))
    return _collect_imports(tree.root_node, file_path, line_offset)


def _extract_vue_imports(content: str, file_path: str) -> list[ImportInfo]:
    """Extract imports from every ``<script>`` block of a Vue SFC."""
    results: list[ImportInfo] = []
    for match in _VUE_SCRIPT_RE.finditer(content):
        lang_match = _VUE_LANG_RE.search(match.group("attrs"))
        lang = lang_match.group("lang").lower() if lang_match else "js"
        grammar = _VUE_LANG_GRAMMARS.get(lang)
        if grammar is None:
            logger.debug("Unsupported <script lang=%s> in %s", lang, file_path)
            continue
        offset = content.count("\n", 0, match.start("body"))
        results.extend(_parse(match.group("body"), grammar, file_path, offset))
    return results


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_imports_from_source(content: str, file_path: str, extension: str) -> list[ImportInfo]:
    """Extract imports from in-memory *content* written in the *extension* language."""
    if not content.strip():
        return []
    if extension == ".vue":
        return _extract_vue_imports(content, file_path)

    grammar = _EXTENSION_GRAMMARS.get(extension)
    if grammar is None:
        return []
    return _parse(content, grammar, file_path)


def extract_imports(file_path: Path, display_path: str | None = None) -> list[ImportInfo]:
    """Extract import statements from a source file using tree-sitter.

    Detects the grammar by file extension.  Returns an empty list if the
    language is unsupported, the grammar package is not installed, or the
    file cannot be read.
    """
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.warning("Cannot read file: %s", file_path)
        return []

    return extract_imports_from_source(
        content, display_path or str(file_path), file_path.suffix.lower()
    )
