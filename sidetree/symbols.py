"""Tag extraction for source files using Tree-sitter.

Produces nested ``Tag`` trees (classes containing methods, functions
containing inner functions) that file and tag nodes expand into.
"""

from __future__ import annotations

import logging
import re
from collections import OrderedDict
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from tree_sitter_language_pack import get_parser

from .symbols_config import (
    CLASS_NODE_TYPES,
    DECORATED_NODE_TYPES,
    FUNCTION_NODE_TYPES,
    IDENTIFIER_NODE_TYPES,
    LANGUAGE_BY_SUFFIX,
    TAG_CACHE_MAX,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tag:
    """One extracted tag and its nested tags."""

    kind: str
    name: str
    line: int
    column: int
    children: tuple[Tag, ...] = ()


_TAG_CACHE: OrderedDict[tuple[str, int, int], tuple[Tag, ...]] = OrderedDict()


def _normalize_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def language_for_path(path: Path) -> str | None:
    return LANGUAGE_BY_SUFFIX.get(path.suffix.lower())


@lru_cache(maxsize=32)
def _load_parser(language_name: str):
    """Return a Tree-sitter parser, or ``None`` when the grammar fails to load."""
    try:
        return get_parser(language_name)
    except Exception as exc:
        logger.debug("no Tree-sitter parser for %s: %s", language_name, exc)
        return None


def _node_text(source_bytes: bytes, node) -> str:
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _name_from_node(source_bytes: bytes, node) -> str:
    for field_name in ("name", "declarator", "type"):
        child = node.child_by_field_name(field_name)
        if child is None:
            continue
        nested = child.child_by_field_name("name") or child.child_by_field_name("declarator")
        if nested is not None:
            return _normalize_whitespace(_node_text(source_bytes, nested))
        return _normalize_whitespace(_node_text(source_bytes, child))

    for child in node.named_children:
        if child.type in IDENTIFIER_NODE_TYPES:
            return _normalize_whitespace(_node_text(source_bytes, child))
    return _normalize_whitespace(_node_text(source_bytes, node).splitlines()[0])


def _tag_kind(node_type: str) -> str | None:
    if node_type in FUNCTION_NODE_TYPES:
        return "fn"
    if node_type in CLASS_NODE_TYPES:
        return "class"
    return None


def _read_source_bytes(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except OSError as exc:
        logger.debug("cannot read %s for tags: %s", path, exc)
        return None


def collect_tags(path: Path) -> tuple[Tag, ...]:
    """Parse ``path`` and return its top-level tags.

    Files without a configured grammar, unreadable files, and parse failures
    all yield no tags.
    """
    language_name = language_for_path(path)
    if language_name is None:
        return ()
    parser = _load_parser(language_name)
    if parser is None:
        return ()
    source_bytes = _read_source_bytes(path)
    if source_bytes is None:
        return ()
    try:
        tree = parser.parse(source_bytes)
    except Exception as exc:
        logger.debug("Tree-sitter parse of %s failed: %s", path, exc)
        return ()

    def walk(node, out: list[Tag]) -> None:
        if node.type in DECORATED_NODE_TYPES:
            definition = node.child_by_field_name("definition")
            if definition is not None:
                walk(definition, out)
                return

        kind = _tag_kind(node.type)
        if kind is None:
            for child in node.named_children:
                walk(child, out)
            return

        nested: list[Tag] = []
        for child in node.named_children:
            walk(child, nested)
        line, column = node.start_point
        out.append(
            Tag(
                kind=kind,
                name=_name_from_node(source_bytes, node),
                line=int(line),
                column=int(column),
                children=tuple(nested),
            )
        )

    tags: list[Tag] = []
    walk(tree.root_node, tags)
    return tuple(tags)


def _tag_cache_key(path: Path) -> tuple[str, int, int] | None:
    try:
        stat = path.stat()
    except OSError:
        return None
    return (str(path), int(stat.st_mtime_ns), int(stat.st_size))


def extract_tags(path: Path) -> tuple[Tag, ...]:
    """Return tags for ``path`` with a small LRU cache keyed by file identity."""
    cache_key = _tag_cache_key(path)
    if cache_key is None:
        return ()
    cached = _TAG_CACHE.get(cache_key)
    if cached is not None:
        _TAG_CACHE.move_to_end(cache_key)
        return cached

    tags = collect_tags(path)
    _TAG_CACHE[cache_key] = tags
    _TAG_CACHE.move_to_end(cache_key)
    while len(_TAG_CACHE) > TAG_CACHE_MAX:
        _TAG_CACHE.popitem(last=False)
    return tags


def clear_tag_cache() -> None:
    _TAG_CACHE.clear()


def find_tag(tags: tuple[Tag, ...], names: tuple[str, ...], ordinals: tuple[int, ...] = ()) -> Tag | None:
    """Follow ``names`` through nested tags.

    ``ordinals[i]`` selects among same-named siblings at level ``i``; a
    missing ordinal selects the first.
    """
    current: Tag | None = None
    level = tags
    for depth, name in enumerate(names):
        ordinal = ordinals[depth] if depth < len(ordinals) else 0
        matches = [tag for tag in level if tag.name == name]
        if ordinal >= len(matches):
            return None
        current = matches[ordinal]
        level = current.children
    return current


__all__ = ["Tag", "clear_tag_cache", "collect_tags", "extract_tags", "find_tag", "language_for_path"]
