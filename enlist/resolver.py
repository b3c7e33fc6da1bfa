"""Property resolution with an ordered fallback chain.

A resolver runs its strategies in order and stops at the first one that
produces a value:

1. the entry's own accessor (`entry.get_value`)
2. the raw frontmatter field, for `note.*` ids
3. the parent folder name, for `file.folder`

Each context (grouping, display text, subtitle) uses its own strategy list
and its own rule for what an unresolved property turns into.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from .models import FOLDER_PROPERTY, NONE_KEY, Entry
from .text import strip_inline_refs

logger = logging.getLogger(__name__)

# Stringified values that count as "no value"
EMPTY_STRINGS = frozenset({"", "null", "undefined"})


@dataclass(frozen=True)
class Resolved:
    """A value found by one strategy."""

    value: Any
    source: str  # accessor, frontmatter, folder


Strategy = Callable[[Entry, str], "Resolved | None"]


def from_accessor(entry: Entry, property_id: str) -> Resolved | None:
    """Ask the entry for the value. A failing accessor is a miss."""
    try:
        value = entry.get_value(property_id)
    except Exception as e:
        logger.debug(f"Accessor failed for {property_id} on {entry.path}: {e}")
        return None
    if value is None or str(value) in EMPTY_STRINGS:
        return None
    return Resolved(value, "accessor")


def from_frontmatter(entry: Entry, property_id: str) -> Resolved | None:
    """Read `note.<field>` directly from the frontmatter mapping."""
    if not property_id.startswith("note."):
        return None
    name = property_id[len("note."):]
    value = entry.frontmatter.get(name)
    if value is None:
        return None
    return Resolved(value, "frontmatter")


def from_folder(fallback: str | None) -> Strategy:
    """Parent folder name for `file.folder`, else `fallback` if given."""

    def strategy(entry: Entry, property_id: str) -> Resolved | None:
        if property_id != FOLDER_PROPERTY:
            return None
        if entry.folder:
            return Resolved(entry.folder, "folder")
        if fallback is not None:
            return Resolved(fallback, "folder")
        return None

    return strategy


class PropertyResolver:
    """Runs strategies in order and returns the first hit."""

    def __init__(self, strategies: Sequence[Strategy]):
        self.strategies = tuple(strategies)

    def resolve(self, entry: Entry, property_id: str) -> Resolved | None:
        for strategy in self.strategies:
            result = strategy(entry, property_id)
            if result is not None:
                return result
        return None


GROUP_RESOLVER = PropertyResolver([from_accessor, from_frontmatter, from_folder("Root")])
DISPLAY_RESOLVER = PropertyResolver([from_accessor, from_frontmatter])
# Subtitles look at the folder first and omit it when the entry is at the root
SUBTITLE_RESOLVER = PropertyResolver([from_folder(None), from_accessor, from_frontmatter])


def value_to_group_string(value: Any) -> str:
    """Normalize any resolved value to a group key."""
    if value is None:
        return NONE_KEY
    if isinstance(value, str):
        return strip_inline_refs(value) or NONE_KEY
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        if not value:
            return NONE_KEY
        return ", ".join(value_to_group_string(v) for v in value)

    text = str(value)
    if text in EMPTY_STRINGS:
        return NONE_KEY
    return strip_inline_refs(text) or NONE_KEY


def value_to_text(value: Any) -> str:
    """Plain display text for a resolved value; lists are comma separated."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(value_to_text(v) for v in value)
    return str(value)


def group_key(entry: Entry, property_id: str) -> str:
    """Group key for an entry; `"None"` when nothing resolves."""
    result = GROUP_RESOLVER.resolve(entry, property_id)
    if result is None:
        return NONE_KEY
    return value_to_group_string(result.value)


def raw_text(entry: Entry, property_id: str) -> str | None:
    """Resolved display text with references left in place."""
    result = DISPLAY_RESOLVER.resolve(entry, property_id)
    if result is None:
        return None
    text = value_to_text(result.value)
    return None if text in EMPTY_STRINGS else text


def display_text(entry: Entry, property_id: str) -> str | None:
    """Resolved display text with references stripped, or None to omit."""
    text = raw_text(entry, property_id)
    return strip_inline_refs(text) if text is not None else None


def subtitle_text(entry: Entry, property_id: str) -> str | None:
    """Subtitle for an entry, or None to omit it."""
    result = SUBTITLE_RESOLVER.resolve(entry, property_id)
    if result is None:
        return None
    text = value_to_text(result.value)
    if text in EMPTY_STRINGS:
        return None
    return strip_inline_refs(text)
