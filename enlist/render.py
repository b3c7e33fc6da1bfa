"""Render driver: grouping tree + collapse state -> render forest.

`render` is a pure function of the native groups, the render options and
the collapse state. Presentation layers walk the resulting `RenderTree`;
nothing here knows how it will be displayed.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator, Sequence

from .collapse import CollapseState, CollapseStateStore, CompositeKey
from .config import RenderOptions
from .errors import PropertyError
from .grouping import build_groups
from .models import FOLDER_PROPERTY, NAME_PROPERTY, Entry, GroupNode, NativeGroup, Role, parse_property_id
from .resolver import display_text, raw_text, subtitle_text
from .text import (
    Segment,
    format_relative_date,
    merge_tags,
    split_inline_refs,
    strip_inline_refs,
    truncate_to_lines,
)

logger = logging.getLogger(__name__)

# (link, source path) -> resource path, or None if the link does not resolve
LinkResolver = Callable[[str, str], "str | None"]

IMAGE_FIELDS = ("image", "cover", "thumbnail", "banner", "feature_image")
DESCRIPTION_FIELDS = ("description", "summary", "excerpt", "abstract")
IMAGE_EXTENSION_PATTERN = re.compile(r"\.(png|jpg|jpeg|gif|webp|svg)$", re.IGNORECASE)


@dataclass(frozen=True)
class PropertyView:
    property_id: str
    text: str  # references stripped
    segments: tuple[Segment, ...]  # for clickable references


@dataclass(frozen=True)
class Footer:
    relative_date: str
    word_count: int | None = None


@dataclass(frozen=True)
class EntryView:
    """Display fields derived for one entry."""

    path: str
    title: str
    subtitle: str | None = None
    preview: str | None = None
    thumbnail: str | None = None
    tags: tuple[str, ...] = ()
    properties: tuple[PropertyView, ...] = ()
    footer: Footer | None = None


@dataclass
class RenderNode:
    """A group as displayed.

    `count` is the number of member entries, including hidden ones.
    A collapsed node has no children and no entries.
    """

    title: str | None
    role: Role
    key: CompositeKey | None
    count: int
    collapsed: bool = False
    children: list[RenderNode] = field(default_factory=list)
    entries: list[EntryView] = field(default_factory=list)


@dataclass
class RenderTree:
    nodes: list[RenderNode]
    total_entries: int
    options: RenderOptions

    @property
    def is_empty(self) -> bool:
        return self.total_entries == 0


def get_thumbnail(entry: Entry, resolve_link: LinkResolver | None = None) -> str | None:
    """First image from the frontmatter image fields, else the first image embed."""
    for name in IMAGE_FIELDS:
        value = entry.frontmatter.get(name)
        if not value or not isinstance(value, str):
            continue
        if value.startswith("http"):
            return value
        if resolve_link is None:
            continue
        link = value[2:-2] if value.startswith("[[") and value.endswith("]]") else value
        resolved = resolve_link(link, entry.path)
        if resolved:
            return resolved

    if resolve_link is None:
        return None
    for embed in entry.embeds:
        if IMAGE_EXTENSION_PATTERN.search(embed):
            resolved = resolve_link(embed, entry.path)
            if resolved:
                return resolved
    return None


def get_preview(entry: Entry, lines: int, preview_property: str | None = None) -> str | None:
    """Preview text from the configured property or the first description field."""
    if preview_property:
        text = display_text(entry, preview_property)
        return truncate_to_lines(text, lines) if text else None

    for name in DESCRIPTION_FIELDS:
        value = entry.frontmatter.get(name)
        if value:
            return truncate_to_lines(strip_inline_refs(str(value)), lines)
    return None


def get_tags(entry: Entry) -> list[str]:
    """Frontmatter tags followed by inline tags, without '#' or duplicates."""
    return merge_tags(entry.frontmatter.get("tags"), entry.tags)


def get_word_count(entry: Entry) -> int | None:
    value = entry.frontmatter.get("word_count")
    if not value or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        # Non-numeric, nan and inf all land here
        logger.debug(f"Ignoring non-numeric word_count on {entry.path}: {value!r}")
        return None


def get_properties(entry: Entry, order: Sequence[str]) -> list[PropertyView]:
    result = []
    for property_id in order:
        try:
            parse_property_id(property_id)
        except PropertyError:
            continue
        # The name is already the title
        if property_id == NAME_PROPERTY:
            continue
        text = raw_text(entry, property_id)
        if not text:
            continue
        result.append(
            PropertyView(
                property_id=property_id,
                text=strip_inline_refs(text),
                segments=tuple(split_inline_refs(text)),
            )
        )
    return result


def derive_entry(
    entry: Entry,
    options: RenderOptions,
    *,
    resolve_link: LinkResolver | None = None,
    now_ms: float,
) -> EntryView:
    """Compute every display field the options ask for."""
    subtitle = None
    if options.show_subtitle:
        subtitle = subtitle_text(entry, options.subtitle_property or FOLDER_PROPERTY)

    preview = None
    if options.preview_lines > 0:
        preview = get_preview(entry, options.preview_lines, options.preview_property)

    footer = None
    if options.show_metadata:
        footer = Footer(
            relative_date=format_relative_date(entry.mtime, now_ms),
            word_count=get_word_count(entry),
        )

    return EntryView(
        path=entry.path,
        title=entry.basename,
        subtitle=subtitle,
        preview=preview,
        thumbnail=get_thumbnail(entry, resolve_link) if options.show_thumbnails else None,
        tags=tuple(get_tags(entry)) if options.show_tags else (),
        properties=tuple(get_properties(entry, options.order)),
        footer=footer,
    )


def _render_node(
    node: GroupNode,
    options: RenderOptions,
    state: CollapseState,
    resolve_link: LinkResolver | None,
    now_ms: float,
) -> RenderNode:
    collapsed = node.path is not None and state.is_collapsed(node.path)
    rendered = RenderNode(
        title=strip_inline_refs(node.key) if node.key is not None else None,
        role=node.role,
        key=node.path,
        count=len(node.entries),
        collapsed=collapsed,
    )
    # Descendants of a collapsed node are hidden; their own state is kept
    if collapsed:
        return rendered

    if node.children:
        rendered.children = [
            _render_node(child, options, state, resolve_link, now_ms) for child in node.children
        ]
    else:
        rendered.entries = [
            derive_entry(entry, options, resolve_link=resolve_link, now_ms=now_ms)
            for entry in node.entries
        ]
    return rendered


def render(
    native_groups: Sequence[NativeGroup],
    options: RenderOptions,
    state: CollapseState | None = None,
    *,
    resolve_link: LinkResolver | None = None,
    now_ms: float | None = None,
) -> RenderTree:
    """Build the render forest for one pass."""
    if state is None:
        state = CollapseState()
    if now_ms is None:
        now_ms = time.time() * 1000

    roots = build_groups(native_groups, options.primary_group, options.sub_group)
    nodes = [_render_node(root, options, state, resolve_link, now_ms) for root in roots]
    total = sum(len(group.entries) for group in native_groups)
    return RenderTree(nodes=nodes, total_entries=total, options=options)


def toggle_and_render(
    store: CollapseStateStore,
    key: CompositeKey,
    native_groups: Sequence[NativeGroup],
    options: RenderOptions,
    **kwargs,
) -> RenderTree:
    """Flip a group's collapse state and re-derive the whole forest."""
    store.toggle(key)
    return render(native_groups, options, store.state, **kwargs)


def iter_render_nodes(nodes: Sequence[RenderNode]) -> Iterator[RenderNode]:
    """Every rendered node that has a key, depth first."""
    for node in nodes:
        if node.key is not None:
            yield node
        yield from iter_render_nodes(node.children)
