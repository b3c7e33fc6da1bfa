"""Terminal and JSON presentation of a render forest."""

from __future__ import annotations

from typing import Any

from rich.console import Group, RenderableType
from rich.text import Text
from rich.tree import Tree

from .render import EntryView, RenderNode, RenderTree, iter_render_nodes
from .text import RefSegment, format_word_count

COLLAPSED_ICON = "▸"
EXPANDED_ICON = "▾"
EMPTY_MESSAGE = "No items to display"

ROLE_STYLES = {
    "primary": "bold",
    "secondary": "bold cyan",
    "tertiary": "cyan",
}

# Longest thumbnail reference shown per size
THUMBNAIL_WIDTHS = {"small": 24, "medium": 48, "large": 96}


def group_label(node: RenderNode, show_counts: bool, number: int | None = None) -> Text:
    label = Text()
    if number is not None:
        label.append(f"[{number}] ", style="dim")
    label.append(COLLAPSED_ICON if node.collapsed else EXPANDED_ICON, style="dim")
    label.append(" ")
    label.append(node.title or "", style=ROLE_STYLES.get(node.role, "bold"))
    if show_counts:
        label.append(f" {node.count}", style="dim")
    return label


def _shorten(text: str, width: int) -> str:
    return text if len(text) <= width else "…" + text[-(width - 1):]


def entry_label(view: EntryView, thumbnail_size: str = "medium") -> Text:
    label = Text()
    label.append(view.title, style="bold")
    if view.subtitle:
        label.append(f"  {view.subtitle}", style="dim")

    if view.thumbnail:
        width = THUMBNAIL_WIDTHS.get(thumbnail_size, THUMBNAIL_WIDTHS["medium"])
        label.append(f"\n[image] {_shorten(view.thumbnail, width)}", style="dim blue")

    if view.preview:
        label.append(f"\n{view.preview}", style="italic")

    if view.tags:
        label.append("\n")
        label.append(" ".join(f"#{tag}" for tag in view.tags), style="magenta")

    for prop in view.properties:
        label.append("\n")
        for segment in prop.segments:
            if isinstance(segment, RefSegment):
                label.append(segment.display, style="underline blue")
            else:
                label.append(segment.text)

    if view.footer:
        footer = view.footer.relative_date
        if view.footer.word_count is not None:
            footer += f" · {format_word_count(view.footer.word_count)}"
        label.append(f"\n{footer}", style="dim")

    return label


def _add_node(
    parent: Tree,
    node: RenderNode,
    tree: RenderTree,
    numbers: dict[int, int] | None,
) -> None:
    # Unkeyed native buckets have no header of their own
    if node.key is None:
        branch = parent
    else:
        number = numbers.get(id(node)) if numbers else None
        branch = parent.add(group_label(node, tree.options.show_group_counts, number))

    for child in node.children:
        _add_node(branch, child, tree, numbers)
    for view in node.entries:
        branch.add(entry_label(view, tree.options.thumbnail_size))


def build_tree(tree: RenderTree, title: str = "Entries", numbered: bool = False) -> RenderableType:
    """Build a rich renderable for the forest.

    With `numbered`, group headers carry the numbers used by
    `numbered_groups`.
    """
    if tree.is_empty:
        return Text(EMPTY_MESSAGE, style="dim")

    numbers = None
    if numbered:
        numbers = {id(node): i for i, node in enumerate(numbered_groups(tree), start=1)}

    root = Tree(Text(title, style="bold"), guide_style="dim")
    for node in tree.nodes:
        _add_node(root, node, tree, numbers)
    return Group(root)


def numbered_groups(tree: RenderTree) -> list[RenderNode]:
    """Visible group nodes in display order; position + 1 is the group's number."""
    return list(iter_render_nodes(tree.nodes))


def entry_to_dict(view: EntryView) -> dict[str, Any]:
    d: dict[str, Any] = {"path": view.path, "title": view.title}
    if view.subtitle is not None:
        d["subtitle"] = view.subtitle
    if view.preview is not None:
        d["preview"] = view.preview
    if view.thumbnail is not None:
        d["thumbnail"] = view.thumbnail
    if view.tags:
        d["tags"] = list(view.tags)
    if view.properties:
        d["properties"] = {prop.property_id: prop.text for prop in view.properties}
    if view.footer is not None:
        d["modified"] = view.footer.relative_date
        if view.footer.word_count is not None:
            d["word_count"] = view.footer.word_count
    return d


def node_to_dict(node: RenderNode) -> dict[str, Any]:
    return {
        "title": node.title,
        "role": node.role,
        "key": node.key.to_string() if node.key is not None else None,
        "count": node.count,
        "collapsed": node.collapsed,
        "children": [node_to_dict(child) for child in node.children],
        "entries": [entry_to_dict(view) for view in node.entries],
    }


def tree_to_dict(tree: RenderTree) -> dict[str, Any]:
    """JSON-ready form of the forest."""
    return {
        "total_entries": tree.total_entries,
        "groups": [node_to_dict(node) for node in tree.nodes],
    }
