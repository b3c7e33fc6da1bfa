"""Entry grouping: plugin grouping levels nested inside native groups."""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, Sequence

from .collapse import composite_key
from .models import LEVELS, Entry, GroupNode, NativeGroup
from .resolver import group_key

KeyFunc = Callable[[Entry, str], str]


def group_by(
    entries: Iterable[Entry],
    property_id: str,
    key_func: KeyFunc = group_key,
) -> dict[str, list[Entry]]:
    """Bucket entries by resolved property value.

    Keys keep first-seen order; entries keep input order within a bucket.
    """
    groups: dict[str, list[Entry]] = {}
    for entry in entries:
        groups.setdefault(key_func(entry, property_id), []).append(entry)
    return groups


def level_offset(native_groups: Sequence[NativeGroup]) -> int:
    """1 when the host grouping is active (any native group has a key)."""
    return 1 if any(group.has_key() for group in native_groups) else 0


def effective_groupings(
    primary: str | None, secondary: str | None
) -> tuple[str | None, str | None]:
    """A secondary grouping without a primary one acts as the primary."""
    if not primary and secondary:
        return secondary, None
    return primary or None, secondary or None


def native_key_text(group: NativeGroup) -> str | None:
    return str(group.key) if group.has_key() else None


def build_groups(
    native_groups: Sequence[NativeGroup],
    primary: str | None = None,
    secondary: str | None = None,
    key_func: KeyFunc = group_key,
) -> list[GroupNode]:
    """Build one grouping tree per native group.

    Native grouping is always the outermost level. Plugin groupings nest
    inside each native bucket, and their roles shift down one level when
    the host grouping is active.
    """
    offset = level_offset(native_groups)
    first_prop, second_prop = effective_groupings(primary, secondary)
    first_role = LEVELS[offset]
    second_role = LEVELS[offset + 1]

    roots = []
    for native in native_groups:
        native_key = native_key_text(native)
        root = GroupNode(
            key=native_key,
            role="primary",
            path=composite_key(native_key, role="primary") if native_key is not None else None,
            entries=list(native.entries),
        )

        if first_prop:
            for key, members in group_by(native.entries, first_prop, key_func).items():
                node = GroupNode(
                    key=key,
                    role=first_role,
                    path=composite_key(native_key, key, role=first_role),
                    entries=members,
                )
                if second_prop:
                    for sub_key, sub_members in group_by(members, second_prop, key_func).items():
                        node.children.append(
                            GroupNode(
                                key=sub_key,
                                role=second_role,
                                path=composite_key(native_key, key, sub_key, role=second_role),
                                entries=sub_members,
                            )
                        )
                root.children.append(node)

        roots.append(root)

    return roots


def iter_group_nodes(roots: Sequence[GroupNode]) -> Iterator[GroupNode]:
    """Every keyed node of the grouping trees, depth first."""
    for node in roots:
        if node.path is not None:
            yield node
        yield from iter_group_nodes(node.children)


def find_groups(roots: Sequence[GroupNode], name: str) -> list[GroupNode]:
    """Nodes whose composite key reads as `name`, hidden ones included.

    The string form is ambiguous when a value contains a separator, so
    more than one node may match.
    """
    return [node for node in iter_group_nodes(roots) if node.path.to_string() == name]
