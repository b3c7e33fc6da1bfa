"""Data models shared by the grouping engine and its hosts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Mapping, Protocol, Sequence

from .errors import PropertyError

if TYPE_CHECKING:
    from .collapse import CompositeKey

# Nesting role of a group, outermost first
Role = Literal["primary", "secondary", "tertiary"]

LEVELS: tuple[Role, ...] = ("primary", "secondary", "tertiary")

# Namespaces the resolver and option filters recognize
NAMESPACES = ("note", "file", "formula")

# Group key used when a property has no usable value
NONE_KEY = "None"

FOLDER_PROPERTY = "file.folder"
NAME_PROPERTY = "file.name"


def parse_property_id(property_id: str) -> tuple[str, str]:
    """Split `namespace.name` into its parts.

    Raises:
        PropertyError: if the id has no namespace or no name
    """
    namespace, sep, name = property_id.partition(".")
    if not sep or not namespace or not name:
        raise PropertyError(f"Malformed property id: {property_id!r}")
    return namespace, name


def is_selectable_property(property_id: str) -> bool:
    """Whether a property id can be chosen for grouping, preview or subtitle."""
    try:
        namespace, _ = parse_property_id(property_id)
    except PropertyError:
        return False
    return namespace in NAMESPACES


class Entry(Protocol):
    """One document supplied by the host. Read-only to enlist."""

    @property
    def path(self) -> str: ...

    @property
    def basename(self) -> str: ...

    @property
    def folder(self) -> str | None: ...

    @property
    def mtime(self) -> float: ...  # milliseconds since epoch

    @property
    def frontmatter(self) -> Mapping[str, Any]: ...

    @property
    def embeds(self) -> Sequence[str]: ...

    @property
    def tags(self) -> Sequence[str]: ...

    def get_value(self, property_id: str) -> Any: ...


@dataclass
class NativeGroup:
    """A bucket produced by the host's own grouping."""

    key: Any = None
    entries: list[Entry] = field(default_factory=list)

    def has_key(self) -> bool:
        return self.key is not None


@dataclass
class GroupNode:
    """One node of the grouping tree.

    `key` is None for an unkeyed native bucket. Children partition
    `entries`; leaves together hold every input entry exactly once.
    """

    key: str | None
    role: Role
    path: CompositeKey | None
    entries: list[Entry] = field(default_factory=list)
    children: list[GroupNode] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def leaves(self) -> list[GroupNode]:
        if self.is_leaf:
            return [self]
        result = []
        for child in self.children:
            result.extend(child.leaves())
        return result
