"""Collapse state for grouped views.

Collapsed groups are remembered by their composite key: the chain of group
keys leading to the node plus the node's nesting role. Primary nodes and
nested nodes are tracked in separate sets.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import Role

NATIVE_SEPARATOR = "::"
PLUGIN_SEPARATOR = ":"


@dataclass(frozen=True)
class CompositeKey:
    """Position of a group node in the grouping tree.

    Equality is structural, so group keys containing ':' never collide.
    """

    segments: tuple[str, ...]
    role: Role
    native: bool = False  # first segment is a native (host) group key

    def to_string(self) -> str:
        """Legacy string form: `native::a::b` or `a:b`.

        Different keys can share a string form when group keys contain the
        separators; the string is only used for display and lookup by name.
        """
        sep = NATIVE_SEPARATOR if self.native else PLUGIN_SEPARATOR
        return sep.join(self.segments)

    @property
    def is_top(self) -> bool:
        return self.role == "primary"

    def __str__(self) -> str:
        return self.to_string()


def composite_key(native_key: str | None, *levels: str, role: Role) -> CompositeKey:
    """Build the key for a node below an optional native group.

    `native_key` is None (or empty) when the node is not inside a keyed
    native group.
    """
    if native_key:
        return CompositeKey((native_key, *levels), role, native=True)
    return CompositeKey(tuple(levels), role)


@dataclass(frozen=True)
class CollapseState:
    """Immutable pair of collapsed-key sets."""

    top: frozenset[CompositeKey] = field(default_factory=frozenset)
    nested: frozenset[CompositeKey] = field(default_factory=frozenset)

    def is_collapsed(self, key: CompositeKey) -> bool:
        keys = self.top if key.is_top else self.nested
        return key in keys

    def toggle(self, key: CompositeKey) -> CollapseState:
        """Return a new state with `key` flipped."""
        if key.is_top:
            return CollapseState(top=self.top ^ {key}, nested=self.nested)
        return CollapseState(top=self.top, nested=self.nested ^ {key})

    def __len__(self) -> int:
        return len(self.top) + len(self.nested)


class CollapseStateStore:
    """Holds the collapse state for one view session.

    Starts empty and changes only through `toggle`. Owned by the thread
    that renders the view.
    """

    def __init__(self, state: CollapseState | None = None):
        self.state = state if state is not None else CollapseState()

    def is_collapsed(self, key: CompositeKey) -> bool:
        return self.state.is_collapsed(key)

    def toggle(self, key: CompositeKey) -> bool:
        """Flip `key` and return whether it is now collapsed."""
        self.state = self.state.toggle(key)
        return self.state.is_collapsed(key)

    def clear(self) -> None:
        self.state = CollapseState()
