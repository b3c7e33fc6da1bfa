"""View commands - render, list keys, and browse a grouped vault."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

from rich.console import Console
from rich.markup import escape

from ..collapse import CollapseStateStore
from ..config import ViewConfig
from ..grouping import build_groups, find_groups, iter_group_nodes
from ..models import NativeGroup
from ..presentation import build_tree, numbered_groups, tree_to_dict
from ..render import RenderTree, render
from ..vault.loader import Vault, load_vault, native_groups


class ViewSession:
    """A vault, its view config, and the collapse state of one session."""

    def __init__(self, vault_path: Path, config: ViewConfig, store: CollapseStateStore | None = None):
        self.vault_path = vault_path
        self.config = config
        self.store = store or CollapseStateStore()
        self.vault: Vault | None = None
        self.groups: list[NativeGroup] = []

    def reload(self) -> None:
        """Re-read the vault; collapse state is kept."""
        self.vault = load_vault(self.vault_path)
        self.groups = native_groups(self.vault.entries, self.config.group_by)

    def render(self) -> RenderTree:
        if self.vault is None:
            self.reload()
        return render(
            self.groups,
            self.config.options,
            self.store.state,
            resolve_link=self.vault.resolve_link,
        )

    def collapse_by_name(self, names: list[str]) -> list[str]:
        """Collapse groups whose composite key reads as one of `names`.

        Returns the names that matched no group.
        """
        if self.vault is None:
            self.reload()
        roots = build_groups(self.groups, self.config.options.primary_group, self.config.options.sub_group)

        unknown = []
        for name in names:
            matches = [node.path for node in find_groups(roots, name)]
            if not matches:
                unknown.append(name)
            for key in matches:
                if not self.store.is_collapsed(key):
                    self.store.toggle(key)
        return unknown

    def close(self) -> None:
        self.store.clear()


def run_view(
    vault_path: Path,
    config: ViewConfig,
    *,
    collapse: list[str] | None = None,
    output_json: bool = False,
) -> int:
    """Render the vault once. Returns the number of entries."""
    console = Console()
    err = Console(stderr=True)

    session = ViewSession(vault_path, config)
    for name in session.collapse_by_name(collapse or []):
        err.print(f"[yellow]No group with key: {escape(name)}[/yellow]", highlight=False)

    tree = session.render()
    if output_json:
        console.print_json(json.dumps(tree_to_dict(tree)))
    else:
        console.print(build_tree(tree, title=vault_path.name))
    return tree.total_entries


def run_keys(vault_path: Path, config: ViewConfig) -> int:
    """List the composite keys of every group. Returns the number of groups."""
    console = Console()

    session = ViewSession(vault_path, config)
    session.reload()
    roots = build_groups(session.groups, config.options.primary_group, config.options.sub_group)

    count = 0
    for node in iter_group_nodes(roots):
        count += 1
        console.print(f"{escape(node.path.to_string())}\t[dim]{node.role}\t{len(node.entries)}[/dim]", highlight=False)
    if not count:
        console.print("[dim]No groups.[/dim]")
    return count


def run_browse(
    vault_path: Path,
    config: ViewConfig,
    prompt: Callable[[str], str],
) -> int:
    """
    Interactive loop: enter a group number to collapse or expand it.

    Every toggle re-renders the whole forest. Returns the number of toggles.
    """
    console = Console()
    session = ViewSession(vault_path, config)
    toggles = 0

    try:
        while True:
            tree = session.render()
            console.print(build_tree(tree, title=vault_path.name, numbered=True))
            groups = numbered_groups(tree)
            if not groups:
                return toggles

            answer = prompt("Group number to toggle (r to reload, q to quit)").strip().lower()
            if answer in ("q", "quit", ""):
                return toggles
            if answer == "r":
                session.reload()
                continue
            if not answer.isdigit() or not 1 <= int(answer) <= len(groups):
                console.print(f"[yellow]Enter a number between 1 and {len(groups)}[/yellow]")
                continue

            node = groups[int(answer) - 1]
            session.store.toggle(node.key)
            toggles += 1
    finally:
        session.close()
