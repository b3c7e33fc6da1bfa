"""Pytest configuration and fixtures."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import pytest

from enlist.errors import PropertyError
from enlist.vault.loader import Vault, load_vault

NOW_MS = 1_700_000_000_000


@dataclass
class FakeEntry:
    """Minimal in-memory entry for engine tests."""

    path: str
    basename: str
    folder: str | None = None
    mtime: float = NOW_MS
    frontmatter: dict[str, Any] = field(default_factory=dict)
    embeds: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    values: dict[str, Any] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)

    def get_value(self, property_id: str) -> Any:
        if property_id in self.failing:
            raise PropertyError(f"Unsupported property: {property_id}")
        return self.values.get(property_id)


@pytest.fixture
def make_entry() -> Callable[..., FakeEntry]:
    """Factory for FakeEntry objects; `note.*` values come from frontmatter."""

    def factory(name: str, folder: str | None = None, **kwargs: Any) -> FakeEntry:
        frontmatter = kwargs.pop("frontmatter", {})
        values = {f"note.{k}": v for k, v in frontmatter.items()}
        values.update(kwargs.pop("values", {}))
        path = f"{folder}/{name}.md" if folder else f"{name}.md"
        return FakeEntry(
            path=path,
            basename=name,
            folder=folder,
            frontmatter=frontmatter,
            values=values,
            **kwargs,
        )

    return factory


def write_note(path: Path, frontmatter: list[str] | None = None, body: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = []
    if frontmatter is not None:
        lines = ["---", *frontmatter, "---", ""]
    lines.append(body)
    path.write_text("\n".join(lines), encoding="utf-8")
    return path


@pytest.fixture
def vault_path(tmp_path: Path) -> Path:
    """A small vault with projects, tasks, an image and a hidden folder."""
    vault = tmp_path / "vault"

    write_note(
        vault / "tasks" / "alpha.md",
        ["status: done", "priority: high", "tags: [a, b]", "description: First task", "word_count: 1234"],
        "# Alpha\n\nSome text with #b and #extra.\n\n![[cover.png]]\n",
    )
    write_note(
        vault / "tasks" / "beta.md",
        ["status: done", "priority: low", "owner: '[[Alice|Al]]'"],
        "Beta body links [[alpha]].\n",
    )
    write_note(
        vault / "tasks" / "gamma.md",
        ["status: todo", "priority: high"],
        "Gamma body.\n",
    )
    write_note(vault / "inbox.md", None, "Loose note without frontmatter.\n")
    write_note(vault / ".obsidian" / "hidden.md", ["status: done"], "Hidden.\n")

    (vault / "assets").mkdir(parents=True)
    (vault / "assets" / "cover.png").write_bytes(b"\x89PNG\r\n")

    return vault


@pytest.fixture
def vault(vault_path: Path) -> Vault:
    return load_vault(vault_path)
