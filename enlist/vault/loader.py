"""Vault loading: markdown notes exposed as entries."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import frontmatter

from ..errors import PropertyError
from ..models import NativeGroup, parse_property_id
from ..text import merge_tags
from .parser import extract_embeds, extract_inline_tags, extract_links

logger = logging.getLogger(__name__)


class Value:
    """A property value with its own display form.

    Lists are comma separated, dates use ISO format, and a missing value
    displays as an empty string.
    """

    def __init__(self, raw: Any):
        self.raw = raw

    def __str__(self) -> str:
        return _format_value(self.raw)

    def __repr__(self) -> str:
        return f"Value({self.raw!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Value):
            return self.raw == other.raw
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))


def _format_value(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, (list, tuple)):
        return ", ".join(_format_value(v) for v in raw)
    if isinstance(raw, (dt.date, dt.datetime)):
        return raw.isoformat()
    return str(raw)


@dataclass
class VaultEntry:
    """A markdown note in a vault."""

    file: Path  # absolute path
    root: Path  # vault root
    content: str  # body after frontmatter
    frontmatter: dict[str, Any]
    mtime: float  # milliseconds since epoch
    ctime: float
    size: int
    embeds: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)  # inline tags, with '#'
    links: list[str] = field(default_factory=list)

    @property
    def path(self) -> str:
        return self.file.relative_to(self.root).as_posix()

    @property
    def basename(self) -> str:
        return self.file.stem

    @property
    def folder(self) -> str | None:
        """Parent folder name; None at the vault root."""
        parent = self.file.parent
        return parent.name if parent != self.root else None

    @property
    def folder_path(self) -> str:
        rel = self.file.parent.relative_to(self.root).as_posix()
        return "" if rel == "." else rel

    def all_tags(self) -> list[str]:
        return merge_tags(self.frontmatter.get("tags"), self.tags)

    def get_value(self, property_id: str) -> Value | None:
        """Look up a property.

        Raises:
            PropertyError: for malformed ids and for formula properties,
                which this host does not evaluate
        """
        namespace, name = parse_property_id(property_id)

        if namespace == "note":
            if name not in self.frontmatter:
                return None
            return Value(self.frontmatter[name])

        if namespace == "file":
            return self._file_value(name)

        if namespace == "formula":
            raise PropertyError(f"Formulas are not evaluated: {property_id}")

        raise PropertyError(f"Unknown property namespace: {property_id}")

    def _file_value(self, name: str) -> Value | None:
        if name in ("name", "basename"):
            return Value(self.basename)
        if name == "path":
            return Value(self.path)
        if name == "folder":
            return Value(self.folder_path)
        if name == "ext":
            return Value(self.file.suffix.lstrip("."))
        if name == "size":
            return Value(self.size)
        if name == "mtime":
            return Value(_from_millis(self.mtime))
        if name == "ctime":
            return Value(_from_millis(self.ctime))
        if name == "tags":
            return Value(self.all_tags())
        if name == "links":
            return Value(self.links)
        return None


def _from_millis(millis: float) -> dt.datetime:
    return dt.datetime.fromtimestamp(millis / 1000).replace(microsecond=0)


@dataclass
class Vault:
    """Container for a loaded vault."""

    path: Path
    entries: list[VaultEntry] = field(default_factory=list)

    # Lookup tables for link resolution, over every file in the vault
    _by_path: dict[str, Path] = field(default_factory=dict)  # lowercase relative path -> file
    _by_name: dict[str, Path] = field(default_factory=dict)  # lowercase filename -> file

    def index_file(self, file: Path) -> None:
        rel = file.relative_to(self.path).as_posix().lower()
        self._by_path.setdefault(rel, file)
        self._by_name.setdefault(file.name.lower(), file)
        if file.suffix.lower() == ".md":
            self._by_path.setdefault(rel[: -len(".md")], file)
            self._by_name.setdefault(file.stem.lower(), file)

    def resolve_link(self, link: str, source_path: str) -> str | None:
        """Resolve a link target to a file path, as seen from `source_path`.

        Tries the source's folder, then the vault root, then a bare
        filename match anywhere in the vault.
        """
        target = link.split("|", 1)[0].split("#", 1)[0].strip()
        if not target:
            return None

        source_dir = (self.path / source_path).parent
        candidate = (source_dir / target).resolve()
        if candidate.is_file() and candidate.is_relative_to(self.path.resolve()):
            return candidate.as_posix()

        normalized = target.lstrip("/").lower()
        found = self._by_path.get(normalized) or self._by_name.get(normalized.rsplit("/", 1)[-1])
        return found.as_posix() if found else None

    def get(self, path: str) -> VaultEntry | None:
        for entry in self.entries:
            if entry.path == path:
                return entry
        return None


def _is_hidden(path: Path, root: Path) -> bool:
    return any(part.startswith(".") for part in path.relative_to(root).parts)


def load_entry(path: Path, vault_path: Path) -> VaultEntry:
    """Load a single markdown file and parse its frontmatter."""
    post = frontmatter.load(path)
    stat = path.stat()
    content = post.content

    return VaultEntry(
        file=path,
        root=vault_path,
        content=content,
        frontmatter=dict(post.metadata),
        mtime=stat.st_mtime * 1000,
        ctime=stat.st_ctime * 1000,
        size=stat.st_size,
        embeds=extract_embeds(content),
        tags=extract_inline_tags(content),
        links=extract_links(content),
    )


def load_vault(vault_path: Path) -> Vault:
    """Load all markdown files from the vault.

    Args:
        vault_path: Path to the vault directory

    Returns:
        Vault with entries in path order
    """
    vault = Vault(path=vault_path)

    for file in sorted(vault_path.rglob("*")):
        # Skip hidden files and directories
        if not file.is_file() or _is_hidden(file, vault_path):
            continue

        vault.index_file(file)
        if file.suffix.lower() != ".md":
            continue

        try:
            vault.entries.append(load_entry(file, vault_path))
        except Exception as e:
            # Log error but continue loading
            logger.warning(f"Failed to load {file}: {e}")

    return vault


def native_groups(entries: list[VaultEntry], property_id: str | None = None) -> list[NativeGroup]:
    """Partition entries the way the host does before enlist sees them.

    Without a property every entry lands in a single unkeyed group.
    Entries whose value is missing share an unkeyed group.
    """
    if not property_id:
        return [NativeGroup(key=None, entries=list(entries))]

    groups: dict[str | None, NativeGroup] = {}
    for entry in entries:
        try:
            value = entry.get_value(property_id)
        except PropertyError as e:
            logger.warning(f"Cannot group {entry.path} by {property_id}: {e}")
            value = None
        key = str(value) if value is not None and str(value) else None
        groups.setdefault(key, NativeGroup(key=key)).entries.append(entry)

    return list(groups.values())
