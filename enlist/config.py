"""View configuration: render options and their TOML source."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal

from .errors import ConfigError
from .models import FOLDER_PROPERTY, is_selectable_property

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".enlist.toml"

ThumbnailSize = Literal["small", "medium", "large"]
THUMBNAIL_SIZES = ("small", "medium", "large")

MIN_PREVIEW_LINES = 0
MAX_PREVIEW_LINES = 5


@dataclass(frozen=True)
class RenderOptions:
    """Settings for one render pass. Built fresh for every render."""

    primary_group: str | None = None
    sub_group: str | None = None
    preview_lines: int = 2
    preview_property: str | None = None
    show_thumbnails: bool = True
    thumbnail_size: ThumbnailSize = "medium"
    show_tags: bool = True
    show_subtitle: bool = False
    subtitle_property: str = FOLDER_PROPERTY
    show_metadata: bool = True
    show_group_counts: bool = True
    order: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> RenderOptions:
        """Build options from loosely typed data, falling back to defaults."""
        defaults = cls()
        return cls(
            primary_group=_property(data, "primary_group"),
            sub_group=_property(data, "sub_group"),
            preview_lines=_preview_lines(data.get("preview_lines"), defaults.preview_lines),
            preview_property=_property(data, "preview_property"),
            show_thumbnails=_bool(data, "show_thumbnails", defaults.show_thumbnails),
            thumbnail_size=_thumbnail_size(data.get("thumbnail_size"), defaults.thumbnail_size),
            show_tags=_bool(data, "show_tags", defaults.show_tags),
            show_subtitle=_bool(data, "show_subtitle", defaults.show_subtitle),
            subtitle_property=_property(data, "subtitle_property") or defaults.subtitle_property,
            show_metadata=_bool(data, "show_metadata", defaults.show_metadata),
            show_group_counts=_bool(data, "show_group_counts", defaults.show_group_counts),
            order=_order(data.get("order")),
        )


def _bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key)
    return value if isinstance(value, bool) else default


def _preview_lines(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return max(MIN_PREVIEW_LINES, min(MAX_PREVIEW_LINES, value))


def _thumbnail_size(value: Any, default: ThumbnailSize) -> ThumbnailSize:
    if value in THUMBNAIL_SIZES:
        return value
    if value is not None:
        logger.warning(f"Unknown thumbnail size {value!r}, using {default!r}")
    return default


def _checked_property(value: Any, key: str) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    value = value.strip()
    if not is_selectable_property(value):
        logger.warning(f"Ignoring {key}={value!r}: expected note.*, file.* or formula.*")
        return None
    return value


def _property(data: dict[str, Any], key: str) -> str | None:
    return _checked_property(data.get(key), key)


def _order(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return ()
    result = []
    for item in value:
        checked = _checked_property(item, "order")
        if checked and checked not in result:
            result.append(checked)
    return tuple(result)


@dataclass(frozen=True)
class ViewConfig:
    """Host-side view settings: native grouping plus render options."""

    group_by: str | None = None
    options: RenderOptions = field(default_factory=RenderOptions)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> ViewConfig:
        return cls(
            group_by=_property(data, "group_by"),
            options=RenderOptions.from_mapping(data),
        )

    def with_overrides(self, **overrides: Any) -> ViewConfig:
        """Apply command-line overrides; None means "not given"."""
        group_by = overrides.pop("group_by", None)
        given = {k: v for k, v in overrides.items() if v is not None}
        if "order" in given:
            given["order"] = tuple(given["order"])
        options = replace(self.options, **given) if given else self.options
        return ViewConfig(group_by=group_by or self.group_by, options=options)


def load_view_config(path: Path) -> ViewConfig:
    """
    Load a view config from TOML.

    Settings live in a [view] table; unknown keys are ignored.
    """
    import tomllib

    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    view = data.get("view", {})
    if not isinstance(view, dict):
        raise ConfigError(f"[view] in {path} must be a table")
    return ViewConfig.from_mapping(view)


def find_config(vault_path: Path) -> Path | None:
    """The vault's own config file, if present."""
    candidate = vault_path / CONFIG_FILENAME
    return candidate if candidate.is_file() else None
