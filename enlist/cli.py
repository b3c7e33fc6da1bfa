"""CLI entrypoint for enlist."""

from __future__ import annotations

import logging
from functools import wraps
from pathlib import Path
from typing import Any, Callable

import click

from . import __version__
from .config import ViewConfig, find_config, load_view_config
from .errors import ConfigError
from .models import is_selectable_property


def _configure_logging(verbose: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


def _property_id(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
    """Validate one property id or a tuple of them."""
    values = value if isinstance(value, tuple) else (value,)
    for item in values:
        if item is not None and not is_selectable_property(item):
            raise click.BadParameter(
                f"'{item}' is not a property id (expected note.*, file.* or formula.*)"
            )
    return value


@click.group()
@click.version_option(__version__, prog_name="enlist")
@click.option(
    "--vault",
    "-v",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to vault directory (defaults to the current directory)",
)
@click.option("--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, vault: Path | None, verbose: bool) -> None:
    """enlist - grouped, collapsible list views over a markdown vault.

    Group notes by frontmatter or file properties, nest up to two levels
    inside the vault's own grouping, and collapse groups as you browse.
    """
    ctx.ensure_object(dict)
    _configure_logging(verbose)

    vault = vault or Path.cwd()
    if not vault.exists() or not vault.is_dir():
        raise click.BadParameter(f"Directory '{vault}' does not exist.", param_hint="--vault / -v")

    ctx.obj["vault"] = vault.resolve()


def view_options(f: Callable) -> Callable:
    """Options shared by every command that renders a view."""

    @click.option(
        "--config",
        "config_path",
        type=click.Path(exists=False, dir_okay=False, path_type=Path),
        default=None,
        help="View config TOML (default: <vault>/.enlist.toml if present)",
    )
    @click.option("--group-by", callback=_property_id, default=None, metavar="PROPERTY",
                  help="Native grouping, applied outside plugin groups (e.g. file.folder)")
    @click.option("--primary", "primary_group", callback=_property_id, default=None, metavar="PROPERTY",
                  help="First plugin grouping (e.g. note.status)")
    @click.option("--secondary", "sub_group", callback=_property_id, default=None, metavar="PROPERTY",
                  help="Second plugin grouping, nested in the first")
    @click.option("--preview-lines", type=click.IntRange(0, 5), default=None,
                  help="Preview lines per entry (0 hides previews)")
    @click.option("--preview-property", callback=_property_id, default=None, metavar="PROPERTY",
                  help="Preview source (default: description/summary/excerpt/abstract)")
    @click.option("--subtitle/--no-subtitle", "show_subtitle", default=None, help="Show subtitles")
    @click.option("--subtitle-property", callback=_property_id, default=None, metavar="PROPERTY",
                  help="Subtitle source (default: file.folder)")
    @click.option("--thumbnails/--no-thumbnails", "show_thumbnails", default=None, help="Show thumbnails")
    @click.option("--thumbnail-size", type=click.Choice(["small", "medium", "large"]), default=None)
    @click.option("--tags/--no-tags", "show_tags", default=None, help="Show tags")
    @click.option("--metadata/--no-metadata", "show_metadata", default=None,
                  help="Show modified date and word count")
    @click.option("--counts/--no-counts", "show_group_counts", default=None, help="Show group counts")
    @click.option("--property", "order", multiple=True, callback=_property_id, metavar="PROPERTY",
                  help="Property to show under each entry (repeatable, in order)")
    @wraps(f)
    def wrapper(*args: Any, config_path: Path | None, **kwargs: Any) -> Any:
        ctx = click.get_current_context()
        vault: Path = ctx.obj["vault"]

        overrides = {name: kwargs.pop(name) for name in list(kwargs) if name in _OVERRIDE_NAMES}
        if not overrides.get("order"):
            overrides["order"] = None

        config_path = config_path or find_config(vault)
        try:
            config = load_view_config(config_path) if config_path else ViewConfig()
        except ConfigError as e:
            raise click.ClickException(str(e)) from e

        kwargs["config"] = config.with_overrides(**overrides)
        kwargs["config_path"] = config_path
        return f(*args, **kwargs)

    return wrapper


_OVERRIDE_NAMES = {
    "group_by",
    "primary_group",
    "sub_group",
    "preview_lines",
    "preview_property",
    "show_subtitle",
    "subtitle_property",
    "show_thumbnails",
    "thumbnail_size",
    "show_tags",
    "show_metadata",
    "show_group_counts",
    "order",
}


@cli.command()
@view_options
@click.option(
    "--collapse",
    multiple=True,
    metavar="KEY",
    help="Start with this group collapsed (repeatable; see `enlist keys`)",
)
@click.option("--json", "output_json", is_flag=True, help="Output the render forest as JSON")
@click.pass_context
def view(
    ctx: click.Context,
    config: ViewConfig,
    config_path: Path | None,
    collapse: tuple[str, ...],
    output_json: bool,
) -> None:
    """Render the vault as a grouped list.

    Examples:

        enlist view --primary note.status

        enlist view --group-by file.folder --primary note.status --secondary note.priority

        enlist view --primary note.status --collapse done
    """
    from .commands.view import run_view

    run_view(ctx.obj["vault"], config, collapse=list(collapse), output_json=output_json)


@cli.command()
@view_options
@click.pass_context
def keys(ctx: click.Context, config: ViewConfig, config_path: Path | None) -> None:
    """List the composite key of every group (for --collapse)."""
    from .commands.view import run_keys

    run_keys(ctx.obj["vault"], config)


@cli.command()
@view_options
@click.pass_context
def browse(ctx: click.Context, config: ViewConfig, config_path: Path | None) -> None:
    """Browse interactively, collapsing and expanding groups by number."""
    from .commands.view import run_browse

    run_browse(
        ctx.obj["vault"],
        config,
        prompt=lambda text: click.prompt(text, default="q", show_default=False),
    )


@cli.command()
@view_options
@click.pass_context
def watch(ctx: click.Context, config: ViewConfig, config_path: Path | None) -> None:
    """Render the vault and re-render on every change (Ctrl+C to stop)."""
    from .commands.watch_cmd import run_watch

    run_watch(ctx.obj["vault"], config, config_path=config_path)


if __name__ == "__main__":
    cli()
