"""Watch command - re-render the view whenever the vault changes."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.live import Live

from ..config import ViewConfig, find_config, load_view_config
from ..errors import ConfigError
from ..presentation import build_tree
from ..watcher import run_watch_loop
from .view import ViewSession

logger = logging.getLogger(__name__)


def run_watch(vault_path: Path, config: ViewConfig, *, config_path: Path | None = None) -> int:
    """
    Render the vault and keep the view current until interrupted (Ctrl+C).

    Edits to the config file are picked up too. Returns the number of
    re-renders.
    """
    console = Console()
    err = Console(stderr=True)
    session = ViewSession(vault_path, config)
    config_path = config_path or find_config(vault_path)
    renders = 0

    # Watchdog reports absolute paths under the watched vault
    if config_path is not None:
        config_path = config_path.resolve()
        if not config_path.is_relative_to(vault_path.resolve()):
            logger.warning(f"Config {config_path} is outside the vault; edits to it will not be picked up")

    err.print(f"[bold]Watching[/bold] {vault_path}")
    err.print("[dim]Press Ctrl+C to stop watching[/dim]")

    with Live(build_tree(session.render(), title=vault_path.name), console=console, auto_refresh=False) as live:

        def on_change(paths: set[Path]) -> None:
            nonlocal renders
            if config_path is not None and config_path in {path.resolve() for path in paths}:
                try:
                    session.config = load_view_config(config_path)
                except ConfigError as e:
                    err.print(f"[yellow]Keeping previous config: {e}[/yellow]")
            session.reload()
            renders += 1
            stamp = datetime.now().strftime("%H:%M:%S")
            live.update(build_tree(session.render(), title=f"{vault_path.name} ({stamp})"), refresh=True)

        run_watch_loop(vault_path=vault_path, on_change=on_change)

    err.print(f"[bold]Stopped.[/bold] Re-rendered {renders} times.")
    session.close()
    return renders
