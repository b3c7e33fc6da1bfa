"""
File system watcher that triggers re-renders.

This module provides:
- Watchdog-based monitoring of markdown and image files
- Debounced change notification (editor save cycles collapse to one)
"""

import logging
import time
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class VaultChangeHandler(FileSystemEventHandler):
    """
    Collects vault changes and reports them once they settle.

    Events arrive on the observer thread and are only recorded there;
    `flush_pending` runs on the caller's thread and invokes `on_change`.
    """

    RELEVANT_EXTENSIONS = {".md", ".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".toml"}
    DEBOUNCE_SECONDS = 0.5

    def __init__(
        self,
        vault_path: Path,
        on_change: Callable[[set[Path]], None] | None = None,
    ):
        """
        Initialize the event handler.

        Args:
            vault_path: Path to vault directory
            on_change: Called with the changed paths after the debounce window
        """
        super().__init__()
        self.vault_path = vault_path
        self.on_change = on_change

        # path -> time of the latest event
        self.pending: dict[Path, float] = {}

    def _is_relevant(self, path: str) -> bool:
        """Check if the file is relevant for rendering."""
        p = Path(path)
        try:
            parts = p.relative_to(self.vault_path).parts
        except ValueError:
            parts = p.parts

        # Skip hidden files and directories, except the vault config
        if p.name != ".enlist.toml" and any(part.startswith(".") for part in parts):
            return False

        return p.suffix.lower() in self.RELEVANT_EXTENSIONS

    def _record(self, path: str, timestamp: float | None = None) -> None:
        if self._is_relevant(path):
            self.pending[Path(path)] = timestamp if timestamp is not None else time.time()

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed", "closed_no_write"):
            return
        self._record(event.src_path)
        dest = getattr(event, "dest_path", "")
        if dest:
            self._record(dest)

    def flush_pending(self, now: float | None = None) -> set[Path]:
        """Report paths whose last event is older than the debounce window."""
        now = time.time() if now is None else now
        due = {path for path, ts in list(self.pending.items()) if now - ts >= self.DEBOUNCE_SECONDS}
        for path in due:
            self.pending.pop(path, None)

        if due:
            logger.debug(f"Vault changed: {sorted(str(p) for p in due)}")
            if self.on_change:
                self.on_change(due)
        return due


def watch_vault(
    vault_path: Path,
    on_change: Callable[[set[Path]], None] | None = None,
    recursive: bool = True,
) -> tuple[Observer, VaultChangeHandler]:
    """
    Start watching a vault.

    Returns:
        Tuple of (observer, handler) - caller should call observer.stop() to stop watching
    """
    handler = VaultChangeHandler(vault_path=vault_path, on_change=on_change)

    observer = Observer()
    observer.schedule(handler, str(vault_path), recursive=recursive)
    observer.start()

    return observer, handler


def run_watch_loop(
    vault_path: Path,
    on_change: Callable[[set[Path]], None],
    poll_seconds: float = 0.25,
) -> None:
    """
    Run the watch loop until interrupted.

    This is a blocking function; `on_change` always runs on this thread.
    """
    observer, handler = watch_vault(vault_path=vault_path, on_change=on_change)

    try:
        while True:
            time.sleep(poll_seconds)
            handler.flush_pending()
    except KeyboardInterrupt:
        observer.stop()

    observer.join()
