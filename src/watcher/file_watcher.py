from pathlib import Path
from typing import Callable, Optional, Union

from watchdog.observers import Observer
from watchdog.events import (
    PatternMatchingEventHandler,
    FileSystemEvent,
    FileSystemMovedEvent,
)

SCRIPT_PATTERNS = ["*.ts", "*.tsx", "*.js", "*.jsx", "*.vue"]
IGNORE_PATTERNS = ["*.d.ts", "*/node_modules/*", "*/dist/*", "*/.git/*"]


class ScriptFileEventHandler(PatternMatchingEventHandler):
    """
    Reacts only to events for script and Vue files and forwards them to a
    unified callback.
    """

    def __init__(self, callback: Callable[[str, Path, Optional[Path]], None]):
        super().__init__(
            patterns=SCRIPT_PATTERNS,
            ignore_patterns=IGNORE_PATTERNS,
            ignore_directories=True,
        )
        self.callback = callback

    def on_created(self, event: FileSystemEvent):
        if not event.is_directory:
            self.callback("created", Path(event.src_path), None)

    def on_modified(self, event: FileSystemEvent):
        if not event.is_directory:
            self.callback("modified", Path(event.src_path), None)

    def on_deleted(self, event: FileSystemEvent):
        if not event.is_directory:
            self.callback("deleted", Path(event.src_path), None)

    def on_moved(self, event: FileSystemMovedEvent):
        if not event.is_directory:
            self.callback("moved", Path(event.src_path), Path(event.dest_path))


class FileWatcherService:
    def __init__(
        self,
        path_to_watch: Union[str, Path],
        on_event_callback: Callable[[str, Path, Optional[Path]], None],
    ):
        """
        Args:
            path_to_watch: Directory to monitor recursively.
            on_event_callback: Called as (event_type, src_path, dest_path); dest_path
                               is only set for "moved" events.
        """
        self.watch_path = Path(path_to_watch).resolve()
        if not self.watch_path.is_dir():
            raise ValueError(
                f"Path to watch must be a valid directory: {self.watch_path}"
            )

        self.callback = on_event_callback
        self.event_handler = ScriptFileEventHandler(self.callback)
        self.observer = Observer()

    def start(self) -> None:
        """Starts the file system observer in a separate thread."""
        if self.observer.is_alive():
            print("FileWatcherService: Observer is already running.")
            return

        try:
            self.observer.schedule(
                self.event_handler, str(self.watch_path), recursive=True
            )
            self.observer.start()
            print(
                f"FileWatcherService: Started watching directory '{self.watch_path}' for script changes."
            )
        except OSError as e:
            print(f"FileWatcherService: Error starting observer: {e}")
            self.observer = Observer()

    def stop(self) -> None:
        """Stops the observer thread; a fresh observer is created so start() can be called again."""
        if self.observer.is_alive():
            self.observer.stop()
            self.observer.join()
            print("FileWatcherService: Stopped watching.")
        else:
            print("FileWatcherService: Observer is not running.")

        # watchdog observers cannot be restarted after join().
        self.observer = Observer()
