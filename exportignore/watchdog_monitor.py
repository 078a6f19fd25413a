"""
Watchdog monitor for rule files

Turns file system events for the configured rule filename into the
IgnoreManager's change notifications, so cached rule files are dropped as
soon as they are edited, created, deleted or moved.
"""

from pathlib import Path
from typing import Callable, List, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from exportignore.ignore import IgnoreManager, canonical_path
from exportignore.utils import get_logger

logger = get_logger(__name__)


class IgnoreFileHandler(FileSystemEventHandler):
    """
    Watches for changes to rule files and notifies the IgnoreManager
    """

    def __init__(self, ignore_manager: IgnoreManager,
                 on_change_callback: Optional[Callable[[str], None]] = None):
        """
        Initialize the rule file handler

        Args:
            ignore_manager: The IgnoreManager instance to notify
            on_change_callback: Optional callback when a rule file changes
        """
        super().__init__()
        self.ignore_manager = ignore_manager
        self.ignore_filename = ignore_manager.ignore_filename
        self.on_change_callback = on_change_callback

    def _is_rule_file_event(self, path: str, is_directory: bool) -> bool:
        return not is_directory and Path(path).name == self.ignore_filename

    def _changed(self, path: str):
        if self.on_change_callback:
            self.on_change_callback(path)

    def on_created(self, event: FileSystemEvent):
        """Handle creation of new rule files"""
        if self._is_rule_file_event(event.src_path, event.is_directory):
            logger.info(f"Detected new {self.ignore_filename}: {event.src_path}")
            self.ignore_manager.notify_file_created(event.src_path)
            self._changed(event.src_path)

    def on_modified(self, event: FileSystemEvent):
        """Handle modification of rule files"""
        if self._is_rule_file_event(event.src_path, event.is_directory):
            logger.info(f"Detected change to {self.ignore_filename}: {event.src_path}")
            self.ignore_manager.notify_file_changed(event.src_path)
            self._changed(event.src_path)

    def on_deleted(self, event: FileSystemEvent):
        """Handle deletion of rule files"""
        if self._is_rule_file_event(event.src_path, event.is_directory):
            logger.info(f"Detected deletion of {self.ignore_filename}: {event.src_path}")
            self.ignore_manager.notify_file_deleted(event.src_path)
            self._changed(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        """Handle moving of rule files"""
        dest_path = getattr(event, 'dest_path', None)
        if not dest_path:
            return

        src_is_rule = self._is_rule_file_event(event.src_path, event.is_directory)
        dest_is_rule = self._is_rule_file_event(dest_path, event.is_directory)
        if not (src_is_rule or dest_is_rule):
            return

        logger.info(f"Detected move of {self.ignore_filename}: {event.src_path} -> {dest_path}")
        self.ignore_manager.notify_file_moved(event.src_path, dest_path)
        if src_is_rule:
            self._changed(event.src_path)
        if dest_is_rule and dest_path != event.src_path:
            self._changed(dest_path)


class WatchdogMonitor:
    """
    Main watchdog monitor that manages file system watching
    """

    def __init__(self, ignore_manager: IgnoreManager, recursive: bool = True):
        """
        Initialize the watchdog monitor

        Args:
            ignore_manager: The IgnoreManager to integrate with
            recursive: Whether to watch subdirectories
        """
        self.ignore_manager = ignore_manager
        self.recursive = recursive

        self._observer: Optional[Observer] = None
        self._handler: Optional[IgnoreFileHandler] = None
        self._watched_paths: Set[Path] = set()

    def start(self, paths: Optional[List[str]] = None,
              on_change_callback: Optional[Callable[[str], None]] = None):
        """
        Start monitoring for changes

        Args:
            paths: List of paths to watch (defaults to IgnoreManager root)
            on_change_callback: Optional callback for changes
        """
        if self._observer is not None:
            logger.warning("Monitor already running")
            return

        if paths is None:
            paths = [str(self.ignore_manager.root_path)]

        self._handler = IgnoreFileHandler(
            self.ignore_manager,
            on_change_callback=on_change_callback
        )
        self._observer = Observer()

        for path in paths:
            # Unresolved so event paths match the cache keys
            path_obj = canonical_path(path)
            if path_obj.is_dir():
                self._observer.schedule(
                    self._handler,
                    str(path_obj),
                    recursive=self.recursive
                )
                self._watched_paths.add(path_obj)
                logger.info(f"Watching directory: {path_obj}")
            else:
                logger.warning(f"Path does not exist or is not a directory: {path}")

        self._observer.start()
        logger.info("Watchdog monitor started")

    def stop(self):
        """Stop monitoring for changes"""
        if self._observer is None:
            logger.warning("Monitor not running")
            return

        self._observer.stop()
        self._observer.join()
        self._observer = None
        self._handler = None
        self._watched_paths.clear()

        logger.info("Watchdog monitor stopped")

    def is_running(self) -> bool:
        """Check if monitor is running"""
        return self._observer is not None and self._observer.is_alive()

    def get_watched_paths(self) -> List[str]:
        """Get list of currently watched paths"""
        return [str(p) for p in self._watched_paths]

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
