import logging

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from foldermirror.server.classifier import ChangeKind, RawChange

logger = logging.getLogger(__name__)

# Access notifications, not changes to the tree.
IGNORED_EVENT_TYPES = {"opened", "closed", "closed_no_write"}


class ServerWatcher(FileSystemEventHandler):
    def __init__(self, path, dispatcher):
        self.path = path
        self.dispatcher = dispatcher
        self.observer = None

    def on_created(self, event):
        self.dispatcher.dispatch(RawChange(ChangeKind.CREATED, event.src_path))

    def on_deleted(self, event):
        self.dispatcher.dispatch(RawChange(ChangeKind.DELETED, event.src_path))

    def on_modified(self, event):
        self.dispatcher.dispatch(RawChange(ChangeKind.MODIFIED, event.src_path))

    def on_moved(self, event):
        self.dispatcher.dispatch(RawChange(ChangeKind.RENAMED, event.dest_path, old_path=event.src_path))

    def dispatch(self, event):
        if event.event_type in IGNORED_EVENT_TYPES:
            return
        if event.event_type not in ("created", "deleted", "modified", "moved"):
            # Passed through so the classifier reports the unknown kind.
            self.dispatcher.dispatch(RawChange(event.event_type, event.src_path))
            return
        super().dispatch(event)

    def start(self):
        self.observer = Observer()
        self.observer.schedule(self, self.path, recursive=True)
        self.observer.start()
        logger.info(f"Watching {self.path}")

    def stop(self):
        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join()
        self.observer = None
