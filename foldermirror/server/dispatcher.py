import logging
import threading

from foldermirror.server.classifier import ChangeClassifier
from foldermirror.server.tree_reader import read_folder
from foldermirror.shared.protocol import edit_message, tree_message
from foldermirror.shared.tree import apply_edit

logger = logging.getLogger(__name__)


class SyncDispatcher:
    """Fans classified edits out to every joined session.

    Sessions only need a ``send(message)`` method that does not block on the
    peer and raises ``OSError`` once the peer is gone. Joining and dispatching share one lock, so a new
    session's snapshot is never interleaved with an edit it would miss.
    The snapshot is the tree every earlier edit has been applied to, the
    same state existing sessions hold after replaying those edits.
    """

    def __init__(self, base_path, classifier=None):
        self.base_path = base_path
        self.classifier = classifier if classifier is not None else ChangeClassifier(base_path)
        self.sessions = []
        self.lock = threading.Lock()
        self.tree = read_folder(base_path, base_path)

    def join(self, session):
        with self.lock:
            session.send(tree_message(self.tree))
            self.sessions.append(session)
        logger.info(f"Session joined: {session} ({len(self.sessions)} active)")

    def leave(self, session):
        with self.lock:
            if session in self.sessions:
                self.sessions.remove(session)
        logger.info(f"Session left: {session}")

    def dispatch(self, change):
        """Classify one raw change and broadcast its edits; never raises."""
        try:
            with self.lock:
                for edit in self.classifier.classify(change):
                    self.tree = apply_edit(self.tree, edit)
                    self._broadcast(edit)
        except Exception:
            logger.exception(f"Failed to handle {change}")

    def _broadcast(self, edit):
        message = edit_message(edit)
        logger.debug(f"Broadcasting {message} to {len(self.sessions)} session(s)")
        for session in list(self.sessions):
            try:
                session.send(message)
            except OSError as e:
                logger.warning(f"Dropping session {session}: {e}")
                self.sessions.remove(session)
