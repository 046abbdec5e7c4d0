"""Turns raw filesystem notifications into tree edits.

A raw notification only names a path; whether that path is a file or a
directory is found out by probing the filesystem once, at the moment the
notification is handled. The path may have changed again in the meantime,
in which case a missing path simply yields nothing.
"""

import enum
import logging
import os
import stat
from dataclasses import dataclass

from foldermirror.errors import UnsupportedChangeKind
from foldermirror.server.paths import to_relative
from foldermirror.server.tree_reader import read_folder
from foldermirror.shared.tree import (
    CreateDirectory,
    CreateFile,
    Delete,
    DirectoryNode,
    Rename,
    UpdateSize,
    iter_nodes,
)

logger = logging.getLogger(__name__)


class ChangeKind(enum.Enum):
    CREATED = "created"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"


@dataclass(frozen=True)
class RawChange:
    kind: ChangeKind
    path: str
    old_path: str | None = None


class PathKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"
    MISSING = "missing"


@dataclass(frozen=True)
class PathState:
    kind: PathKind
    size: int = 0


MISSING = PathState(PathKind.MISSING)


class LocalFileSystem:
    def __init__(self, base_path):
        self.base_path = base_path

    def probe(self, path):
        # Symbolic links, dangling or not, probe as OTHER, matching read_folder.
        try:
            st = os.lstat(path)
        except (FileNotFoundError, NotADirectoryError):
            return MISSING
        if stat.S_ISREG(st.st_mode):
            return PathState(PathKind.FILE, st.st_size)
        if stat.S_ISDIR(st.st_mode):
            return PathState(PathKind.DIRECTORY)
        return PathState(PathKind.OTHER)

    def read_tree(self, path):
        return read_folder(self.base_path, path)


class ChangeClassifier:
    def __init__(self, base_path, fs=None):
        self.base_path = base_path
        self.fs = fs if fs is not None else LocalFileSystem(base_path)

    def classify(self, change):
        """Return the list of edits ``change`` stands for, possibly empty."""
        if not isinstance(change.kind, ChangeKind):
            raise UnsupportedChangeKind(change.kind)

        rel = to_relative(self.base_path, change.path)
        if change.kind is ChangeKind.RENAMED:
            old_rel = to_relative(self.base_path, change.old_path) if change.old_path else None
            return self._renamed(old_rel, rel)
        if rel is None:
            logger.debug(f"Ignoring {change.kind.value} event outside the shared tree: {change.path}")
            return []

        if change.kind is ChangeKind.DELETED:
            return [Delete(rel)]
        if change.kind is ChangeKind.CREATED:
            return self._created(change.path, rel)
        if change.kind is ChangeKind.MODIFIED:
            state = self.fs.probe(change.path)
            if state.kind is PathKind.FILE:
                return [UpdateSize(rel, state.size)]
            return []
        raise UnsupportedChangeKind(change.kind)

    def _created(self, path, rel):
        state = self.fs.probe(path)
        if state.kind is PathKind.FILE:
            return [CreateFile(rel, state.size)]
        if state.kind is PathKind.OTHER:
            return []

        edits = [CreateDirectory(rel)]
        for node in iter_nodes(self.fs.read_tree(path)):
            if isinstance(node, DirectoryNode):
                edits.append(CreateDirectory(node.path))
            else:
                edits.append(CreateFile(node.path, node.size))
        return edits

    def _renamed(self, old_rel, new_rel):
        # A move across the shared root's boundary looks like a delete or a create.
        if old_rel is None and new_rel is None:
            return []
        if new_rel is None:
            return [Delete(old_rel)]
        if old_rel is None:
            return self._created(os.path.join(self.base_path, *new_rel.split("/")), new_rel)
        return [Rename(old_rel, new_rel)]
