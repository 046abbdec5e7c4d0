import logging
import os

from foldermirror.server.paths import to_relative
from foldermirror.shared.tree import DirectoryNode, FileNode, sort_nodes

logger = logging.getLogger(__name__)


def read_folder(base_path, folder):
    """Read ``folder`` recursively into sorted nodes with paths relative to ``base_path``.

    Entries that disappear while being read are left out of the result.
    Symbolic links are skipped.
    """
    return _read(base_path, folder) or ()


def _read(base_path, folder):
    files = []
    dirs = []
    try:
        with os.scandir(folder) as entries:
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        dirs.append(entry.path)
                    elif entry.is_file(follow_symlinks=False):
                        size = entry.stat(follow_symlinks=False).st_size
                        files.append(FileNode(to_relative(base_path, entry.path), size))
                except OSError:
                    logger.debug(f"{entry.path} vanished while reading {folder}")
    except (FileNotFoundError, NotADirectoryError):
        logger.debug(f"{folder} vanished before it could be read")
        return None
    except OSError as e:
        logger.warning(f"Could not read {folder}: {e}")
        return None

    nodes = files
    for path in dirs:
        children = _read(base_path, path)
        if children is not None:
            nodes.append(DirectoryNode(to_relative(base_path, path), children))
    return sort_nodes(nodes)
