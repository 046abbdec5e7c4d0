"""Tree of the shared folder and the structural edits replayed against it.

Paths are root-relative and ``/`` separated. Siblings are always ordered by
their full path, and a directory's path prefixes every descendant's path.
All edit functions are pure: they take a sequence of top-level nodes and
return a new tuple, leaving the input untouched. None of them fail; an edit
naming a missing node is a no-op, and a create whose parent is missing lands
at the top level.
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class FileNode:
    path: str
    size: int = 0


@dataclass(frozen=True)
class DirectoryNode:
    path: str
    children: tuple = ()


TreeNode = FileNode | DirectoryNode


@dataclass(frozen=True)
class Delete:
    path: str


@dataclass(frozen=True)
class Rename:
    old_path: str
    new_path: str


@dataclass(frozen=True)
class UpdateSize:
    path: str
    size: int


@dataclass(frozen=True)
class CreateFile:
    path: str
    size: int


@dataclass(frozen=True)
class CreateDirectory:
    path: str


Edit = Delete | Rename | UpdateSize | CreateFile | CreateDirectory


def is_within(path: str, prefix: str) -> bool:
    """True when ``path`` is ``prefix`` itself or lies below it."""
    return path == prefix or path.startswith(prefix + "/")


def _contains(directory: str, path: str) -> bool:
    return path.startswith(directory + "/")


def parent_path(path: str) -> str:
    return path.rpartition("/")[0]


def sort_nodes(nodes) -> tuple:
    return tuple(sorted(nodes, key=lambda node: node.path))


def find_node(nodes, path: str) -> TreeNode | None:
    for node in nodes:
        if node.path == path:
            return node
        if isinstance(node, DirectoryNode) and _contains(node.path, path):
            return find_node(node.children, path)
    return None


def iter_nodes(nodes):
    """Yield every node depth-first, each directory before its children."""
    for node in nodes:
        yield node
        if isinstance(node, DirectoryNode):
            yield from iter_nodes(node.children)


def delete(nodes, target: str) -> tuple:
    result = []
    for node in nodes:
        if node.path == target:
            continue
        if isinstance(node, DirectoryNode) and _contains(node.path, target):
            node = replace(node, children=delete(node.children, target))
        result.append(node)
    return tuple(result)


def update_size(nodes, target: str, size: int) -> tuple:
    result = []
    for node in nodes:
        if isinstance(node, FileNode) and node.path == target:
            node = FileNode(target, size)
        elif isinstance(node, DirectoryNode) and _contains(node.path, target):
            node = replace(node, children=update_size(node.children, target, size))
        result.append(node)
    return tuple(result)


def _rewrite(node: TreeNode, old_path: str, new_path: str) -> TreeNode:
    path = new_path + node.path[len(old_path):]
    if isinstance(node, FileNode):
        return FileNode(path, node.size)
    # Children keep their relative order since they all share the rewritten prefix.
    return DirectoryNode(path, tuple(_rewrite(child, old_path, new_path) for child in node.children))


def _rename_in(nodes, old_path: str, new_path: str) -> tuple:
    if any(node.path == old_path for node in nodes):
        return sort_nodes(
            _rewrite(node, old_path, new_path) if node.path == old_path else node
            for node in nodes
            if node.path != new_path
        )
    return tuple(
        replace(node, children=_rename_in(node.children, old_path, new_path))
        if isinstance(node, DirectoryNode) and _contains(node.path, old_path)
        else node
        for node in nodes
    )


def rename(nodes, old_path: str, new_path: str) -> tuple:
    """Move the node at ``old_path`` (and its whole subtree) to ``new_path``.

    Moving a directory into itself is impossible on a real filesystem and is
    ignored here, as is renaming a path onto itself. A node already sitting
    at ``new_path`` is replaced.
    """
    if is_within(new_path, old_path):
        return tuple(nodes)
    if parent_path(old_path) == parent_path(new_path):
        return _rename_in(nodes, old_path, new_path)

    moved = find_node(nodes, old_path)
    if moved is None:
        return tuple(nodes)
    return _insert(delete(nodes, old_path), _rewrite(moved, old_path, new_path))


def _insert(nodes, new_node: TreeNode) -> tuple:
    result = []
    placed = False
    for node in nodes:
        if isinstance(node, DirectoryNode) and _contains(node.path, new_node.path):
            node = replace(node, children=_insert(node.children, new_node))
            placed = True
        elif node.path == new_node.path:
            node = new_node
            placed = True
        result.append(node)
    if not placed:
        result.append(new_node)
        return sort_nodes(result)
    return tuple(result)


def create_file(nodes, path: str, size: int) -> tuple:
    return _insert(nodes, FileNode(path, size))


def create_directory(nodes, path: str) -> tuple:
    # A repeated create must not wipe a directory that is already populated.
    if isinstance(find_node(nodes, path), DirectoryNode):
        return tuple(nodes)
    return _insert(nodes, DirectoryNode(path))


def apply_edit(nodes, edit: Edit) -> tuple:
    if isinstance(edit, Delete):
        return delete(nodes, edit.path)
    if isinstance(edit, Rename):
        return rename(nodes, edit.old_path, edit.new_path)
    if isinstance(edit, UpdateSize):
        return update_size(nodes, edit.path, edit.size)
    if isinstance(edit, CreateFile):
        return create_file(nodes, edit.path, edit.size)
    if isinstance(edit, CreateDirectory):
        return create_directory(nodes, edit.path)
    raise TypeError(f"Not a tree edit: {edit!r}")
