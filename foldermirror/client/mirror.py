import threading

from foldermirror.shared.tree import DirectoryNode, apply_edit


class TreeMirror:
    """A session's own copy of the shared tree, kept current by replaying edits."""

    def __init__(self, on_change=None):
        self._tree = ()
        self._lock = threading.Lock()
        self.on_change = on_change

    @property
    def tree(self):
        with self._lock:
            return self._tree

    def load(self, nodes):
        with self._lock:
            self._tree = tuple(nodes)
        self._changed()

    def apply(self, edit):
        with self._lock:
            self._tree = apply_edit(self._tree, edit)
        self._changed()

    def _changed(self):
        if self.on_change is not None:
            self.on_change(self.tree)


def format_tree(nodes, indent=""):
    lines = []
    for node in nodes:
        name = node.path.rpartition("/")[2]
        if isinstance(node, DirectoryNode):
            lines.append(f"{indent}{name}/")
            lines.extend(format_tree(node.children, indent + "    ").splitlines())
        else:
            lines.append(f"{indent}{name} ({node.size} bytes)")
    return "\n".join(lines)
