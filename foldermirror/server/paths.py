import os

from foldermirror.errors import PathOutsideRoot


def to_relative(base_path, full_path):
    """Root-relative, ``/`` separated form of ``full_path``, or None when outside."""
    rel = os.path.relpath(full_path, base_path)
    if rel == os.curdir or rel == os.pardir or rel.startswith(os.pardir + os.sep):
        return None
    return rel.replace(os.sep, "/")


def to_absolute(base_path, rel_path):
    rel = rel_path.replace("\\", "/").strip("/")
    full_path = os.path.realpath(os.path.join(base_path, *rel.split("/")))
    base = os.path.realpath(base_path)
    if full_path == base or not full_path.startswith(base + os.sep):
        raise PathOutsideRoot(rel_path)
    return full_path
