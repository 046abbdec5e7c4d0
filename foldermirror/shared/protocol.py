import base64
import binascii
import json

from foldermirror.errors import ProtocolError
from foldermirror.shared.tree import (
    CreateDirectory,
    CreateFile,
    Delete,
    DirectoryNode,
    FileNode,
    Rename,
    UpdateSize,
)

# server -> client
LOAD_ROOT = "LOAD_ROOT"
DELETE = "DELETE"
RENAME = "RENAME"
UPDATE_SIZE = "UPDATE_SIZE"
CREATE_FILE = "CREATE_FILE"
CREATE_DIRECTORY = "CREATE_DIRECTORY"
DOWNLOAD = "DOWNLOAD"
ERROR = "ERROR"

# client -> server
CREATE_FOLDER = "CREATE_FOLDER"
UPLOAD = "UPLOAD"
DOWNLOAD_REQUEST = "DOWNLOAD_REQUEST"

REQUIRED_FIELDS = {
    LOAD_ROOT: ("tree",),
    DELETE: ("path",),
    RENAME: ("old_path", "new_path"),
    UPDATE_SIZE: ("path", "size"),
    CREATE_FILE: ("path", "size"),
    CREATE_DIRECTORY: ("path",),
    DOWNLOAD: ("path", "content"),
    ERROR: ("message",),
    CREATE_FOLDER: ("path",),
    UPLOAD: ("path", "content"),
    DOWNLOAD_REQUEST: ("path",),
}

FIELD_TYPES = {
    "path": str,
    "old_path": str,
    "new_path": str,
    "content": str,
    "message": str,
    "tree": list,
    "size": int,
}


def create_message(action, **fields):
    return json.dumps({"action": action, **fields})


def parse_message(message):
    try:
        msg = json.loads(message)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Invalid JSON message: {e}") from e
    if not isinstance(msg, dict):
        raise ProtocolError("Message is not a JSON object")

    action = msg.get("action")
    if action not in REQUIRED_FIELDS:
        raise ProtocolError(f"Unknown action: {action!r}")
    missing = [name for name in REQUIRED_FIELDS[action] if name not in msg]
    if missing:
        raise ProtocolError(f"{action} message is missing {', '.join(missing)}")

    for name, expected in FIELD_TYPES.items():
        if name in msg:
            _check_field(action, name, msg[name], expected)
    return msg


def _check_field(action, name, value, expected):
    # bool is an int subclass but never a valid size
    if not isinstance(value, expected) or isinstance(value, bool):
        raise ProtocolError(f"{action} field {name} must be {expected.__name__}, got {value!r}")
    if name == "size" and value < 0:
        raise ProtocolError(f"{action} field size must not be negative, got {value}")


def node_to_dict(node):
    if isinstance(node, FileNode):
        return {"type": "file", "path": node.path, "size": node.size}
    return {
        "type": "directory",
        "path": node.path,
        "children": [node_to_dict(child) for child in node.children],
    }


def node_from_dict(data):
    try:
        kind = data["type"]
        path = data["path"]
        if not isinstance(path, str):
            raise TypeError(path)
        if kind == "file":
            size = data["size"]
            _check_field(LOAD_ROOT, "size", size, int)
            return FileNode(path, size)
        if kind == "directory":
            return DirectoryNode(path, tuple(node_from_dict(c) for c in data["children"]))
    except (KeyError, TypeError, ValueError) as e:
        raise ProtocolError(f"Malformed tree node: {data!r}") from e
    raise ProtocolError(f"Unknown tree node type: {kind!r}")


def tree_message(nodes):
    return create_message(LOAD_ROOT, tree=[node_to_dict(node) for node in nodes])


def decode_tree(msg):
    return tuple(node_from_dict(data) for data in msg["tree"])


def edit_message(edit):
    if isinstance(edit, Delete):
        return create_message(DELETE, path=edit.path)
    if isinstance(edit, Rename):
        return create_message(RENAME, old_path=edit.old_path, new_path=edit.new_path)
    if isinstance(edit, UpdateSize):
        return create_message(UPDATE_SIZE, path=edit.path, size=edit.size)
    if isinstance(edit, CreateFile):
        return create_message(CREATE_FILE, path=edit.path, size=edit.size)
    if isinstance(edit, CreateDirectory):
        return create_message(CREATE_DIRECTORY, path=edit.path)
    raise TypeError(f"Not a tree edit: {edit!r}")


def decode_edit(msg):
    """Return the edit carried by ``msg``, or None for non-edit messages."""
    action = msg["action"]
    if action == DELETE:
        return Delete(msg["path"])
    if action == RENAME:
        return Rename(msg["old_path"], msg["new_path"])
    if action == CREATE_DIRECTORY:
        return CreateDirectory(msg["path"])
    if action not in (UPDATE_SIZE, CREATE_FILE):
        return None

    if action == UPDATE_SIZE:
        return UpdateSize(msg["path"], msg["size"])
    return CreateFile(msg["path"], msg["size"])


def encode_content(data):
    return base64.b64encode(data).decode("ascii")


def decode_content(content):
    try:
        return base64.b64decode(content, validate=True)
    except (binascii.Error, TypeError, ValueError) as e:
        raise ProtocolError("Content is not valid base64") from e


def error_message(message, path=None):
    if path is None:
        return create_message(ERROR, message=message)
    return create_message(ERROR, message=message, path=path)
