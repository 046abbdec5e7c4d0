"""Tests for the newline JSON wire protocol."""

import json

import pytest

from foldermirror.errors import ProtocolError
from foldermirror.shared.protocol import (
    decode_content,
    decode_edit,
    decode_tree,
    edit_message,
    encode_content,
    error_message,
    parse_message,
    tree_message,
)
from foldermirror.shared.tree import (
    CreateDirectory,
    CreateFile,
    Delete,
    DirectoryNode,
    FileNode,
    Rename,
    UpdateSize,
)


def test_tree_message_carries_nested_nodes():
    tree = (DirectoryNode("sub", (FileNode("sub/b.txt", 3),)), FileNode("z.txt", 1))
    msg = parse_message(tree_message(tree))

    assert msg["tree"][0] == {
        "type": "directory",
        "path": "sub",
        "children": [{"type": "file", "path": "sub/b.txt", "size": 3}],
    }
    assert decode_tree(msg) == tree


@pytest.mark.parametrize("edit, expected", [
    (Delete("a"), {"action": "DELETE", "path": "a"}),
    (Rename("a", "b"), {"action": "RENAME", "old_path": "a", "new_path": "b"}),
    (UpdateSize("a", 4), {"action": "UPDATE_SIZE", "path": "a", "size": 4}),
    (CreateFile("a", 0), {"action": "CREATE_FILE", "path": "a", "size": 0}),
    (CreateDirectory("d"), {"action": "CREATE_DIRECTORY", "path": "d"}),
])
def test_edit_messages(edit, expected):
    line = edit_message(edit)
    assert json.loads(line) == expected
    assert decode_edit(parse_message(line)) == edit


def test_non_edit_messages_decode_to_none():
    assert decode_edit(parse_message(error_message("nope"))) is None


@pytest.mark.parametrize("line", [
    "not json",
    "[1, 2]",
    '{"path": "a"}',
    '{"action": "EXPLODE"}',
    '{"action": "RENAME", "old_path": "a"}',
    '{"action": "CREATE_FOLDER", "path": null}',
    '{"action": "UPLOAD", "path": ["a"], "content": ""}',
    '{"action": "UPLOAD", "path": "a", "content": 7}',
    '{"action": "RENAME", "old_path": "a", "new_path": {}}',
    '{"action": "LOAD_ROOT", "tree": 5}',
    '{"action": "LOAD_ROOT", "tree": {"type": "file"}}',
    '{"action": "UPDATE_SIZE", "path": "a", "size": -1}',
    '{"action": "CREATE_FILE", "path": "a", "size": true}',
    '{"action": "CREATE_FILE", "path": "a", "size": 1.5}',
    '{"action": "ERROR", "message": null}',
])
def test_malformed_messages_are_rejected(line):
    with pytest.raises(ProtocolError):
        parse_message(line)


def test_bad_size_is_rejected():
    with pytest.raises(ProtocolError):
        decode_edit(parse_message('{"action": "CREATE_FILE", "path": "a", "size": "big"}'))


@pytest.mark.parametrize("node", [
    '{"type": "link", "path": "a"}',
    '{"type": "file", "path": null, "size": 1}',
    '{"type": "file", "path": "a", "size": -3}',
    '{"type": "directory", "path": "d", "children": 4}',
    '"a.txt"',
])
def test_bad_tree_node_is_rejected(node):
    with pytest.raises(ProtocolError):
        decode_tree(parse_message('{"action": "LOAD_ROOT", "tree": [' + node + ']}'))


def test_content_encoding():
    assert decode_content(encode_content(b"\x00\xffdata")) == b"\x00\xffdata"
    with pytest.raises(ProtocolError):
        decode_content("***")


def test_error_message_path_is_optional():
    assert json.loads(error_message("bad")) == {"action": "ERROR", "message": "bad"}
    assert json.loads(error_message("bad", "a.txt"))["path"] == "a.txt"
