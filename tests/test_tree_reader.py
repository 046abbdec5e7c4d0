"""Tests for the recursive full tree reader."""

import os

import pytest

from foldermirror.server.tree_reader import read_folder
from foldermirror.shared.tree import DirectoryNode, FileNode


def test_read_folder_builds_sorted_relative_tree(tmp_path):
    (tmp_path / "b.txt").write_bytes(b"12345")
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "inner.bin").write_bytes(b"x" * 10)
    (tmp_path / "a" / "deep").mkdir()
    (tmp_path / "c").mkdir()

    assert read_folder(str(tmp_path), str(tmp_path)) == (
        DirectoryNode("a", (
            DirectoryNode("a/deep"),
            FileNode("a/inner.bin", 10),
        )),
        FileNode("b.txt", 5),
        DirectoryNode("c"),
    )


def test_read_subfolder_keeps_paths_relative_to_base(tmp_path):
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "f.txt").write_text("hi", encoding="utf-8")

    assert read_folder(str(tmp_path), str(sub)) == (FileNode("sub/f.txt", 2),)


def test_read_missing_folder_is_empty(tmp_path):
    assert read_folder(str(tmp_path), str(tmp_path / "gone")) == ()


def test_read_folder_does_not_follow_directory_symlinks(tmp_path):
    (tmp_path / "real").mkdir()
    try:
        os.symlink(tmp_path, tmp_path / "real" / "loop", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks unavailable")

    assert read_folder(str(tmp_path), str(tmp_path)) == (DirectoryNode("real"),)


def test_read_folder_skips_file_symlinks(tmp_path):
    (tmp_path / "f.txt").write_bytes(b"abc")
    try:
        os.symlink(tmp_path / "f.txt", tmp_path / "link.txt")
        os.symlink(tmp_path / "nowhere", tmp_path / "dangling")
    except (OSError, NotImplementedError):
        pytest.skip("symlinks unavailable")

    assert read_folder(str(tmp_path), str(tmp_path)) == (FileNode("f.txt", 3),)


def test_subdirectory_vanishing_mid_read_is_left_out(tmp_path, monkeypatch):
    (tmp_path / "gone").mkdir()
    (tmp_path / "gone" / "x.txt").write_bytes(b"x")
    (tmp_path / "kept").mkdir()
    (tmp_path / "kept" / "y.txt").write_bytes(b"yy")
    (tmp_path / "top.txt").write_bytes(b"zzz")

    real_scandir = os.scandir
    vanished = str(tmp_path / "gone")

    def scandir(path):
        if str(path) == vanished:
            raise FileNotFoundError(path)
        return real_scandir(path)

    monkeypatch.setattr("foldermirror.server.tree_reader.os.scandir", scandir)

    assert read_folder(str(tmp_path), str(tmp_path)) == (
        DirectoryNode("kept", (FileNode("kept/y.txt", 2),)),
        FileNode("top.txt", 3),
    )
