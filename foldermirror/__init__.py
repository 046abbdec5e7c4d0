"""Keeps every connected client's copy of a shared folder tree in sync."""

__version__ = "0.1.0"
