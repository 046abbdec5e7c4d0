class FolderMirrorError(Exception):
    pass


class ProtocolError(FolderMirrorError):
    """A wire message could not be decoded."""


class UnsupportedChangeKind(FolderMirrorError):
    def __init__(self, kind):
        super().__init__(f"Unsupported change kind: {kind!r}")
        self.kind = kind


class PathOutsideRoot(FolderMirrorError):
    def __init__(self, path):
        super().__init__(f"Path escapes the shared root: {path!r}")
        self.path = path


class TransferTooLarge(FolderMirrorError):
    def __init__(self, path, size, limit):
        super().__init__(f"{path} is {size} bytes, the inline transfer limit is {limit}")
        self.path = path
