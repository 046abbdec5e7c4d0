import logging
import os
import socket
import sys
import threading

from foldermirror.client.mirror import TreeMirror, format_tree
from foldermirror.config import ClientConfig
from foldermirror.errors import FolderMirrorError, PathOutsideRoot
from foldermirror.shared.protocol import (
    CREATE_FOLDER,
    DOWNLOAD,
    DOWNLOAD_REQUEST,
    ERROR,
    LOAD_ROOT,
    UPLOAD,
    create_message,
    decode_content,
    decode_edit,
    decode_tree,
    encode_content,
    parse_message,
)

logger = logging.getLogger(__name__)


class SyncClient:
    def __init__(self, host, port, download_dir, on_change=None):
        self.host = host
        self.port = port
        self.download_dir = download_dir
        self.mirror = TreeMirror(on_change)
        self.loaded = threading.Event()
        self.downloaded = threading.Condition()
        self.downloads = []
        self.errors = []
        self.send_lock = threading.Lock()
        self.socket = None

    def connect(self):
        self.socket = socket.create_connection((self.host, self.port))
        logger.info(f"Connected to {self.host}:{self.port}")

    def start(self):
        """Connect and keep the mirror current from a background thread."""
        self.connect()
        thread = threading.Thread(target=self.listen, daemon=True)
        thread.start()
        return thread

    def listen(self):
        with self.socket.makefile(encoding="utf-8") as reader:
            try:
                for line in reader:
                    line = line.strip()
                    if line:
                        self.handle_line(line)
            except OSError as e:
                logger.info(f"Connection lost: {e}")
        logger.info("Disconnected from server")

    def handle_line(self, line):
        try:
            msg = parse_message(line)
            self.handle_message(msg)
        except (FolderMirrorError, OSError) as e:
            logger.warning(f"Ignoring message from server: {e}")

    def handle_message(self, msg):
        action = msg["action"]
        if action == LOAD_ROOT:
            self.mirror.load(decode_tree(msg))
            self.loaded.set()
        elif action == DOWNLOAD:
            self.save_download(msg["path"], decode_content(msg["content"]))
        elif action == ERROR:
            logger.error(f"Server error: {msg['message']}")
            self.errors.append(msg)
        else:
            edit = decode_edit(msg)
            if edit is None:
                logger.warning(f"Unexpected {action} message from server")
                return
            logger.debug(f"Applying {edit}")
            self.mirror.apply(edit)

    def save_download(self, path, data):
        root = os.path.abspath(self.download_dir)
        target = os.path.normpath(os.path.join(root, *path.strip("/").split("/")))
        if not target.startswith(root + os.sep):
            raise PathOutsideRoot(path)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "wb") as f:
            f.write(data)
        logger.info(f"Downloaded {path} to {target}")
        with self.downloaded:
            self.downloads.append(target)
            self.downloaded.notify_all()

    def send(self, message):
        with self.send_lock:
            self.socket.sendall((message + "\n").encode())

    def create_folder(self, path):
        self.send(create_message(CREATE_FOLDER, path=path))

    def upload(self, local_path, path=None):
        """Upload ``local_path``, stored as ``path`` (default: its file name)."""
        with open(local_path, "rb") as f:
            data = f.read()
        self.send(create_message(UPLOAD, path=path or os.path.basename(local_path), content=encode_content(data)))

    def request_download(self, path):
        self.send(create_message(DOWNLOAD_REQUEST, path=path))

    def close(self):
        if self.socket is None:
            return
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.socket.close()


def main():
    config = ClientConfig.from_env(sys.argv[1] if len(sys.argv) > 1 else None)
    logging.basicConfig(level=config.log_level, format="%(asctime)s [%(name)s] %(levelname)s %(message)s")

    def show(tree):
        logger.info("Shared folder:\n" + (format_tree(tree) or "(empty)"))

    client = SyncClient(config.host, config.port, config.download_dir, on_change=show)
    client.connect()
    try:
        client.listen()
    except KeyboardInterrupt:
        pass
    finally:
        client.close()


if __name__ == "__main__":
    main()
