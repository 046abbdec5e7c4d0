import logging
import os
import queue
import socket
import threading

from foldermirror.errors import FolderMirrorError, ProtocolError, TransferTooLarge
from foldermirror.server.paths import to_absolute
from foldermirror.shared.protocol import (
    CREATE_FOLDER,
    DOWNLOAD,
    DOWNLOAD_REQUEST,
    UPLOAD,
    create_message,
    decode_content,
    encode_content,
    error_message,
    parse_message,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_PENDING = 1024
FLUSH_TIMEOUT = 5.0


class ClientHandler:
    """One connected session.

    Receives the tree and its edits through the dispatcher and serves the
    client's folder, upload and download requests. Changes made on behalf of
    the client reach everyone, the client included, through the watcher.

    Outgoing messages are queued and written by a separate thread, so a peer
    that stops reading never blocks the dispatcher. Once ``max_pending``
    messages are waiting the session is given up on.
    """

    def __init__(self, socket, dispatcher, base_path, max_inline_bytes, address=None,
                 max_pending=DEFAULT_MAX_PENDING):
        self.socket = socket
        self.dispatcher = dispatcher
        self.base_path = base_path
        self.max_inline_bytes = max_inline_bytes
        self.address = address
        self.outbox = queue.Queue(maxsize=max_pending)
        self.closed = threading.Event()
        self.writer = None

    def __repr__(self):
        return f"ClientHandler({self.address})"

    def send(self, message):
        if self.closed.is_set():
            raise ConnectionError(f"Connection to {self.address} is closed")
        try:
            self.outbox.put_nowait(message)
        except queue.Full:
            self.close()
            raise ConnectionError(
                f"{self.address} is not reading, {self.outbox.maxsize} messages pending"
            ) from None

    def start_writer(self):
        if self.writer is None:
            self.writer = threading.Thread(target=self.write_loop, daemon=True)
            self.writer.start()

    def write_loop(self):
        while True:
            message = self.outbox.get()
            if message is None:
                return
            try:
                self.socket.sendall((message + "\n").encode())
            except OSError as e:
                logger.info(f"Sending to {self.address} failed: {e}")
                self.close()
                return

    def stop_writer(self):
        """Let queued messages drain, then stop the writer thread."""
        try:
            self.outbox.put_nowait(None)
        except queue.Full:
            self.close()
        if self.writer is not None:
            self.writer.join(timeout=FLUSH_TIMEOUT)
            if self.writer.is_alive():
                self.close()

    def close(self):
        if self.closed.is_set():
            return
        self.closed.set()
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            # already disconnected
            pass

    def handle(self):
        self.start_writer()
        with self.socket, self.socket.makefile(encoding="utf-8") as reader:
            try:
                self.dispatcher.join(self)
                for line in reader:
                    line = line.strip()
                    if line:
                        self.handle_line(line)
            except OSError as e:
                logger.info(f"Connection to {self.address} lost: {e}")
            finally:
                self.dispatcher.leave(self)
                self.stop_writer()

    def handle_line(self, line):
        path = None
        try:
            msg = parse_message(line)
            path = msg.get("path")
            self.handle_request(msg)
        except (FolderMirrorError, OSError) as e:
            logger.warning(f"Request from {self.address} failed: {e}")
            self.send(error_message(str(e), path))

    def handle_request(self, msg):
        action = msg["action"]
        if action == CREATE_FOLDER:
            os.makedirs(to_absolute(self.base_path, msg["path"]), exist_ok=True)
        elif action == UPLOAD:
            self.upload(msg["path"], decode_content(msg["content"]))
        elif action == DOWNLOAD_REQUEST:
            self.download(msg["path"])
        else:
            raise ProtocolError(f"{action} is not a client request")

    def upload(self, path, data):
        if len(data) > self.max_inline_bytes:
            raise TransferTooLarge(path, len(data), self.max_inline_bytes)
        full_path = to_absolute(self.base_path, path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "wb") as f:
            f.write(data)
        logger.info(f"Stored upload {path} ({len(data)} bytes) from {self.address}")

    def download(self, path):
        full_path = to_absolute(self.base_path, path)
        if not os.path.isfile(full_path):
            raise FolderMirrorError(f"No such file: {path}")
        size = os.path.getsize(full_path)
        if size > self.max_inline_bytes:
            raise TransferTooLarge(path, size, self.max_inline_bytes)
        with open(full_path, "rb") as f:
            data = f.read()
        self.send(create_message(DOWNLOAD, path=path, content=encode_content(data)))
