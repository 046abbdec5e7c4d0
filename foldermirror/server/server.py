import logging
import os
import socket
import sys
import threading

from foldermirror.config import ServerConfig
from foldermirror.server.client_handler import ClientHandler
from foldermirror.server.dispatcher import SyncDispatcher
from foldermirror.server.file_watcher import ServerWatcher

logger = logging.getLogger(__name__)


class SyncServer:
    def __init__(self, host, port, shared_dir, max_inline_bytes=ServerConfig.max_inline_bytes,
                 max_pending_messages=ServerConfig.max_pending_messages, watch=True):
        self.host = host
        self.port = port
        self.shared_dir = os.path.abspath(shared_dir)
        self.max_inline_bytes = max_inline_bytes
        self.max_pending_messages = max_pending_messages
        self.watch = watch
        self.dispatcher = None
        self.watcher = None
        self.socket = None

    def bind(self):
        """Prepare the shared dir, start watching it and listen; returns the bound port."""
        os.makedirs(self.shared_dir, exist_ok=True)
        self.dispatcher = SyncDispatcher(self.shared_dir)
        if self.watch:
            self.watcher = ServerWatcher(self.shared_dir, self.dispatcher)
            self.watcher.start()

        self.socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.socket.bind((self.host, self.port))
        self.socket.listen()
        self.port = self.socket.getsockname()[1]
        logger.info(f"Listening on {self.host}:{self.port}, sharing {self.shared_dir}")
        return self.port

    def serve(self):
        with self.socket:
            while True:
                try:
                    client_socket, addr = self.socket.accept()
                except OSError:
                    # Listening socket closed by stop().
                    break
                logger.info(f"Client connected: {addr}")
                handler = ClientHandler(client_socket, self.dispatcher, self.shared_dir, self.max_inline_bytes, addr,
                                        max_pending=self.max_pending_messages)
                threading.Thread(target=handler.handle, daemon=True).start()

    def start(self):
        self.bind()
        self.serve()

    def stop(self):
        if self.watcher is not None:
            self.watcher.stop()
        if self.socket is not None:
            try:
                self.socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.socket.close()


def main():
    config = ServerConfig.from_env(sys.argv[1] if len(sys.argv) > 1 else None)
    logging.basicConfig(level=config.log_level, format="%(asctime)s [%(name)s] %(levelname)s %(message)s")
    server = SyncServer(config.host, config.port, config.shared_dir, config.max_inline_bytes,
                        config.max_pending_messages)
    try:
        server.start()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.stop()


if __name__ == "__main__":
    main()
