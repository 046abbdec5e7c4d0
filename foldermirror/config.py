import os
from dataclasses import dataclass

DEFAULT_PORT = 8085
DEFAULT_MAX_INLINE_BYTES = 4 << 20
DEFAULT_MAX_PENDING_MESSAGES = 1024


def _env(name, default):
    value = os.environ.get(name)
    return value if value else default


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    shared_dir: str = os.path.join(os.path.expanduser("~"), "Shared")
    max_inline_bytes: int = DEFAULT_MAX_INLINE_BYTES
    max_pending_messages: int = DEFAULT_MAX_PENDING_MESSAGES
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, shared_dir=None):
        return cls(
            host=_env("FOLDERMIRROR_HOST", cls.host),
            port=int(_env("PORT", cls.port)),
            shared_dir=os.path.abspath(shared_dir or _env("FOLDERMIRROR_SHARED_DIR", cls.shared_dir)),
            max_inline_bytes=int(_env("FOLDERMIRROR_MAX_INLINE_BYTES", cls.max_inline_bytes)),
            max_pending_messages=int(_env("FOLDERMIRROR_MAX_PENDING_MESSAGES", cls.max_pending_messages)),
            log_level=_env("FOLDERMIRROR_LOG_LEVEL", cls.log_level).upper(),
        )


@dataclass(frozen=True)
class ClientConfig:
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    download_dir: str = "./downloads"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, download_dir=None):
        return cls(
            host=_env("FOLDERMIRROR_HOST", cls.host),
            port=int(_env("PORT", cls.port)),
            download_dir=os.path.abspath(download_dir or _env("FOLDERMIRROR_DOWNLOAD_DIR", cls.download_dir)),
            log_level=_env("FOLDERMIRROR_LOG_LEVEL", cls.log_level).upper(),
        )
