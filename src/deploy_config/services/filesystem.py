"""Filesystem capability used for local volume checks and writes.

The validator and volume resolver take a FileSystem explicitly. Inside the
deploy server there is no user filesystem to look at, so the default there
is NullFileSystem: checks that need it are skipped with a log message.
"""

from functools import lru_cache
from pathlib import Path
from typing import NamedTuple, Protocol

from deploy_config.config import get_settings


class FileStat(NamedTuple):
    is_directory: bool
    size: int


class FileSystem(Protocol):
    available: bool

    def exists(self, path: str) -> bool: ...

    def stat(self, path: str) -> FileStat: ...

    def write(self, path: str, content: bytes) -> None: ...


class LocalFileSystem:
    available = True

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def stat(self, path: str) -> FileStat:
        p = Path(path)
        return FileStat(is_directory=p.is_dir(), size=p.stat().st_size)

    def write(self, path: str, content: bytes) -> None:
        Path(path).write_bytes(content)


class NullFileSystem:
    """No filesystem. Reads report nothing, writes are dropped."""

    available = False

    def exists(self, path: str) -> bool:
        return False

    def stat(self, path: str) -> FileStat:
        raise FileNotFoundError(path)

    def write(self, path: str, content: bytes) -> None:
        return None


@lru_cache
def get_filesystem() -> FileSystem:
    """Process-wide default, chosen once from settings."""
    if get_settings().is_server:
        return NullFileSystem()
    return LocalFileSystem()
