"""Builders shared by the test modules."""

from deploy_config.models.config import ConfigFile
from deploy_config.services.filesystem import FileStat


class FakeFileSystem:
    """In-memory filesystem: path → content, plus a set of directories."""

    available = True

    def __init__(self, files: dict[str, bytes] | None = None, dirs: set[str] | None = None):
        self.files = dict(files or {})
        self.dirs = set(dirs or ())

    def exists(self, path: str) -> bool:
        return path in self.files or path in self.dirs

    def stat(self, path: str) -> FileStat:
        if path in self.dirs:
            return FileStat(is_directory=True, size=4096)
        return FileStat(is_directory=False, size=len(self.files[path]))

    def write(self, path: str, content: bytes) -> None:
        self.files[path] = content


def make_config(services: dict | None, name: str | None = "shop") -> ConfigFile:
    raw: dict = {}
    if name is not None:
        raw["name"] = name
    if services is not None:
        raw["services"] = services
    return ConfigFile.model_validate(raw)


def custom_service(**overrides) -> dict:
    """Minimal valid node service."""
    service = {
        "active": True,
        "type": "node",
        "size": "nano",
        "version": "20",
        "pwd": "./",
    }
    service.update(overrides)
    return service


def postgres_service(**overrides) -> dict:
    service = {
        "active": True,
        "type": "postgres",
        "size": "pico",
        "version": "16",
        "environment": [
            "POSTGRES_PASSWORD=secret",
            "POSTGRES_USER=shop",
            "POSTGRES_DB=shop",
        ],
    }
    service.update(overrides)
    return service
