from __future__ import annotations

from .base import Repository, SettingsRepository, Storage, StorageError
from .json_store import JsonStorage
from .sql import SqlStorage

BACKENDS = ("sql", "json")


def build_storage(config) -> Storage:
    """Pick the storage backend named by STORAGE_BACKEND."""
    backend = (config.get("STORAGE_BACKEND") or "sql").lower()
    if backend == "sql":
        return SqlStorage()
    if backend == "json":
        return JsonStorage(config["DATA_DIR"])
    raise ValueError(f"Unknown STORAGE_BACKEND {backend!r}; expected one of {BACKENDS}")


__all__ = [
    "Repository", "SettingsRepository", "Storage", "StorageError",
    "JsonStorage", "SqlStorage", "build_storage",
]
