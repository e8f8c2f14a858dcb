"""
Storage interface for the POS.

Business services only talk to a Storage: one Repository per entity
(get/put/delete/list_all) plus a unit_of_work() that makes a group of writes
commit or roll back together. The concrete backend (hosted SQL tables or
local JSON blobs) is chosen at app creation.
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Generic, Iterator, TypeVar

from ..domain import AppSettings, Category, InventoryMovement, Product, Sale

T = TypeVar("T")


class StorageError(Exception):
    """Raised when a backend read or write fails."""


class Repository(ABC, Generic[T]):
    @abstractmethod
    def get(self, key: str) -> T | None:
        ...

    @abstractmethod
    def put(self, entity: T) -> T:
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        ...

    @abstractmethod
    def list_all(self) -> list[T]:
        ...


class SettingsRepository(ABC):
    """Singleton shop profile. Categories are stored through Storage.categories."""

    @abstractmethod
    def get(self) -> AppSettings | None:
        ...

    @abstractmethod
    def put(self, settings: AppSettings) -> AppSettings:
        ...


class Storage(ABC):
    name = "abstract"

    products: Repository[Product]
    categories: Repository[Category]
    sales: Repository[Sale]
    movements: Repository[InventoryMovement]
    settings: SettingsRepository

    def __init__(self) -> None:
        self._local = threading.local()

    # -- unit of work -----------------------------------------------------

    @property
    def in_unit_of_work(self) -> bool:
        return getattr(self._local, "depth", 0) > 0

    @contextmanager
    def unit_of_work(self) -> Iterator["Storage"]:
        """
        Group writes so they become visible together or not at all.

        Nested calls join the outermost unit; only the outermost one commits.
        Callbacks registered with after_commit() run once the commit succeeded.
        """
        depth = getattr(self._local, "depth", 0)
        if depth == 0:
            self._local.callbacks = []
            self._begin()
        self._local.depth = depth + 1
        try:
            yield self
        except Exception:
            self._local.depth = depth
            if depth == 0:
                self._local.callbacks = []
                self._rollback()
            raise

        self._local.depth = depth
        if depth:
            return

        callbacks = self._local.callbacks
        self._local.callbacks = []
        try:
            self._commit()
        except Exception:
            self._rollback()
            raise
        for callback in callbacks:
            callback()

    def after_commit(self, callback: Callable[[], None]) -> None:
        """Run callback after the current unit of work commits (now, if none is open)."""
        if self.in_unit_of_work:
            self._local.callbacks.append(callback)
        else:
            callback()

    @abstractmethod
    def _begin(self) -> None:
        ...

    @abstractmethod
    def _commit(self) -> None:
        ...

    @abstractmethod
    def _rollback(self) -> None:
        ...
