# Overview: Local persisted state; each key holds a whole collection as one JSON document.

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable

from ..domain import AppSettings, Category, InventoryMovement, Product, Sale
from .base import Repository, SettingsRepository, Storage, StorageError

PRODUCTS_KEY = "pos_products"
SALES_KEY = "pos_sales"
SETTINGS_KEY = "pos_settings"
MOVEMENTS_KEY = "pos_movements"


class _JsonCollection(Repository):
    """
    A list of records stored under one key.

    When `field` is set the list lives inside a dict blob (categories are
    kept inside the settings document).
    """

    def __init__(
        self,
        storage: "JsonStorage",
        key: str,
        load: Callable[[dict], Any],
        dump: Callable[[Any], dict],
        sort_key: Callable[[Any], Any],
        reverse: bool = False,
        field: str | None = None,
    ):
        self._storage = storage
        self._key = key
        self._load = load
        self._dump = dump
        self._sort_key = sort_key
        self._reverse = reverse
        self._field = field

    def _rows(self) -> list[dict]:
        if self._field is None:
            return list(self._storage.read_blob(self._key, []))
        blob = self._storage.read_blob(self._key, {}) or {}
        return list(blob.get(self._field, []))

    def _save(self, rows: list[dict]) -> None:
        if self._field is None:
            self._storage.write_blob(self._key, rows)
            return
        blob = dict(self._storage.read_blob(self._key, {}) or {})
        blob[self._field] = rows
        self._storage.write_blob(self._key, blob)

    def get(self, key: str):
        for row in self._rows():
            if str(row.get("id")) == str(key):
                return self._load(row)
        return None

    def put(self, entity):
        rows = self._rows()
        data = self._dump(entity)
        for i, row in enumerate(rows):
            if str(row.get("id")) == str(entity.id):
                rows[i] = data
                break
        else:
            rows.append(data)
        self._save(rows)
        return entity

    def delete(self, key: str) -> bool:
        rows = self._rows()
        kept = [row for row in rows if str(row.get("id")) != str(key)]
        if len(kept) == len(rows):
            return False
        self._save(kept)
        return True

    def list_all(self) -> list:
        items = [self._load(row) for row in self._rows()]
        return sorted(items, key=self._sort_key, reverse=self._reverse)


class _JsonSalesCollection(_JsonCollection):
    def put(self, entity: Sale) -> Sale:
        if self.get(entity.id) is not None:
            raise StorageError(f"Transaction {entity.id} already exists")
        return super().put(entity)


class _JsonSettings(SettingsRepository):
    def __init__(self, storage: "JsonStorage"):
        self._storage = storage

    def get(self) -> AppSettings | None:
        blob = self._storage.read_blob(SETTINGS_KEY, None)
        if blob is None:
            return None
        return AppSettings.from_dict({**blob, "categories": []})

    def put(self, settings: AppSettings) -> AppSettings:
        blob = dict(self._storage.read_blob(SETTINGS_KEY, {}) or {})
        blob.update(
            shop_name=settings.shop_name,
            shop_address=settings.shop_address,
            tin=settings.tin,
        )
        blob.setdefault("categories", [])
        self._storage.write_blob(SETTINGS_KEY, blob)
        return settings


class JsonStorage(Storage):
    """
    Key -> JSON blob files under data_dir (pos_products.json, pos_sales.json,
    pos_settings.json, pos_movements.json). No partial updates and no schema
    versioning: every write replaces the whole document for its key.

    A unit of work buffers blobs in memory and writes them on commit.
    """
    name = "json"

    def __init__(self, data_dir: str | os.PathLike) -> None:
        super().__init__()
        self.data_dir = Path(data_dir)
        self.products = _JsonCollection(
            self, PRODUCTS_KEY, Product.from_dict, Product.to_record,
            sort_key=lambda p: (p.name.lower(), p.id),
        )
        self.sales = _JsonSalesCollection(
            self, SALES_KEY, Sale.from_dict, Sale.to_record,
            sort_key=lambda s: s.created_at, reverse=True,
        )
        self.movements = _JsonCollection(
            self, MOVEMENTS_KEY, InventoryMovement.from_dict, InventoryMovement.to_dict,
            sort_key=lambda m: m.created_at, reverse=True,
        )
        self.categories = _JsonCollection(
            self, SETTINGS_KEY, Category.from_dict, Category.to_dict,
            sort_key=lambda c: c.name.lower(), field="categories",
        )
        self.settings = _JsonSettings(self)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def read_blob(self, key: str, default: Any) -> Any:
        pending = getattr(self._local, "pending", None)
        if pending is not None and key in pending:
            return pending[key]
        path = self.path_for(key)
        if not path.exists():
            return default
        try:
            with path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Could not read {key}") from exc

    def write_blob(self, key: str, data: Any) -> None:
        if self.in_unit_of_work:
            self._local.pending[key] = data
            return
        self._write_file(key, data)

    def _write_file(self, key: str, data: Any) -> None:
        path = self.path_for(key)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StorageError(f"Could not write {key}") from exc

    def _begin(self) -> None:
        self._local.pending = {}

    def _commit(self) -> None:
        pending = self._local.pending
        self._local.pending = None
        for key, data in pending.items():
            self._write_file(key, data)

    def _rollback(self) -> None:
        self._local.pending = None
