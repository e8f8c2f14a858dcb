# Overview: Hosted-backend repositories on Flask-SQLAlchemy; requires an app context.

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from ..domain import AppSettings, Sale
from ..extensions import db
from ..models import (
    AppSettingsRecord,
    CategoryRecord,
    InventoryMovementRecord,
    ProductRecord,
    SaleRecord,
)
from .base import Repository, SettingsRepository, Storage, StorageError


class _SqlRepository(Repository):
    def __init__(self, storage: "SqlStorage", record_cls: Any, order_by: tuple):
        self._storage = storage
        self._record_cls = record_cls
        self._order_by = order_by

    def get(self, key: str):
        record = db.session.get(self._record_cls, key)
        return record.to_domain() if record else None

    def put(self, entity):
        record = db.session.get(self._record_cls, entity.id) or self._record_cls()
        record.apply(entity)
        db.session.add(record)
        self._storage.flush()
        return entity

    def delete(self, key: str) -> bool:
        record = db.session.get(self._record_cls, key)
        if record is None:
            return False
        db.session.delete(record)
        self._storage.flush()
        return True

    def list_all(self) -> list:
        records = db.session.query(self._record_cls).order_by(*self._order_by).all()
        return [record.to_domain() for record in records]


class _SqlSaleRepository(_SqlRepository):
    """Sales are insert-only; an existing id is never overwritten."""

    def put(self, entity: Sale) -> Sale:
        if db.session.get(SaleRecord, entity.id) is not None:
            raise StorageError(f"Transaction {entity.id} already exists")
        db.session.add(SaleRecord.from_domain(entity))
        self._storage.flush()
        return entity


class _SqlSettingsRepository(SettingsRepository):
    def __init__(self, storage: "SqlStorage"):
        self._storage = storage

    def get(self) -> AppSettings | None:
        record = db.session.get(AppSettingsRecord, AppSettingsRecord.SINGLETON_ID)
        if record is None:
            return None
        return AppSettings(shop_name=record.shop_name, shop_address=record.shop_address, tin=record.tin)

    def put(self, settings: AppSettings) -> AppSettings:
        record = db.session.get(AppSettingsRecord, AppSettingsRecord.SINGLETON_ID)
        if record is None:
            record = AppSettingsRecord(id=AppSettingsRecord.SINGLETON_ID)
            db.session.add(record)
        record.shop_name = settings.shop_name
        record.shop_address = settings.shop_address
        record.tin = settings.tin
        self._storage.flush()
        return settings


class SqlStorage(Storage):
    """
    Storage on the `products`, `categories`, `transactions`, `inventory_movements`
    and `app_settings` tables.

    Outside a unit of work every write commits immediately; inside one, writes
    are flushed and committed (or rolled back) together.
    """
    name = "sql"

    def __init__(self) -> None:
        super().__init__()
        self.products = _SqlRepository(self, ProductRecord, (ProductRecord.name.asc(), ProductRecord.id.asc()))
        self.categories = _SqlRepository(self, CategoryRecord, (CategoryRecord.name.asc(),))
        self.sales = _SqlSaleRepository(self, SaleRecord, (SaleRecord.created_at.desc(),))
        self.movements = _SqlRepository(
            self, InventoryMovementRecord, (InventoryMovementRecord.created_at.desc(),)
        )
        self.settings = _SqlSettingsRepository(self)

    def flush(self) -> None:
        try:
            if self.in_unit_of_work:
                db.session.flush()
            else:
                db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError("Database write failed") from exc

    def _begin(self) -> None:
        pass

    def _commit(self) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            raise StorageError("Database commit failed") from exc

    def _rollback(self) -> None:
        db.session.rollback()
