# Overview: Per-app wiring of storage, stores and checkout sessions.

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta, tzinfo

from flask import Flask

from .domain import PaymentMethod
from .extensions import POS_EXTENSION_KEY
from .repositories import Storage, build_storage
from .services.catalog_service import CatalogStore, low_stock_alert
from .services.checkout_service import CheckoutSessionRegistry
from .services.ledger_service import TransactionLedger
from .services.payment_gateway import PaymentGateway, TerminalLinkGateway, build_gateways
from .services.settings_service import SettingsService
from .time_utils import get_timezone


@dataclass
class PosContext:
    """Explicit store objects shared by the routes; one per Flask app."""
    storage: Storage
    catalog: CatalogStore
    ledger: TransactionLedger
    settings: SettingsService
    sessions: CheckoutSessionRegistry
    gateways: dict[PaymentMethod, PaymentGateway]
    terminal_link: TerminalLinkGateway
    tz: tzinfo
    low_stock_threshold: int


def build_context(config, storage: Storage | None = None) -> PosContext:
    storage = storage or build_storage(config)
    catalog = CatalogStore(storage)
    ledger = TransactionLedger(storage)
    gateways, terminal_link = build_gateways(config)
    threshold = int(config.get("LOW_STOCK_THRESHOLD", 10))
    catalog.subscribe(low_stock_alert(threshold))
    idle_seconds = int(config.get("CHECKOUT_SESSION_IDLE_SECONDS", 0) or 0)
    sessions = CheckoutSessionRegistry(
        catalog,
        ledger,
        gateways,
        terminal_link,
        idle_timeout=timedelta(seconds=idle_seconds) if idle_seconds > 0 else None,
    )
    return PosContext(
        storage=storage,
        catalog=catalog,
        ledger=ledger,
        settings=SettingsService(storage),
        sessions=sessions,
        gateways=gateways,
        terminal_link=terminal_link,
        tz=get_timezone(config.get("POS_TIMEZONE")),
        low_stock_threshold=threshold,
    )


def init_context(app: Flask) -> PosContext:
    context = build_context(app.config)
    app.extensions[POS_EXTENSION_KEY] = context
    app.logger.info("PocketPOS storage backend: %s", context.storage.name)
    return context
