"""
Pytest fixtures for PocketPOS backend tests.

Every app-level fixture runs once per storage backend (sql on in-memory
SQLite, json on tmp_path) so services and routes are checked against both.
"""

from decimal import Decimal

import pytest

from pocketpos import create_app
from pocketpos.domain import Product
from pocketpos.extensions import current_pos, db
from pocketpos.services.payment_gateway import FixedTerminalLink, PaymentStatus


def make_app(tmp_path, **overrides):
    config = {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "STORAGE_BACKEND": "sql",
        "DATA_DIR": str(tmp_path / "pos_data"),
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "POS_TIMEZONE": "Asia/Manila",
        "LOW_STOCK_THRESHOLD": 10,
        "TERMINAL_LINK_LATENCY_SECONDS": 0,
    }
    config.update(overrides)
    return create_app(config)


@pytest.fixture(params=["sql", "json"])
def app(request, tmp_path):
    """Create application for testing, once per storage backend."""
    app = make_app(tmp_path, STORAGE_BACKEND=request.param)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def pos(app):
    """PosContext of the app under test (app context already pushed)."""
    return current_pos()


@pytest.fixture
def scripted_terminal(pos):
    """Terminal link that fails once, then pairs."""
    terminal = FixedTerminalLink(PaymentStatus.FAILURE, PaymentStatus.SUCCESS)
    pos.sessions.terminal_link = terminal
    return terminal


@pytest.fixture
def make_product(pos):
    """Factory that writes a product straight to the catalog."""
    counter = {"n": 0}

    def _make(name="Item", price="100.00", stock=10, **fields):
        counter["n"] += 1
        product = Product(
            id=fields.pop("id", f"p-{counter['n']}"),
            sku=fields.pop("sku", f"SKU-{counter['n']:03d}"),
            name=name,
            price=Decimal(str(price)),
            stock=stock,
            **fields,
        )
        return pos.catalog.upsert_product(product)

    return _make


@pytest.fixture
def coffee(make_product):
    return make_product(name="Iced Coffee", price="120.00", stock=10, cost=Decimal("70.00"), category="Drinks")


@pytest.fixture
def bread(make_product):
    return make_product(name="Pandesal", price="90.00", stock=5, cost=Decimal("50.00"), category="Snacks")
