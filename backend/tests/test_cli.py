from datetime import datetime

import pytest

from pocketpos.cli import DEMO_PRODUCTS
from pocketpos.domain import PaymentMethod


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def test_init_db(runner):
    result = runner.invoke(args=["pos", "init-db"])
    assert result.exit_code == 0, result.output
    assert "PASS Shop settings ready: PocketPOS PH" in result.output


def test_seed_is_idempotent_unless_reset(runner, pos):
    result = runner.invoke(args=["pos", "seed"])
    assert result.exit_code == 0, result.output
    assert f"Products: {len(DEMO_PRODUCTS)} created, 0 updated, 0 skipped" in result.output
    assert len(pos.catalog.list_products()) == len(DEMO_PRODUCTS)
    assert {c.name for c in pos.catalog.list_categories()} == {"Drinks", "Snacks", "Pantry", "Household"}

    again = runner.invoke(args=["pos", "seed"])
    assert f"0 created, 0 updated, {len(DEMO_PRODUCTS)} skipped" in again.output

    reset = runner.invoke(args=["pos", "seed", "--reset"])
    assert f"0 created, {len(DEMO_PRODUCTS)} updated, 0 skipped" in reset.output
    assert len(pos.catalog.list_products()) == len(DEMO_PRODUCTS)


def test_low_stock(runner):
    assert "No low-stock products." in runner.invoke(args=["pos", "low-stock"]).output

    runner.invoke(args=["pos", "seed"])
    # Chicharon (8) and Corned Beef (5) are at or below the default of 10
    result = runner.invoke(args=["pos", "low-stock"])
    assert "2 low-stock product(s)" in result.output
    assert "Corned Beef 150g" in result.output

    result = runner.invoke(args=["pos", "low-stock", "--threshold", "5"])
    assert "1 low-stock product(s)" in result.output
    assert "Chicharon" not in result.output


def test_daily_report(runner, pos, coffee):
    session = pos.sessions.create()
    session.workflow.clock = lambda: datetime(2026, 10, 17, 1, 15)
    session.add_item(coffee.id, 2)
    session.workflow.begin()
    session.workflow.select_method(PaymentMethod.CASH)
    session.workflow.tender(500)
    session.workflow.complete()

    result = runner.invoke(args=["pos", "daily-report", "--date", "2026-10-17"])
    assert result.exit_code == 0, result.output
    assert "Daily report for 2026-10-17" in result.output
    assert "Orders : 1" in result.output
    assert "Gross  : 240.00" in result.output
    assert "09:00  240.00" in result.output

    empty = runner.invoke(args=["pos", "daily-report", "--date", "2026-10-16"])
    assert "Orders : 0" in empty.output


def test_daily_report_rejects_bad_date(runner):
    result = runner.invoke(args=["pos", "daily-report", "--date", "17/10/2026"])
    assert result.exit_code == 2
    assert "YYYY-MM-DD" in result.output
