import json
from decimal import Decimal

import pytest

from pocketpos.domain import AppSettings, Category, Product
from pocketpos.repositories import JsonStorage, StorageError, build_storage
from pocketpos.repositories.json_store import PRODUCTS_KEY, SETTINGS_KEY


def _product(pid, name, stock=5):
    return Product(id=pid, sku=f"SKU-{pid}", name=name, price=Decimal("12.50"), cost=Decimal("8"), stock=stock)


def test_put_get_delete(pos):
    products = pos.storage.products
    products.put(_product("1", "Banana Chips"))

    loaded = products.get("1")
    assert loaded.name == "Banana Chips"
    assert loaded.price == Decimal("12.50")
    assert loaded.cost == Decimal("8")

    loaded.stock = 9
    products.put(loaded)
    assert products.get("1").stock == 9

    assert products.delete("1") is True
    assert products.get("1") is None
    assert products.delete("1") is False


def test_list_all_sorted_by_name(pos):
    for pid, name in [("1", "rice"), ("2", "Banana"), ("3", "coffee")]:
        pos.storage.products.put(_product(pid, name))
    assert [p.name for p in pos.storage.products.list_all()] == ["Banana", "coffee", "rice"]


def test_categories_round_trip(pos):
    pos.storage.categories.put(Category(id="c1", name="Snacks", slug="snacks", emoji="🍟", color="#F59E0B"))
    assert pos.storage.categories.get("c1").emoji == "🍟"
    assert [c.slug for c in pos.storage.categories.list_all()] == ["snacks"]


def test_settings_singleton(pos):
    assert pos.storage.settings.get() is None
    pos.storage.settings.put(AppSettings(shop_name="Sari-Sari", tin="000"))
    pos.storage.settings.put(AppSettings(shop_name="Sari-Sari Store", tin="111"))

    settings = pos.storage.settings.get()
    assert settings.shop_name == "Sari-Sari Store"
    assert settings.tin == "111"


def test_unit_of_work_commits_together(pos):
    with pos.storage.unit_of_work():
        pos.storage.products.put(_product("1", "A"))
        pos.storage.products.put(_product("2", "B"))
    assert len(pos.storage.products.list_all()) == 2


def test_unit_of_work_rolls_back_on_error(pos):
    pos.storage.products.put(_product("1", "A", stock=5))

    with pytest.raises(RuntimeError):
        with pos.storage.unit_of_work():
            product = pos.storage.products.get("1")
            product.stock = 0
            pos.storage.products.put(product)
            pos.storage.products.put(_product("2", "B"))
            raise RuntimeError("abort")

    assert pos.storage.products.get("1").stock == 5
    assert pos.storage.products.get("2") is None


def test_nested_unit_of_work_joins_outer(pos):
    with pytest.raises(RuntimeError):
        with pos.storage.unit_of_work():
            with pos.storage.unit_of_work():
                pos.storage.products.put(_product("1", "A"))
            raise RuntimeError("abort outer")
    assert pos.storage.products.get("1") is None


def test_after_commit_runs_only_on_success(pos):
    calls = []
    with pos.storage.unit_of_work():
        pos.storage.after_commit(lambda: calls.append("ok"))
        assert calls == []
    assert calls == ["ok"]

    with pytest.raises(RuntimeError):
        with pos.storage.unit_of_work():
            pos.storage.after_commit(lambda: calls.append("never"))
            raise RuntimeError
    assert calls == ["ok"]

    pos.storage.after_commit(lambda: calls.append("now"))
    assert calls == ["ok", "now"]


def test_json_blobs_hold_whole_collections(tmp_path):
    storage = JsonStorage(tmp_path)
    storage.products.put(_product("1", "A"))
    storage.products.put(_product("2", "B"))
    storage.categories.put(Category(id="c1", name="Drinks", slug="drinks"))
    storage.settings.put(AppSettings(shop_name="Shop"))

    products = json.loads((tmp_path / f"{PRODUCTS_KEY}.json").read_text(encoding="utf-8"))
    assert [row["id"] for row in products] == ["1", "2"]
    assert products[0]["price"] == "12.50"

    settings = json.loads((tmp_path / f"{SETTINGS_KEY}.json").read_text(encoding="utf-8"))
    assert settings["shop_name"] == "Shop"
    assert [c["slug"] for c in settings["categories"]] == ["drinks"]


def test_json_unit_of_work_writes_nothing_until_commit(tmp_path):
    storage = JsonStorage(tmp_path)
    with storage.unit_of_work():
        storage.products.put(_product("1", "A"))
        assert not storage.path_for(PRODUCTS_KEY).exists()
        assert storage.products.get("1") is not None
    assert storage.path_for(PRODUCTS_KEY).exists()


def test_json_corrupt_blob_raises_storage_error(tmp_path):
    (tmp_path / f"{PRODUCTS_KEY}.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        JsonStorage(tmp_path).products.list_all()


def test_build_storage_rejects_unknown_backend(tmp_path):
    assert isinstance(build_storage({"STORAGE_BACKEND": "json", "DATA_DIR": str(tmp_path)}), JsonStorage)
    with pytest.raises(ValueError):
        build_storage({"STORAGE_BACKEND": "redis"})
