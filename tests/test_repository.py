import asyncio
import json

from repository import (
    CUSTOMER_DATABASE,
    DISCOUNT,
    PRODUCT_CATEGORIES,
    PRODUCT_LIST,
    StoreRepository,
)
from schemas import Customer, GlobalCoupon, Product


def run(coro):
    return asyncio.run(coro)


def test_missing_keys_use_defaults(repo):
    assert run(repo.load_products()) == []
    assert run(repo.load_categories()) is None
    assert run(repo.load_global_coupon()) == GlobalCoupon()
    assert run(repo.load_discount()) == 0
    assert run(repo.load_login()) == (False, None)


def test_corrupt_json_falls_back(stores, repo):
    local, _ = stores
    run(local.set(PRODUCT_LIST, "{not json"))
    run(local.set(PRODUCT_CATEGORIES, "[[["))
    run(local.set(DISCOUNT, "abc"))
    assert run(repo.load_products()) == []
    assert run(repo.load_categories()) == []
    assert run(repo.load_discount()) == 0


def test_discount_out_of_range_falls_back(stores, repo):
    local, _ = stores
    run(local.set(DISCOUNT, "150"))
    assert run(repo.load_discount()) == 0
    run(local.set(DISCOUNT, "-5"))
    assert run(repo.load_discount()) == 0
    run(local.set(DISCOUNT, "12.5"))
    assert run(repo.load_discount()) == 12.5


def test_invalid_documents_fall_back(stores, repo):
    local, _ = stores
    run(local.set(CUSTOMER_DATABASE, json.dumps([{"id": "x", "name": "A", "phone": "1", "rating": 9}])))
    assert run(repo.load_customers()) == []


def test_customer_defaults_filled_in(stores, repo):
    local, _ = stores
    run(local.set(CUSTOMER_DATABASE, json.dumps([{"id": "x", "name": "A", "phone": "1"}])))
    customer = run(repo.load_customers())[0]
    assert customer.rating == 0
    assert customer.coupon_code == ""
    assert customer.is_one_time_use is True


def test_round_trip_products(repo):
    products = [Product(id=1, name="A", price=9.9, category="Tablets")]
    run(repo.save_products(products))
    assert run(repo.load_products()) == products


def test_login_scopes(stores):
    local, session = stores
    repo = StoreRepository(local, session)
    run(repo.save_login("admin@loja.local", remember=False))
    assert run(local.get("is_logged_in")) is None
    assert run(repo.load_login()) == (True, "admin@loja.local")

    run(repo.clear_login())
    run(repo.save_login("admin@loja.local", remember=True))
    assert run(local.get("is_logged_in")) == "true"
    run(repo.clear_login())
    assert run(repo.load_login()) == (False, None)


def test_customers_round_trip(repo):
    customers = [Customer(id="1", name="A", phone="11", coupon_code="VIP", discount_percent=5)]
    run(repo.save_customers(customers))
    assert run(repo.load_customers()) == customers
