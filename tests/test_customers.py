import pytest

from customers import CustomerLedger, format_phone, has_active_coupon, whatsapp_link
from errors import NotFoundError, StoreError
from schemas import Customer, CustomerInfo


@pytest.fixture
def ledger():
    return CustomerLedger([
        Customer(id="a", name="Carla", phone="11988887777", rating=4, coupon_code="CARLA10", discount_percent=10),
        Customer(id="b", name="ana", phone="21977776666", rating=2),
        Customer(id="c", name="Bruno", phone="31966665555", rating=5, coupon_code="BRU30", discount_percent=30),
    ])


def test_format_phone():
    assert format_phone("11988887777") == "(11) 98888-7777"
    assert format_phone("(11) 3333-4444") == "(11) 3333-4444"
    assert format_phone("123") == "123"


def test_whatsapp_link_adds_country_code():
    assert whatsapp_link("(11) 98888-7777") == "https://wa.me/5511988887777"
    assert whatsapp_link("5511988887777") == "https://wa.me/5511988887777"


def test_register_upserts_by_phone(ledger):
    customer = ledger.register(CustomerInfo(name="Carla Dias", phone="11988887777"))
    assert customer.id == "a"
    assert ledger.find("a").name == "Carla Dias"
    assert ledger.find("a").coupon_code == "CARLA10"
    new = ledger.register(CustomerInfo(name="Diego", phone="41955554444"))
    assert len(ledger.customers) == 4
    assert new.rating == 0
    assert new.timestamp > 0


def test_register_requires_name_and_phone(ledger):
    with pytest.raises(StoreError):
        ledger.register(CustomerInfo(name="", phone="123"))


def test_set_rating_bounds(ledger):
    assert ledger.set_rating("b", 5).rating == 5
    with pytest.raises(StoreError):
        ledger.set_rating("b", 6)
    with pytest.raises(NotFoundError):
        ledger.set_rating("zzz", 3)


def test_assign_and_clear_coupon(ledger):
    customer = ledger.assign_coupon("b", "  ana15 ", 15, one_time_use=False)
    assert customer.coupon_code == "ana15"
    assert customer.is_one_time_use is False
    assert has_active_coupon(customer)
    with pytest.raises(StoreError):
        ledger.assign_coupon("b", "X", 120)
    cleared = ledger.clear_coupon("b")
    assert not has_active_coupon(cleared)


def test_consume_one_time_coupon(ledger):
    assert ledger.consume_coupon("CARLA10").coupon_code == ""
    ledger.assign_coupon("c", "BRU30", 30, one_time_use=False)
    assert ledger.consume_coupon("BRU30") is None
    assert ledger.find("c").coupon_code == "BRU30"


def test_search_and_sort(ledger):
    assert [c.id for c in ledger.search()] == ["b", "c", "a"]
    assert [c.id for c in ledger.search(sort_by="rating", order="desc")] == ["c", "a", "b"]
    assert [c.id for c in ledger.search(sort_by="coupon", order="desc")] == ["c", "a", "b"]
    assert [c.id for c in ledger.search(q="2197")] == ["b"]
    assert [c.id for c in ledger.search(q="BRU")] == ["c"]
    assert [c.id for c in ledger.search(active_coupons_only=True)] == ["c", "a"]


def test_search_rejects_unknown_sort(ledger):
    with pytest.raises(StoreError):
        ledger.search(sort_by="phone")


def test_delete(ledger):
    ledger.delete("a")
    assert [c.id for c in ledger.customers] == ["b", "c"]
