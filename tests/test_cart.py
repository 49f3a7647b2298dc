import random

from cart import Cart
from schemas import CouponResolution, CouponScope, Product

PHONE = Product(id=1, name="Phone", price=100.0)
CASE = Product(id=2, name="Case", price=25.5)


def test_add_item_increments_quantity():
    cart = Cart()
    cart.add_item(PHONE)
    cart.add_item(PHONE)
    cart.add_item(CASE)
    assert [(i.id, i.quantity) for i in cart.items] == [(1, 2), (2, 1)]
    assert cart.item_count() == 3


def test_remove_item_drops_entry_at_zero():
    cart = Cart()
    cart.add_item(PHONE)
    cart.add_item(PHONE)
    cart.remove_item(1)
    assert cart.items[0].quantity == 1
    cart.remove_item(1)
    assert cart.items == []
    cart.remove_item(1)
    assert cart.items == []


def test_quantities_stay_positive_for_any_sequence():
    rng = random.Random(7)
    cart = Cart()
    for _ in range(500):
        product = rng.choice([PHONE, CASE])
        if rng.random() < 0.5:
            cart.add_item(product)
        else:
            cart.remove_item(product.id)
        assert all(i.quantity > 0 for i in cart.items)
        assert len({i.id for i in cart.items}) == len(cart.items)


def test_subtotal_and_total_with_global_coupon():
    cart = Cart()
    cart.add_item(PHONE)
    cart.apply_coupon(CouponResolution(valid=True, code="SAVE10", discount_percent=10, scope=CouponScope.global_))
    assert cart.subtotal() == 100.0
    assert cart.total() == 90.0


def test_zero_percent_coupon_has_no_effect():
    cart = Cart()
    cart.add_item(PHONE)
    cart.add_item(CASE)
    assert cart.apply_coupon(CouponResolution(valid=True, code="FREE", discount_percent=0))
    assert cart.total() == cart.subtotal() == 125.5


def test_invalid_resolution_leaves_discount():
    cart = Cart(applied_coupon="SAVE10", discount=10)
    assert not cart.apply_coupon(CouponResolution(valid=False, code="VIP20", reason="reserved"))
    assert cart.applied_coupon == "SAVE10"
    assert cart.discount == 10


def test_clear_resets_coupon():
    cart = Cart(applied_coupon="SAVE10", discount=10)
    cart.add_item(PHONE)
    cart.clear()
    assert cart.items == []
    assert cart.applied_coupon == ""
    assert cart.discount == 0
    assert cart.total() == 0


def test_snapshot_is_independent_of_product():
    cart = Cart()
    cart.add_item(PHONE)
    assert cart.items[0].price == 100.0
    assert PHONE.price == 100.0
