from coupons import (
    REASON_EMPTY,
    REASON_NOT_FOUND,
    REASON_RESERVED,
    RESERVED_MESSAGE,
    normalize_code,
    resolve_coupon,
    stamp_products,
)
from schemas import CouponScope, Customer, CustomerInfo, GlobalCoupon, Product


def vip_owner(**overrides):
    data = dict(
        id="c1",
        name="Maria Souza",
        phone="5511999990000",
        coupon_code="VIP20",
        discount_percent=20,
        is_one_time_use=True,
    )
    data.update(overrides)
    return Customer(**data)


def resolve(code, identity=None, customers=(), global_coupon=None, products=()):
    return resolve_coupon(
        code,
        identity or CustomerInfo(),
        list(customers),
        global_coupon or GlobalCoupon(),
        list(products),
    )


def test_normalize_code():
    assert normalize_code("  save10 ") == "SAVE10"
    assert normalize_code(None) == ""


def test_empty_code_is_invalid():
    result = resolve("   ", global_coupon=GlobalCoupon(code="SAVE10", discount_percent=10))
    assert not result.valid
    assert result.discount_percent == 0
    assert result.reason == REASON_EMPTY


def test_personal_coupon_for_owner_by_phone():
    identity = CustomerInfo(name="Someone Else", phone="5511999990000")
    result = resolve("vip20", identity, customers=[vip_owner()])
    assert result.valid
    assert result.scope == CouponScope.personal
    assert result.discount_percent == 20
    assert result.is_one_time_use is True


def test_personal_coupon_for_owner_by_name_case_insensitive():
    identity = CustomerInfo(name="maria SOUZA", phone="")
    result = resolve("VIP20", identity, customers=[vip_owner(is_one_time_use=False)])
    assert result.valid
    assert result.is_one_time_use is False


def test_personal_coupon_reserved_for_another_customer():
    identity = CustomerInfo(name="João", phone="5511888880000")
    result = resolve("VIP20", identity, customers=[vip_owner()])
    assert not result.valid
    assert result.discount_percent == 0
    assert result.scope == CouponScope.personal
    assert result.reason == REASON_RESERVED
    assert result.message == RESERVED_MESSAGE


def test_reserved_wins_over_global_with_same_code():
    identity = CustomerInfo(name="João", phone="5511888880000")
    result = resolve(
        "VIP20",
        identity,
        customers=[vip_owner()],
        global_coupon=GlobalCoupon(code="VIP20", discount_percent=50),
    )
    assert result.reason == REASON_RESERVED


def test_blank_identity_never_matches_owner():
    result = resolve("VIP20", CustomerInfo(), customers=[vip_owner()])
    assert result.reason == REASON_RESERVED


def test_global_coupon():
    result = resolve("save10", global_coupon=GlobalCoupon(code="SAVE10", discount_percent=10))
    assert result.valid
    assert result.scope == CouponScope.global_
    assert result.discount_percent == 10
    assert result.code == "SAVE10"


def test_global_coupon_with_zero_percent_is_valid():
    result = resolve("FREE", global_coupon=GlobalCoupon(code="free", discount_percent=0))
    assert result.valid
    assert result.discount_percent == 0


def test_legacy_product_coupon():
    products = [
        Product(id=1, name="A", price=10),
        Product(id=2, name="B", price=10, coupon_code="OLD15", discount_percent=15),
    ]
    result = resolve("old15", products=products)
    assert result.valid
    assert result.scope == CouponScope.legacy
    assert result.discount_percent == 15


def test_unknown_code():
    result = resolve("NOPE", customers=[vip_owner()], global_coupon=GlobalCoupon(code="SAVE10", discount_percent=10))
    assert not result.valid
    assert result.scope == CouponScope.none
    assert result.reason == REASON_NOT_FOUND


def test_stamp_products_copies_global_coupon():
    products = [Product(id=1, name="A", price=10), Product(id=2, name="B", price=5)]
    stamped = stamp_products(products, GlobalCoupon(code="SAVE10", discount_percent=10))
    assert all(p.coupon_code == "SAVE10" and p.discount_percent == 10 for p in stamped)
    assert products[0].coupon_code == ""
