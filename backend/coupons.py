"""
Coupon resolution.

A submitted code is checked, in order, against:
  1. personal coupons in the customer ledger (honored only for their owner)
  2. the single global coupon
  3. legacy coupon codes stamped on products
The first match wins. A personal coupon owned by somebody else is rejected
with its own reason instead of falling through to "not found".
"""
from __future__ import annotations
import logging
from typing import Iterable, Optional

from schemas import CouponResolution, CouponScope, Customer, CustomerInfo, GlobalCoupon, Product

logger = logging.getLogger(__name__)

REASON_EMPTY = "empty"
REASON_RESERVED = "reserved"
REASON_NOT_FOUND = "not_found"

RESERVED_MESSAGE = "coupon reserved for another customer"
EMPTY_MESSAGE = "coupon code is empty"
NOT_FOUND_MESSAGE = "coupon not found"


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def _find_personal(customers: Iterable[Customer], code: str) -> Optional[Customer]:
    for customer in customers:
        if customer.coupon_code and customer.coupon_code.strip().upper() == code and customer.discount_percent >= 0:
            return customer
    return None


def owns_coupon(owner: Customer, identity: CustomerInfo) -> bool:
    """Phone must match exactly, or name case-insensitively"""
    phone_match = bool(identity.phone) and owner.phone == identity.phone
    name_match = bool(identity.name) and owner.name.lower() == identity.name.lower()
    return phone_match or name_match


def resolve_coupon(
    code: Optional[str],
    identity: CustomerInfo,
    customers: Iterable[Customer],
    global_coupon: GlobalCoupon,
    products: Iterable[Product],
) -> CouponResolution:
    normalized = normalize_code(code)
    if not normalized:
        return CouponResolution(valid=False, reason=REASON_EMPTY, message=EMPTY_MESSAGE)

    owner = _find_personal(customers, normalized)
    if owner is not None:
        if not owns_coupon(owner, identity):
            logger.info("Personal coupon %s rejected: owner does not match current customer", normalized)
            return CouponResolution(
                valid=False,
                code=normalized,
                scope=CouponScope.personal,
                reason=REASON_RESERVED,
                message=RESERVED_MESSAGE,
            )
        return CouponResolution(
            valid=True,
            code=normalized,
            discount_percent=owner.discount_percent,
            scope=CouponScope.personal,
            is_one_time_use=owner.is_one_time_use,
        )

    # A 0% global coupon is still a valid (no-op) match
    if global_coupon.code and global_coupon.code.strip().upper() == normalized:
        return CouponResolution(
            valid=True,
            code=normalized,
            discount_percent=global_coupon.discount_percent,
            scope=CouponScope.global_,
        )

    for product in products:
        if product.coupon_code and product.coupon_code.strip().upper() == normalized:
            return CouponResolution(
                valid=True,
                code=normalized,
                discount_percent=product.discount_percent or 0,
                scope=CouponScope.legacy,
            )

    logger.info("No coupon found for %s", normalized)
    return CouponResolution(valid=False, code=normalized, reason=REASON_NOT_FOUND, message=NOT_FOUND_MESSAGE)


def stamp_products(products: list[Product], coupon: GlobalCoupon) -> list[Product]:
    """Copy the global coupon onto every product's legacy coupon fields"""
    return [
        p.model_copy(update={"coupon_code": coupon.code, "discount_percent": coupon.discount_percent})
        for p in products
    ]


def normalize_global_coupon(coupon: GlobalCoupon) -> GlobalCoupon:
    return GlobalCoupon(code=normalize_code(coupon.code), discount_percent=coupon.discount_percent)
