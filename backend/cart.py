from __future__ import annotations
import logging
from typing import Optional

from schemas import CartItem, CouponResolution, Product

logger = logging.getLogger(__name__)


class Cart:
    """Selected products with quantities, plus the coupon applied to them"""

    def __init__(self, items: Optional[list[CartItem]] = None, applied_coupon: str = "", discount: float = 0):
        self.items: list[CartItem] = [i for i in (items or []) if i.quantity > 0]
        self.applied_coupon = applied_coupon
        self.discount = discount

    def add_item(self, product: Product) -> CartItem:
        for index, item in enumerate(self.items):
            if item.id == product.id:
                bumped = item.model_copy(update={"quantity": item.quantity + 1})
                self.items[index] = bumped
                return bumped
        item = CartItem.model_validate({**product.model_dump(), "quantity": 1})
        self.items.append(item)
        return item

    def remove_item(self, product_id: int) -> None:
        for index, item in enumerate(self.items):
            if item.id == product_id:
                if item.quantity > 1:
                    self.items[index] = item.model_copy(update={"quantity": item.quantity - 1})
                else:
                    del self.items[index]
                return

    def item_count(self) -> int:
        return sum(i.quantity for i in self.items)

    def subtotal(self) -> float:
        return round(sum(i.price * i.quantity for i in self.items), 2)

    def total(self) -> float:
        return round(self.subtotal() * (1 - self.discount / 100), 2)

    def apply_coupon(self, resolution: CouponResolution) -> bool:
        """Keep the result of a successful resolution; ignore failures"""
        if not resolution.valid:
            return False
        self.applied_coupon = resolution.code
        self.discount = resolution.discount_percent
        logger.info("Coupon %s applied (%s%%)", resolution.code, resolution.discount_percent)
        return True

    def remove_coupon(self) -> None:
        self.applied_coupon = ""
        self.discount = 0

    def clear(self) -> None:
        self.items = []
        self.remove_coupon()
