"""
Customer ledger: contacts captured at checkout, their star rating and their
personal coupon.
"""
from __future__ import annotations
import logging
import re
import time
import uuid
from typing import Optional

from errors import NotFoundError, StoreError
from schemas import Customer, CustomerInfo, CustomerOut

logger = logging.getLogger(__name__)

SORT_FIELDS = ("name", "rating", "coupon")


def format_phone(phone: str) -> str:
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return phone


def whatsapp_link(phone: str) -> str:
    digits = re.sub(r"\D", "", phone)
    if not digits.startswith("55"):
        digits = f"55{digits}"
    return f"https://wa.me/{digits}"


def has_active_coupon(customer: Customer) -> bool:
    return bool(customer.coupon_code.strip()) and customer.discount_percent > 0


def to_client(customer: Customer) -> CustomerOut:
    return CustomerOut(
        **customer.model_dump(),
        formatted_phone=format_phone(customer.phone),
        whatsapp_url=whatsapp_link(customer.phone),
        has_active_coupon=has_active_coupon(customer),
    )


class CustomerLedger:
    def __init__(self, customers: list[Customer]):
        self.customers = customers

    def find(self, customer_id: str) -> Customer:
        for customer in self.customers:
            if customer.id == customer_id:
                return customer
        raise NotFoundError("Customer not found")

    def find_by_phone(self, phone: str) -> Optional[Customer]:
        for customer in self.customers:
            if customer.phone == phone:
                return customer
        return None

    def _replace(self, updated: Customer) -> Customer:
        self.customers = [updated if c.id == updated.id else c for c in self.customers]
        return updated

    def register(self, info: CustomerInfo) -> Customer:
        """Upsert by phone, the ledger's natural key"""
        name = info.name.strip()
        phone = info.phone.strip()
        if not name or not phone:
            raise StoreError("Customer name and phone are required")
        existing = self.find_by_phone(phone)
        if existing is not None:
            return self._replace(existing.model_copy(update={"name": name}))
        customer = Customer(id=uuid.uuid4().hex, name=name, phone=phone, timestamp=int(time.time() * 1000))
        self.customers.append(customer)
        logger.info("Customer registered: %s", name)
        return customer

    def set_rating(self, customer_id: str, rating: int) -> Customer:
        if not 0 <= rating <= 5:
            raise StoreError("Rating must be between 0 and 5")
        return self._replace(self.find(customer_id).model_copy(update={"rating": rating}))

    def assign_coupon(self, customer_id: str, code: str, discount_percent: float, one_time_use: bool = True) -> Customer:
        if not 0 <= discount_percent <= 100:
            raise StoreError("Discount percent must be between 0 and 100")
        code = code.strip()
        if not code:
            raise StoreError("Coupon code cannot be empty")
        customer = self.find(customer_id)
        updated = customer.model_copy(
            update={"coupon_code": code, "discount_percent": discount_percent, "is_one_time_use": one_time_use}
        )
        logger.info("Personal coupon %s (%s%%) assigned to %s", code, discount_percent, customer.name)
        return self._replace(updated)

    def clear_coupon(self, customer_id: str) -> Customer:
        customer = self.find(customer_id)
        return self._replace(customer.model_copy(update={"coupon_code": "", "discount_percent": 0}))

    def consume_coupon(self, code: str) -> Optional[Customer]:
        """Drop a one-time personal coupon once it has been used"""
        for customer in self.customers:
            if customer.coupon_code and customer.coupon_code.strip().upper() == code and customer.is_one_time_use:
                logger.info("One-time coupon %s consumed by %s", code, customer.name)
                return self.clear_coupon(customer.id)
        return None

    def delete(self, customer_id: str) -> None:
        self.find(customer_id)
        self.customers = [c for c in self.customers if c.id != customer_id]

    def search(
        self,
        q: Optional[str] = None,
        sort_by: str = "name",
        order: str = "asc",
        active_coupons_only: bool = False,
    ) -> list[Customer]:
        if sort_by not in SORT_FIELDS:
            raise StoreError(f"sort_by must be one of {', '.join(SORT_FIELDS)}")
        reverse = order == "desc"

        found = self.customers
        if q and q.strip():
            needle = q.strip()
            found = [c for c in found if needle.lower() in c.name.lower() or needle in c.phone]
        if active_coupons_only:
            found = [c for c in found if has_active_coupon(c)]

        if sort_by == "rating":
            return sorted(found, key=lambda c: c.rating, reverse=reverse)
        if sort_by == "coupon":
            # Customers with a coupon grouped after the rest (ascending), by percent, then name
            return sorted(
                found,
                key=lambda c: (has_active_coupon(c), c.discount_percent if has_active_coupon(c) else 0, c.name.lower()),
                reverse=reverse,
            )
        return sorted(found, key=lambda c: c.name.lower(), reverse=reverse)
