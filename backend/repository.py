"""
Typed access to the persisted storefront state.

The local scope survives restarts (Mongo or memory, see database.Settings);
the session scope only lives as long as the process. Values that fail to
parse or validate are logged and replaced with the key's default.
"""
from __future__ import annotations
import logging
from typing import Any, Optional, TypeVar
from fastapi import Depends
from pydantic import BaseModel, TypeAdapter, ValidationError

from database import KeyValueStore, get_local_store, get_session_store, read_json, write_json
from schemas import (
    CarouselImage,
    Category,
    Customer,
    CustomerInfo,
    DeliveryMethod,
    GlobalCoupon,
    PaymentMethod,
    Product,
    SocialLinks,
    StoreInfo,
    ThemeColors,
    CartItem,
)

logger = logging.getLogger(__name__)

PRODUCT_LIST = "product_list"
PRODUCT_CATEGORIES = "product_categories"
GLOBAL_COUPON_CODE = "global_coupon_code"
GLOBAL_DISCOUNT_PERCENT = "global_discount_percent"
CUSTOMER_DATABASE = "customer_database"
CART = "cart"
APPLIED_COUPON = "applied_coupon"
DISCOUNT = "discount"
DELIVERY_METHOD = "delivery_method"
PAYMENT_METHOD = "payment_method"
CUSTOMER_INFO = "customer_info"
COOKIES_ACCEPTED = "cookies_accepted"
COOKIES_REJECTED = "cookies_rejected"
IS_LOGGED_IN = "is_logged_in"
USER_EMAIL = "user_email"
STORE_INFO = "store_info"
THEME_COLORS = "theme_colors"
SOCIAL_LINKS = "social_links"
CAROUSEL_IMAGES = "carousel_images"

M = TypeVar("M", bound=BaseModel)


class StoreRepository:
    def __init__(self, local: KeyValueStore, session: KeyValueStore):
        self.local = local
        self.session = session

    # ---------------------- helpers ----------------------

    async def _load_list(self, key: str, model: type[M]) -> Optional[list[M]]:
        if await self.local.get(key) is None:
            return None
        raw = await read_json(self.local, key, [])
        try:
            return TypeAdapter(list[model]).validate_python(raw)
        except ValidationError as e:
            logger.warning("Invalid list under %r, using empty list: %s", key, e)
            return []

    async def _save_list(self, key: str, items: list[BaseModel]) -> None:
        await write_json(self.local, key, [i.model_dump(mode="json") for i in items])

    async def _load_model(self, key: str, model: type[M]) -> M:
        raw = await read_json(self.local, key)
        if raw is None:
            return model()
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            logger.warning("Invalid document under %r, using defaults: %s", key, e)
            return model()

    async def _save_model(self, key: str, doc: BaseModel) -> None:
        await write_json(self.local, key, doc.model_dump(mode="json"))

    async def _load_number(self, key: str) -> float:
        raw = await read_json(self.local, key, 0)
        try:
            return float(raw)
        except (TypeError, ValueError):
            logger.warning("Invalid number under %r, using 0", key)
            return 0.0

    # ---------------------- catalog ----------------------

    async def load_products(self) -> list[Product]:
        return await self._load_list(PRODUCT_LIST, Product) or []

    async def save_products(self, products: list[Product]) -> None:
        await self._save_list(PRODUCT_LIST, products)

    async def load_categories(self) -> Optional[list[Category]]:
        """None means nothing was ever stored, so defaults still apply"""
        return await self._load_list(PRODUCT_CATEGORIES, Category)

    async def save_categories(self, categories: list[Category]) -> None:
        await self._save_list(PRODUCT_CATEGORIES, categories)

    async def reset_categories(self) -> None:
        await self.local.delete(PRODUCT_CATEGORIES)

    # ---------------------- coupons ----------------------

    async def load_global_coupon(self) -> GlobalCoupon:
        code = await read_json(self.local, GLOBAL_COUPON_CODE, "")
        percent = await self._load_number(GLOBAL_DISCOUNT_PERCENT)
        if not isinstance(code, str):
            logger.warning("Invalid global coupon code, ignoring it")
            code = ""
        return GlobalCoupon(code=code, discount_percent=min(100.0, max(0.0, percent)))

    async def save_global_coupon(self, coupon: GlobalCoupon) -> None:
        await write_json(self.local, GLOBAL_COUPON_CODE, coupon.code)
        await write_json(self.local, GLOBAL_DISCOUNT_PERCENT, coupon.discount_percent)

    async def clear_global_coupon(self) -> None:
        await self.local.delete(GLOBAL_COUPON_CODE)
        await self.local.delete(GLOBAL_DISCOUNT_PERCENT)

    # ---------------------- customers ----------------------

    async def load_customers(self) -> list[Customer]:
        return await self._load_list(CUSTOMER_DATABASE, Customer) or []

    async def save_customers(self, customers: list[Customer]) -> None:
        await self._save_list(CUSTOMER_DATABASE, customers)

    async def load_customer_info(self) -> CustomerInfo:
        return await self._load_model(CUSTOMER_INFO, CustomerInfo)

    async def save_customer_info(self, info: CustomerInfo) -> None:
        await self._save_model(CUSTOMER_INFO, info)

    # ---------------------- cart ----------------------

    async def load_cart_items(self) -> list[CartItem]:
        return await self._load_list(CART, CartItem) or []

    async def load_applied_coupon(self) -> str:
        code = await read_json(self.local, APPLIED_COUPON, "")
        return code if isinstance(code, str) else ""

    async def load_discount(self) -> float:
        discount = await self._load_number(DISCOUNT)
        if not 0 <= discount <= 100:
            logger.warning("Discount %r out of range, using 0", discount)
            return 0.0
        return discount

    async def save_cart_state(self, items: list[CartItem], applied_coupon: str, discount: float) -> None:
        await self._save_list(CART, items)
        await write_json(self.local, APPLIED_COUPON, applied_coupon)
        await write_json(self.local, DISCOUNT, discount)

    async def load_delivery_method(self) -> DeliveryMethod:
        value = await read_json(self.local, DELIVERY_METHOD, DeliveryMethod.pickup.value)
        try:
            return DeliveryMethod(value)
        except ValueError:
            logger.warning("Unknown delivery method %r, using pickup", value)
            return DeliveryMethod.pickup

    async def save_delivery_method(self, method: DeliveryMethod) -> None:
        await write_json(self.local, DELIVERY_METHOD, method.value)

    async def load_payment_method(self) -> PaymentMethod:
        value = await read_json(self.local, PAYMENT_METHOD, PaymentMethod.money.value)
        try:
            return PaymentMethod(value)
        except ValueError:
            logger.warning("Unknown payment method %r, using money", value)
            return PaymentMethod.money

    async def save_payment_method(self, method: PaymentMethod) -> None:
        await write_json(self.local, PAYMENT_METHOD, method.value)

    # ---------------------- store content ----------------------

    async def load_store_info(self) -> StoreInfo:
        return await self._load_model(STORE_INFO, StoreInfo)

    async def save_store_info(self, info: StoreInfo) -> None:
        await self._save_model(STORE_INFO, info)

    async def load_theme(self) -> ThemeColors:
        return await self._load_model(THEME_COLORS, ThemeColors)

    async def save_theme(self, theme: ThemeColors) -> None:
        await self._save_model(THEME_COLORS, theme)

    async def load_social_links(self) -> SocialLinks:
        return await self._load_model(SOCIAL_LINKS, SocialLinks)

    async def save_social_links(self, links: SocialLinks) -> None:
        await self._save_model(SOCIAL_LINKS, links)

    async def load_carousel(self) -> list[CarouselImage]:
        return await self._load_list(CAROUSEL_IMAGES, CarouselImage) or []

    async def save_carousel(self, images: list[CarouselImage]) -> None:
        await self._save_list(CAROUSEL_IMAGES, images)

    # ---------------------- flags ----------------------

    async def _flag(self, store: KeyValueStore, key: str) -> bool:
        return await read_json(store, key, False) is True

    async def load_consent(self) -> tuple[bool, bool]:
        return await self._flag(self.local, COOKIES_ACCEPTED), await self._flag(self.local, COOKIES_REJECTED)

    async def save_consent_flag(self, key: str) -> None:
        await write_json(self.local, key, True)

    async def load_login(self) -> tuple[bool, Optional[str]]:
        for store in (self.local, self.session):
            if await self._flag(store, IS_LOGGED_IN):
                email: Any = await read_json(store, USER_EMAIL)
                return True, email if isinstance(email, str) else None
        return False, None

    async def save_login(self, email: str, remember: bool) -> None:
        store = self.local if remember else self.session
        await write_json(store, IS_LOGGED_IN, True)
        await write_json(store, USER_EMAIL, email)

    async def clear_login(self) -> None:
        for store in (self.local, self.session):
            await store.delete(IS_LOGGED_IN)
            await store.delete(USER_EMAIL)


async def get_repository(local=Depends(get_local_store), session=Depends(get_session_store)) -> StoreRepository:
    return StoreRepository(local, session)
