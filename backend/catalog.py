"""
Products and categories.

Products point at categories by *name*, so every mutation that touches a
category name (rename, delete) rewrites the products that carry it, and every
product write checks that its category exists.
"""
from __future__ import annotations
import base64
import binascii
import logging
import time
import uuid
from typing import Optional

from errors import ConflictError, NotFoundError, StoreError
from schemas import Category, Product, ProductIn, ProductUpdate

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "Outros"
ALL_CATEGORIES = "Todas"
DEFAULT_CATEGORY_NAMES = ["Smartphones", "Notebooks", "Acessórios", "Wearables", "Tablets", "Câmeras"]
MAX_PRODUCTS = 20
MAX_IMAGE_BYTES = 2 * 1024 * 1024

DEMO_PRODUCTS: list[dict] = [
    {
        "name": "Smartphone Galaxy Pro",
        "description": "Tela AMOLED de 6.5 polegadas e câmera tripla.",
        "price": 2499.9,
        "category": "Smartphones",
        "is_promotion": True,
        "image": "https://images.unsplash.com/photo-1511707171634-5f897ff02aa9?w=800&q=80",
    },
    {
        "name": "Notebook Ultra 14",
        "description": "Processador de última geração e SSD de 512GB.",
        "price": 4599.0,
        "category": "Notebooks",
        "image": "https://images.unsplash.com/photo-1496181133206-80ce9b88a853?w=800&q=80",
    },
    {
        "name": "Fone Bluetooth Max",
        "description": "Cancelamento de ruído e 30 horas de bateria.",
        "price": 399.9,
        "category": "Acessórios",
        "image": "https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=800&q=80",
    },
    {
        "name": "Smartwatch Fit",
        "description": "Monitor cardíaco e GPS integrado.",
        "price": 899.0,
        "category": "Wearables",
        "image": "https://images.unsplash.com/photo-1523275335684-37898b6baf30?w=800&q=80",
    },
]


def default_categories() -> list[Category]:
    return [Category(id=uuid.uuid4().hex, name=name) for name in DEFAULT_CATEGORY_NAMES]


def validate_image(value: str, field: str = "image") -> str:
    """Accept http(s) URLs or base64 image data URLs up to MAX_IMAGE_BYTES"""
    if not value or value.startswith(("http://", "https://")):
        return value
    if not value.startswith("data:image/") or ";base64," not in value:
        raise StoreError(f"{field} must be an image URL or an image data URL")
    payload = value.split(";base64,", 1)[1]
    try:
        size = len(base64.b64decode(payload, validate=True))
    except (binascii.Error, ValueError):
        raise StoreError(f"{field} is not valid base64 image data")
    if size > MAX_IMAGE_BYTES:
        raise StoreError(f"{field} exceeds the 2MB limit")
    return value


class Catalog:
    def __init__(self, products: list[Product], categories: list[Category]):
        self.products = products
        self.categories = categories

    # ---------------------- Categories ----------------------

    def find_category(self, category_id: str) -> Category:
        for category in self.categories:
            if category.id == category_id:
                return category
        raise NotFoundError("Category not found")

    def category_named(self, name: str) -> Optional[Category]:
        wanted = name.lower()
        for category in self.categories:
            if category.name.lower() == wanted:
                return category
        return None

    def _check_name_free(self, name: str, exclude_id: Optional[str] = None) -> None:
        if any(c.id != exclude_id and c.name.lower() == name.lower() for c in self.categories):
            raise ConflictError("A category with this name already exists")

    def add_category(self, name: str) -> Category:
        name = name.strip()
        if not name:
            raise StoreError("Category name cannot be empty")
        self._check_name_free(name)
        category = Category(id=uuid.uuid4().hex, name=name)
        self.categories.append(category)
        logger.info("Category added: %s", name)
        return category

    def rename_category(self, category_id: str, new_name: str) -> Category:
        new_name = new_name.strip()
        if not new_name:
            raise StoreError("Category name cannot be empty")
        category = self.find_category(category_id)
        self._check_name_free(new_name, exclude_id=category_id)

        old_name = category.name
        renamed = category.model_copy(update={"name": new_name})
        self.categories = [renamed if c.id == category_id else c for c in self.categories]
        self.products = [
            p.model_copy(update={"category": new_name}) if p.category == old_name else p
            for p in self.products
        ]
        logger.info("Category renamed: %s -> %s", old_name, new_name)
        return renamed

    def delete_category(self, category_id: str) -> int:
        """Remove a category and move its products to the fallback one.

        Returns the number of products reassigned.
        """
        category = self.find_category(category_id)
        if category.name.lower() == FALLBACK_CATEGORY.lower():
            raise StoreError(f'The "{FALLBACK_CATEGORY}" category cannot be deleted')

        fallback = self.category_named(FALLBACK_CATEGORY)
        if fallback is None:
            fallback = Category(id=uuid.uuid4().hex, name=FALLBACK_CATEGORY)
            self.categories.append(fallback)
            logger.info('Fallback category "%s" created', FALLBACK_CATEGORY)

        moved = 0
        products = []
        for p in self.products:
            if p.category == category.name:
                p = p.model_copy(update={"category": fallback.name})
                moved += 1
            products.append(p)
        self.products = products
        self.categories = [c for c in self.categories if c.id != category_id]
        logger.info("Category deleted: %s (%d products moved to %s)", category.name, moved, fallback.name)
        return moved

    # ---------------------- Products ----------------------

    def find_product(self, product_id: int) -> Product:
        for product in self.products:
            if product.id == product_id:
                return product
        raise NotFoundError("Product not found")

    def _check_category(self, name: Optional[str]) -> Optional[str]:
        if name is None:
            return None
        category = self.category_named(name)
        if category is None:
            raise StoreError(f'Category "{name}" does not exist')
        return category.name

    def _check_images(self, image: Optional[str], additional: Optional[list[str]]) -> None:
        if image is not None:
            validate_image(image)
        for extra in additional or []:
            validate_image(extra, "additional image")

    def _next_id(self) -> int:
        now = int(time.time() * 1000)
        highest = max((p.id for p in self.products), default=0)
        return max(now, highest + 1)

    def add_product(self, data: ProductIn) -> Product:
        if len(self.products) >= MAX_PRODUCTS:
            raise StoreError(f"You can add at most {MAX_PRODUCTS} products")
        category = data.category
        if category is None and self.categories:
            category = self.categories[0].name
        category = self._check_category(category)
        self._check_images(data.image, data.additional_images)

        product = Product(id=self._next_id(), **data.model_dump(exclude={"category"}), category=category)
        self.products = [product] + self.products
        logger.info("Product added: %s (%d)", product.name, product.id)
        return product

    def update_product(self, product_id: int, changes: ProductUpdate) -> Product:
        current = self.find_product(product_id)
        update = changes.model_dump(exclude_unset=True)
        if "category" in update:
            update["category"] = self._check_category(update["category"])
        self._check_images(update.get("image"), update.get("additional_images"))
        if "coupon_code" in update and update["coupon_code"] is not None:
            update["coupon_code"] = update["coupon_code"].strip().upper()
        # Unset fields keep their stored values, including the legacy coupon
        update = {k: v for k, v in update.items() if v is not None or k == "category"}

        updated = Product.model_validate({**current.model_dump(), **update})
        self.products = [updated if p.id == product_id else p for p in self.products]
        logger.info("Product updated: %d", product_id)
        return updated

    def delete_product(self, product_id: int) -> None:
        self.find_product(product_id)
        self.products = [p for p in self.products if p.id != product_id]
        logger.info("Product deleted: %d", product_id)

    def seed(self) -> int:
        if self.products:
            return 0
        for demo in DEMO_PRODUCTS:
            data = ProductIn(**demo)
            if self.category_named(data.category or "") is None:
                data.category = None
            self.add_product(data)
        return len(DEMO_PRODUCTS)

    # ---------------------- Storefront ----------------------

    def storefront_categories(self) -> list[str]:
        names = [ALL_CATEGORIES]
        for p in self.products:
            name = p.category or FALLBACK_CATEGORY
            if name not in names:
                names.append(name)
        return names

    def filter_products(self, q: Optional[str] = None, category: Optional[str] = None) -> list[Product]:
        products = self.products
        if q and q.strip():
            needle = q.strip().lower()
            products = [p for p in products if needle in p.name.lower() or needle in p.description.lower()]
        if category and category != ALL_CATEGORIES:
            products = [p for p in products if (p.category or FALLBACK_CATEGORY) == category]
        return products
