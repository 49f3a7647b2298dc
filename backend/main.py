from __future__ import annotations
import logging
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Optional

from auth import check_credentials, require_admin
from cart import Cart
from catalog import Catalog, default_categories, validate_image
from coupons import normalize_global_coupon, resolve_coupon, stamp_products
from customers import CustomerLedger, to_client
from database import settings
from errors import StoreError
from logger import setup_logging
from orders import build_summary
from repository import COOKIES_ACCEPTED, COOKIES_REJECTED, StoreRepository, get_repository
from schemas import (
    AuthStatus,
    CarouselImage,
    CartAdd,
    CartOut,
    Category,
    CategoryIn,
    ConsentOut,
    CouponIn,
    CouponResolution,
    CouponScope,
    CustomerInfo,
    CustomerOut,
    DeliveryIn,
    GlobalCoupon,
    LoginIn,
    OrderSummary,
    PaymentIn,
    PersonalCouponIn,
    Product,
    ProductIn,
    ProductUpdate,
    RatingIn,
    SocialLinks,
    StoreInfo,
    ThemeColors,
)

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Loja Online API")

# Allow all origins for dev preview
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

# Utils

async def load_catalog(repo: StoreRepository) -> Catalog:
    categories = await repo.load_categories()
    if categories is None:
        categories = default_categories()
        await repo.save_categories(categories)
    return Catalog(await repo.load_products(), categories)

async def save_catalog(repo: StoreRepository, catalog: Catalog) -> None:
    await repo.save_products(catalog.products)
    await repo.save_categories(catalog.categories)

async def load_cart(repo: StoreRepository) -> Cart:
    return Cart(await repo.load_cart_items(), await repo.load_applied_coupon(), await repo.load_discount())

async def save_cart(repo: StoreRepository, cart: Cart) -> None:
    await repo.save_cart_state(cart.items, cart.applied_coupon, cart.discount)

async def cart_to_client(repo: StoreRepository, cart: Cart) -> CartOut:
    return CartOut(
        items=cart.items,
        item_count=cart.item_count(),
        subtotal=cart.subtotal(),
        applied_coupon=cart.applied_coupon,
        discount=cart.discount,
        total=cart.total(),
        delivery_method=await repo.load_delivery_method(),
        payment_method=await repo.load_payment_method(),
    )

@app.get("/")
async def root():
    return {"message": "Loja Online Backend Running"}

@app.get("/test")
async def test(repo: StoreRepository = Depends(get_repository)):
    try:
        products = await repo.load_products()
        return {
            "backend": "✅ Running",
            "store_backend": settings.STORE_BACKEND,
            "database_name": settings.DATABASE_NAME if settings.STORE_BACKEND == "mongo" else None,
            "products": len(products),
        }
    except Exception as e:
        return {"backend": "Error", "error": str(e)}

class SeedResponse(BaseModel):
    inserted: int

@app.post("/seed", response_model=SeedResponse)
async def seed_products(repo: StoreRepository = Depends(get_repository)):
    # Insert only if the product list is empty
    catalog = await load_catalog(repo)
    inserted = catalog.seed()
    if inserted:
        await save_catalog(repo, catalog)
    return SeedResponse(inserted=inserted)

# ---------------------- Catalog ----------------------

@app.get("/api/products", response_model=list[Product])
async def list_products(
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    repo: StoreRepository = Depends(get_repository),
):
    catalog = await load_catalog(repo)
    return catalog.filter_products(q, category)

@app.get("/api/products/{product_id}", response_model=Product)
async def get_product(product_id: int, repo: StoreRepository = Depends(get_repository)):
    catalog = await load_catalog(repo)
    return catalog.find_product(product_id)

@app.get("/api/categories", response_model=list[Category])
async def list_categories(repo: StoreRepository = Depends(get_repository)):
    catalog = await load_catalog(repo)
    return catalog.categories

@app.get("/api/storefront/categories", response_model=list[str])
async def storefront_categories(repo: StoreRepository = Depends(get_repository)):
    catalog = await load_catalog(repo)
    return catalog.storefront_categories()

# ---------------------- Store content ----------------------

@app.get("/api/store-info", response_model=StoreInfo)
async def get_store_info(repo: StoreRepository = Depends(get_repository)):
    return await repo.load_store_info()

@app.get("/api/theme", response_model=ThemeColors)
async def get_theme(repo: StoreRepository = Depends(get_repository)):
    return await repo.load_theme()

@app.get("/api/social-links", response_model=SocialLinks)
async def get_social_links(repo: StoreRepository = Depends(get_repository)):
    return await repo.load_social_links()

@app.get("/api/carousel", response_model=list[CarouselImage])
async def get_carousel(repo: StoreRepository = Depends(get_repository)):
    return await repo.load_carousel()

# ---------------------- Cart ----------------------

@app.get("/api/cart", response_model=CartOut)
async def get_cart(repo: StoreRepository = Depends(get_repository)):
    return await cart_to_client(repo, await load_cart(repo))

@app.post("/api/cart/items", response_model=CartOut)
async def add_to_cart(payload: CartAdd, repo: StoreRepository = Depends(get_repository)):
    catalog = await load_catalog(repo)
    product = catalog.find_product(payload.product_id)
    cart = await load_cart(repo)
    cart.add_item(product)
    await save_cart(repo, cart)
    return await cart_to_client(repo, cart)

@app.delete("/api/cart/items/{product_id}", response_model=CartOut)
async def remove_from_cart(product_id: int, repo: StoreRepository = Depends(get_repository)):
    cart = await load_cart(repo)
    cart.remove_item(product_id)
    await save_cart(repo, cart)
    return await cart_to_client(repo, cart)

@app.delete("/api/cart", response_model=CartOut)
async def clear_cart(repo: StoreRepository = Depends(get_repository)):
    cart = await load_cart(repo)
    cart.clear()
    await save_cart(repo, cart)
    return await cart_to_client(repo, cart)

@app.post("/api/cart/coupon", response_model=CouponResolution)
async def apply_coupon(payload: CouponIn, repo: StoreRepository = Depends(get_repository)):
    resolution = resolve_coupon(
        payload.code,
        await repo.load_customer_info(),
        await repo.load_customers(),
        await repo.load_global_coupon(),
        await repo.load_products(),
    )
    if resolution.valid:
        cart = await load_cart(repo)
        cart.apply_coupon(resolution)
        await save_cart(repo, cart)
    return resolution

@app.delete("/api/cart/coupon", response_model=CartOut)
async def remove_coupon(repo: StoreRepository = Depends(get_repository)):
    cart = await load_cart(repo)
    cart.remove_coupon()
    await save_cart(repo, cart)
    return await cart_to_client(repo, cart)

@app.put("/api/cart/delivery", response_model=CartOut)
async def set_delivery(payload: DeliveryIn, repo: StoreRepository = Depends(get_repository)):
    await repo.save_delivery_method(payload.method)
    return await cart_to_client(repo, await load_cart(repo))

@app.put("/api/cart/payment", response_model=CartOut)
async def set_payment(payload: PaymentIn, repo: StoreRepository = Depends(get_repository)):
    await repo.save_payment_method(payload.method)
    return await cart_to_client(repo, await load_cart(repo))

@app.get("/api/customer-info", response_model=CustomerInfo)
async def get_customer_info(repo: StoreRepository = Depends(get_repository)):
    return await repo.load_customer_info()

@app.put("/api/customer-info", response_model=CustomerInfo)
async def set_customer_info(info: CustomerInfo, repo: StoreRepository = Depends(get_repository)):
    await repo.save_customer_info(info)
    return info

@app.post("/api/checkout", response_model=OrderSummary)
async def checkout(repo: StoreRepository = Depends(get_repository)):
    cart = await load_cart(repo)
    info = await repo.load_customer_info()
    ledger = CustomerLedger(await repo.load_customers())

    # The coupon was resolved for whoever applied it; price for the current customer
    resolution = None
    if cart.applied_coupon:
        resolution = resolve_coupon(
            cart.applied_coupon, info, ledger.customers, await repo.load_global_coupon(), await repo.load_products()
        )
        if resolution.valid:
            cart.apply_coupon(resolution)
        else:
            logger.info("Coupon %s no longer applies to %s, dropped at checkout", cart.applied_coupon, info.name)
            cart.remove_coupon()

    summary = build_summary(
        cart,
        info,
        await repo.load_delivery_method(),
        await repo.load_payment_method(),
        await repo.load_store_info(),
    )

    if resolution is not None and resolution.valid and resolution.scope == CouponScope.personal and resolution.is_one_time_use:
        ledger.consume_coupon(resolution.code)
    ledger.register(info)
    await repo.save_customers(ledger.customers)

    cart.clear()
    await save_cart(repo, cart)
    return summary

# ---------------------- Cookie consent ----------------------

async def consent_state(repo: StoreRepository) -> ConsentOut:
    accepted, rejected = await repo.load_consent()
    return ConsentOut(accepted=accepted, rejected=rejected, show_banner=not accepted)

@app.get("/api/consent", response_model=ConsentOut)
async def get_consent(repo: StoreRepository = Depends(get_repository)):
    return await consent_state(repo)

@app.post("/api/consent/accept", response_model=ConsentOut)
async def accept_cookies(repo: StoreRepository = Depends(get_repository)):
    await repo.save_consent_flag(COOKIES_ACCEPTED)
    return await consent_state(repo)

@app.post("/api/consent/reject", response_model=ConsentOut)
async def reject_cookies(repo: StoreRepository = Depends(get_repository)):
    await repo.save_consent_flag(COOKIES_REJECTED)
    return await consent_state(repo)

# ---------------------- Auth ----------------------

@app.post("/api/auth/login", response_model=AuthStatus)
async def login(payload: LoginIn, repo: StoreRepository = Depends(get_repository)):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    if not check_credentials(payload.email, payload.password):
        logger.warning("Failed admin login for %s", payload.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")
    await repo.save_login(payload.email, payload.remember_me)
    logger.info("Admin login: %s", payload.email)
    return AuthStatus(logged_in=True, email=payload.email)

@app.post("/api/auth/logout", response_model=AuthStatus)
async def logout(repo: StoreRepository = Depends(get_repository)):
    await repo.clear_login()
    return AuthStatus(logged_in=False)

@app.get("/api/auth/status", response_model=AuthStatus)
async def auth_status(repo: StoreRepository = Depends(get_repository)):
    logged_in, email = await repo.load_login()
    return AuthStatus(logged_in=logged_in, email=email)

# ---------------------- Admin: products & categories ----------------------

admin = [Depends(require_admin)]

@app.post("/api/admin/products", response_model=Product, dependencies=admin)
async def create_product(payload: ProductIn, repo: StoreRepository = Depends(get_repository)):
    catalog = await load_catalog(repo)
    product = catalog.add_product(payload)
    await save_catalog(repo, catalog)
    return product

@app.put("/api/admin/products/{product_id}", response_model=Product, dependencies=admin)
async def update_product(product_id: int, payload: ProductUpdate, repo: StoreRepository = Depends(get_repository)):
    catalog = await load_catalog(repo)
    product = catalog.update_product(product_id, payload)
    await save_catalog(repo, catalog)
    return product

@app.delete("/api/admin/products/{product_id}", dependencies=admin)
async def delete_product(product_id: int, repo: StoreRepository = Depends(get_repository)):
    catalog = await load_catalog(repo)
    catalog.delete_product(product_id)
    await save_catalog(repo, catalog)
    return {"deleted": product_id}

@app.post("/api/admin/categories", response_model=Category, dependencies=admin)
async def create_category(payload: CategoryIn, repo: StoreRepository = Depends(get_repository)):
    catalog = await load_catalog(repo)
    category = catalog.add_category(payload.name)
    await save_catalog(repo, catalog)
    return category

@app.put("/api/admin/categories/{category_id}", response_model=Category, dependencies=admin)
async def rename_category(category_id: str, payload: CategoryIn, repo: StoreRepository = Depends(get_repository)):
    catalog = await load_catalog(repo)
    category = catalog.rename_category(category_id, payload.name)
    await save_catalog(repo, catalog)
    return category

@app.delete("/api/admin/categories/{category_id}", dependencies=admin)
async def delete_category(category_id: str, repo: StoreRepository = Depends(get_repository)):
    catalog = await load_catalog(repo)
    moved = catalog.delete_category(category_id)
    await save_catalog(repo, catalog)
    return {"deleted": category_id, "reassigned": moved}

@app.delete("/api/admin/categories", response_model=list[Category], dependencies=admin)
async def reset_categories(repo: StoreRepository = Depends(get_repository)):
    await repo.reset_categories()
    catalog = await load_catalog(repo)
    return catalog.categories

# ---------------------- Admin: coupons ----------------------

@app.get("/api/admin/coupon", response_model=GlobalCoupon, dependencies=admin)
async def get_global_coupon(repo: StoreRepository = Depends(get_repository)):
    return await repo.load_global_coupon()

@app.put("/api/admin/coupon", response_model=GlobalCoupon, dependencies=admin)
async def save_global_coupon(payload: GlobalCoupon, repo: StoreRepository = Depends(get_repository)):
    coupon = normalize_global_coupon(payload)
    await repo.save_global_coupon(coupon)
    await repo.save_products(stamp_products(await repo.load_products(), coupon))
    if coupon.code and coupon.discount_percent > 0:
        logger.info("Global coupon %s active at %s%%", coupon.code, coupon.discount_percent)
    else:
        logger.info("Global coupon disabled")
    return coupon

@app.delete("/api/admin/coupon", response_model=GlobalCoupon, dependencies=admin)
async def clear_global_coupon(repo: StoreRepository = Depends(get_repository)):
    await repo.clear_global_coupon()
    await repo.save_products(stamp_products(await repo.load_products(), GlobalCoupon()))
    logger.info("Global coupon removed")
    return GlobalCoupon()

# ---------------------- Admin: customers ----------------------

@app.get("/api/admin/customers", response_model=list[CustomerOut], dependencies=admin)
async def list_customers(
    q: Optional[str] = Query(None),
    sort_by: str = Query("name"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    active_coupons_only: bool = Query(False),
    repo: StoreRepository = Depends(get_repository),
):
    ledger = CustomerLedger(await repo.load_customers())
    return [to_client(c) for c in ledger.search(q, sort_by, order, active_coupons_only)]

@app.put("/api/admin/customers/{customer_id}/rating", response_model=CustomerOut, dependencies=admin)
async def set_customer_rating(customer_id: str, payload: RatingIn, repo: StoreRepository = Depends(get_repository)):
    ledger = CustomerLedger(await repo.load_customers())
    customer = ledger.set_rating(customer_id, payload.rating)
    await repo.save_customers(ledger.customers)
    return to_client(customer)

@app.put("/api/admin/customers/{customer_id}/coupon", response_model=CustomerOut, dependencies=admin)
async def set_customer_coupon(customer_id: str, payload: PersonalCouponIn, repo: StoreRepository = Depends(get_repository)):
    ledger = CustomerLedger(await repo.load_customers())
    customer = ledger.assign_coupon(customer_id, payload.coupon_code, payload.discount_percent, payload.is_one_time_use)
    await repo.save_customers(ledger.customers)
    return to_client(customer)

@app.delete("/api/admin/customers/{customer_id}/coupon", response_model=CustomerOut, dependencies=admin)
async def clear_customer_coupon(customer_id: str, repo: StoreRepository = Depends(get_repository)):
    ledger = CustomerLedger(await repo.load_customers())
    customer = ledger.clear_coupon(customer_id)
    await repo.save_customers(ledger.customers)
    return to_client(customer)

@app.delete("/api/admin/customers/{customer_id}", dependencies=admin)
async def delete_customer(customer_id: str, repo: StoreRepository = Depends(get_repository)):
    ledger = CustomerLedger(await repo.load_customers())
    ledger.delete(customer_id)
    await repo.save_customers(ledger.customers)
    return {"deleted": customer_id}

# ---------------------- Admin: store content ----------------------

@app.put("/api/admin/store-info", response_model=StoreInfo, dependencies=admin)
async def save_store_info(payload: StoreInfo, repo: StoreRepository = Depends(get_repository)):
    validate_image(payload.logo_url, "logo")
    await repo.save_store_info(payload)
    return payload

@app.put("/api/admin/theme", response_model=ThemeColors, dependencies=admin)
async def save_theme(payload: ThemeColors, repo: StoreRepository = Depends(get_repository)):
    await repo.save_theme(payload)
    return payload

@app.put("/api/admin/social-links", response_model=SocialLinks, dependencies=admin)
async def save_social_links(payload: SocialLinks, repo: StoreRepository = Depends(get_repository)):
    await repo.save_social_links(payload)
    return payload

@app.put("/api/admin/carousel", response_model=list[CarouselImage], dependencies=admin)
async def save_carousel(payload: list[CarouselImage], repo: StoreRepository = Depends(get_repository)):
    for image in payload:
        validate_image(image.url, "carousel image")
    await repo.save_carousel(payload)
    return payload

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
