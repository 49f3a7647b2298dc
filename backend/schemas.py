from __future__ import annotations
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional

# Each model => one stored key (see repository.py)

class Product(BaseModel):
    id: int
    name: str
    description: str = ""
    price: float = Field(ge=0)
    category: Optional[str] = None
    is_promotion: bool = False
    coupon_code: str = ""
    discount_percent: float = Field(default=0, ge=0, le=100)
    image: str = ""
    additional_images: list[str] = Field(default_factory=list, max_length=3)

class ProductIn(BaseModel):
    name: str = "Novo Produto"
    description: str = "Descrição do produto"
    price: float = Field(default=0, ge=0)
    category: Optional[str] = None
    is_promotion: bool = False
    image: str = ""
    additional_images: list[str] = Field(default_factory=list, max_length=3)

class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    is_promotion: Optional[bool] = None
    coupon_code: Optional[str] = None
    discount_percent: Optional[float] = Field(default=None, ge=0, le=100)
    image: Optional[str] = None
    additional_images: Optional[list[str]] = Field(default=None, max_length=3)

class Category(BaseModel):
    id: str
    name: str

class CategoryIn(BaseModel):
    name: str

class CartItem(Product):
    quantity: int = Field(default=1, ge=1)

class CartAdd(BaseModel):
    product_id: int

class DeliveryMethod(str, Enum):
    pickup = "pickup"
    delivery = "delivery"

class PaymentMethod(str, Enum):
    money = "money"
    pix = "pix"
    credit = "credit"
    debit = "debit"
    other = "other"

class DeliveryIn(BaseModel):
    method: DeliveryMethod

class PaymentIn(BaseModel):
    method: PaymentMethod

class Address(BaseModel):
    street: str = ""
    number: str = ""
    complement: str = ""
    city: str = ""
    zip_code: str = ""

class CustomerInfo(BaseModel):
    name: str = ""
    phone: str = ""
    address: Address = Field(default_factory=Address)

class Customer(BaseModel):
    id: str
    name: str
    phone: str
    timestamp: int = 0
    rating: int = Field(default=0, ge=0, le=5)
    coupon_code: str = ""
    discount_percent: float = Field(default=0, ge=0, le=100)
    is_one_time_use: bool = True

class CustomerOut(Customer):
    formatted_phone: str
    whatsapp_url: str
    has_active_coupon: bool

class RatingIn(BaseModel):
    rating: int = Field(ge=0, le=5)

class PersonalCouponIn(BaseModel):
    coupon_code: str
    discount_percent: float = Field(ge=0, le=100)
    is_one_time_use: bool = True

class GlobalCoupon(BaseModel):
    code: str = ""
    discount_percent: float = Field(default=0, ge=0, le=100)

class CouponScope(str, Enum):
    personal = "personal"
    global_ = "global"
    legacy = "legacy"
    none = "none"

class CouponIn(BaseModel):
    code: str

class CouponResolution(BaseModel):
    valid: bool
    code: str = ""
    discount_percent: float = 0
    scope: CouponScope = CouponScope.none
    reason: Optional[str] = None
    message: Optional[str] = None
    is_one_time_use: Optional[bool] = None

class CartOut(BaseModel):
    items: list[CartItem]
    item_count: int
    subtotal: float
    applied_coupon: str
    discount: float
    total: float
    delivery_method: DeliveryMethod
    payment_method: PaymentMethod

class OrderSummary(BaseModel):
    items: list[CartItem]
    subtotal: float
    applied_coupon: str
    discount: float
    total: float
    delivery_method: DeliveryMethod
    payment_method: PaymentMethod
    customer: CustomerInfo
    message: str
    whatsapp_url: Optional[str] = None

class StoreInfo(BaseModel):
    name: str = "Loja Online"
    phone: str = ""
    address: str = ""
    logo_url: str = ""
    whatsapp_number: str = ""

class ThemeColors(BaseModel):
    primary: str = "#1a56db"
    header_bg: str = "#ffffff"
    header_opacity: float = Field(default=1, ge=0, le=1)
    button_bg: str = "#1a56db"
    button_opacity: float = Field(default=1, ge=0, le=1)
    background_color: str = "#ffffff"
    background_opacity: float = Field(default=1, ge=0, le=1)
    store_info_text_color: str = "#111827"
    store_info_font_family: str = "Inter, sans-serif"
    store_info_font_size: int = Field(default=16, gt=0)
    store_title_font_size: int = Field(default=32, gt=0)
    store_subtitle_font_size: int = Field(default=18, gt=0)
    store_subtitle: str = "A melhor loja de tecnologia do Brasil"
    carousel_title: str = "Loja Tecnológica"
    products_title: str = "Nossos Produtos"
    products_title_color: str = "#111827"
    map_url: str = ""
    show_map_link: bool = False
    show_logo: bool = True
    show_address: bool = True
    show_phone: bool = True
    show_subtitle: bool = True

class SocialLink(BaseModel):
    enabled: bool = False
    url: str = ""

class SocialLinks(BaseModel):
    instagram: SocialLink = Field(default_factory=SocialLink)
    facebook: SocialLink = Field(default_factory=SocialLink)
    twitter: SocialLink = Field(default_factory=SocialLink)
    youtube: SocialLink = Field(default_factory=SocialLink)
    tiktok: SocialLink = Field(default_factory=SocialLink)
    whatsapp: SocialLink = Field(default_factory=SocialLink)

class CarouselImage(BaseModel):
    url: str
    alt: str = ""
    title: Optional[str] = None
    description: Optional[str] = None

class LoginIn(BaseModel):
    email: str
    password: str
    remember_me: bool = False

class AuthStatus(BaseModel):
    logged_in: bool
    email: Optional[str] = None

class ConsentOut(BaseModel):
    accepted: bool
    rejected: bool
    show_banner: bool
