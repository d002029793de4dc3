"""
Database Schemas for the Art Gallery Store

Define MongoDB collection schemas using Pydantic models.
Each model class name maps to a collection name in lowercase.
Prices are integer Chilean pesos (CLP).
"""

import re
import unicodedata
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

OrderStatus = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]
ShippingStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
PaymentMethod = Literal["webpay", "transfer", "cash"]
PaymentStatus = Literal["pending", "paid", "failed"]
CustomOrderStatus = Literal["pending", "in-progress", "completed", "cancelled"]
DiscountType = Literal["percentage", "fixed"]

ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped", "delivered", "cancelled")
SHIPPING_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")

BASE_CUSTOM_ORDER_PRICE = 145000


# Paintings
class Dimensions(BaseModel):
    width: float = Field(..., gt=0, description="Width in cm")
    height: float = Field(..., gt=0, description="Height in cm")


class Painting(BaseModel):
    title: str
    description: Optional[str] = None
    image_url: str
    images: List[str] = Field(default_factory=list)
    price: int = Field(..., ge=0, description="Price in CLP")
    dimensions: Dimensions
    category: Optional[str] = None
    available: bool = True
    stock: Optional[int] = Field(None, ge=0, description="Units left; None means not tracked")
    low_stock_threshold: Optional[int] = Field(None, ge=0)


# Coupons
class CouponIn(BaseModel):
    """Admin-editable coupon fields."""
    code: str = Field(..., min_length=1, description="Stored trimmed and uppercase")
    description: str = ""
    discount_type: DiscountType = "percentage"
    discount_value: float = Field(..., gt=0)
    min_purchase: Optional[int] = Field(None, ge=0)
    max_discount: Optional[int] = Field(None, ge=0)
    valid_from: datetime
    valid_until: datetime
    usage_limit: Optional[int] = Field(None, ge=1)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("code must not be blank")
        return v

    @field_validator("valid_from", "valid_until")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def check_window(self):
        if self.valid_from > self.valid_until:
            raise ValueError("valid_from must not be after valid_until")
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        return self


class Coupon(CouponIn):
    usage_count: int = Field(0, ge=0)


# Orders
class OrderItem(BaseModel):
    painting_id: str
    title: str
    price: int = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    image_url: Optional[str] = None


class ShippingInfo(BaseModel):
    full_name: str = Field(..., min_length=3)
    email: EmailStr
    phone: str = Field(..., min_length=8)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    postal_code: Optional[str] = None
    notes: Optional[str] = None


class PaymentInfo(BaseModel):
    method: PaymentMethod = "webpay"
    status: PaymentStatus = "pending"
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None


class Order(BaseModel):
    order_number: str
    items: List[OrderItem]
    subtotal: int = Field(..., ge=0)
    shipping_cost: int = Field(..., ge=0)
    discount: int = Field(0, ge=0)
    total: int = Field(..., ge=0)
    coupon_code: Optional[str] = None
    shipping_info: ShippingInfo
    payment_info: PaymentInfo
    status: OrderStatus = "pending"
    shipping_status: ShippingStatus = "pending"
    public_access_token: str
    user_id: Optional[str] = None


# Custom (commissioned) orders
class CustomOrderSize(BaseModel):
    name: str
    width: int
    height: int
    price_multiplier: float


CUSTOM_ORDER_SIZES = [
    CustomOrderSize(name="20x30 cm", width=20, height=30, price_multiplier=1),
    CustomOrderSize(name="30x40 cm", width=30, height=40, price_multiplier=1.5),
    CustomOrderSize(name="40x50 cm", width=40, height=50, price_multiplier=2),
    CustomOrderSize(name="50x70 cm", width=50, height=70, price_multiplier=3),
    CustomOrderSize(name="70x100 cm", width=70, height=100, price_multiplier=4.5),
]


class Customorder(BaseModel):
    customer_name: str = Field(..., min_length=3)
    email: EmailStr
    phone: str = Field(..., min_length=8)
    reference_image_url: str
    selected_size: CustomOrderSize
    total_price: int = Field(..., ge=0)
    status: CustomOrderStatus = "pending"
    notes: Optional[str] = None


# Reviews
class Review(BaseModel):
    painting_id: str
    user_id: Optional[str] = None
    user_name: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=10)
    approved: bool = False


# Blog
def generate_slug(text: str) -> str:
    text = unicodedata.normalize("NFD", text.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return re.sub(r"[^a-z0-9]+", "-", text).strip("-")


class BlogpostIn(BaseModel):
    title: str = Field(..., min_length=1)
    slug: str = Field("", description="Derived from the title when left blank")
    excerpt: Optional[str] = None
    content: str = ""
    cover_image: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    published: bool = False

    @model_validator(mode="after")
    def fill_slug(self):
        self.slug = generate_slug(self.slug or self.title)
        if not self.slug:
            raise ValueError("slug must contain letters or digits")
        return self


class Blogpost(BlogpostIn):
    author_id: Optional[str] = None
    published_at: Optional[datetime] = None


# Users
class User(BaseModel):
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    email_verified: bool = False
    role: Optional[str] = Field(None, description="admin | None")
    last_sign_in_at: Optional[datetime] = None


# Admin activity log
class Adminlog(BaseModel):
    action: str
    admin_email: Optional[str] = None
    admin_uid: Optional[str] = None
    metadata: dict = Field(default_factory=dict)
    timestamp: datetime
