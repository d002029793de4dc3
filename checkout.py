"""
Order assembly.

Prices are always re-read from the painting collection; the client only
sends painting ids and quantities. Stock and coupon usage are reserved with
conditional updates before the order is inserted, and released again if a
later write fails.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import create_document, now_utc, parse_object_id
from pricing import (
    AppliedCoupon,
    Cart,
    CartLine,
    CouponInactive,
    CouponLimitReached,
    CouponNotFound,
    find_coupon,
)
from schemas import Order, OrderItem, PaymentInfo, PaymentMethod, ShippingInfo

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    pass


class EmptyCart(CheckoutError):
    def __init__(self):
        super().__init__("Cart is empty")


class PaintingUnavailable(CheckoutError):
    def __init__(self, painting_id: str):
        self.painting_id = painting_id
        super().__init__("One of the paintings is no longer available")


class OutOfStock(CheckoutError):
    def __init__(self, title: str):
        self.title = title
        super().__init__(f'Not enough stock for "{title}"')


class CheckoutItem(BaseModel):
    painting_id: str
    quantity: int = Field(1, ge=1)


class CheckoutRequest(BaseModel):
    items: List[CheckoutItem] = Field(default_factory=list)
    shipping_info: ShippingInfo
    payment_method: PaymentMethod = "webpay"
    coupon_code: Optional[str] = None
    user_id: Optional[str] = None


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or now_utc()
    return f"ORD-{now:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


def build_cart(db: Database, items: List[CheckoutItem]) -> Cart:
    cart = Cart()
    for item in items:
        try:
            oid = parse_object_id(item.painting_id)
        except ValueError:
            raise PaintingUnavailable(item.painting_id)
        doc = db["painting"].find_one({"_id": oid})
        if not doc or not doc.get("available", True):
            raise PaintingUnavailable(item.painting_id)
        stock = doc.get("stock")
        if stock is not None and stock < item.quantity:
            raise OutOfStock(doc.get("title", "painting"))
        cart.add(CartLine(
            painting_id=item.painting_id,
            title=doc.get("title", ""),
            price=int(doc.get("price", 0)),
            quantity=item.quantity,
            image_url=doc.get("image_url"),
            stock=stock,
        ))
    return cart


def _reserve_stock(db: Database, line: CartLine) -> None:
    res = db["painting"].update_one(
        {"_id": parse_object_id(line.painting_id), "stock": {"$gte": line.quantity}},
        {"$inc": {"stock": -line.quantity}},
    )
    if res.modified_count == 0:
        raise OutOfStock(line.title)


def _release_stock(db: Database, line: CartLine) -> None:
    db["painting"].update_one(
        {"_id": parse_object_id(line.painting_id)},
        {"$inc": {"stock": line.quantity}},
    )


def _reserve_coupon_use(db: Database, applied: AppliedCoupon) -> None:
    """Increment usage_count only while it is still below usage_limit."""
    oid = parse_object_id(applied.id)
    limit = applied.coupon.usage_limit
    while True:
        filt = {"_id": oid, "is_active": True, "usage_limit": limit}
        if limit is not None:
            filt["usage_count"] = {"$lt": limit}
        res = db["coupon"].update_one(filt, {"$inc": {"usage_count": 1}})
        if res.modified_count:
            return
        # Report what changed since the coupon was read
        current = db["coupon"].find_one({"_id": oid})
        if not current:
            raise CouponNotFound()
        if not current.get("is_active", False):
            raise CouponInactive()
        if current.get("usage_limit") == limit:
            raise CouponLimitReached()
        limit = current.get("usage_limit")


def _release_coupon_use(db: Database, applied: AppliedCoupon) -> None:
    db["coupon"].update_one(
        {"_id": parse_object_id(applied.id), "usage_count": {"$gt": 0}},
        {"$inc": {"usage_count": -1}},
    )


def place_order(db: Database, request: CheckoutRequest, now: Optional[datetime] = None) -> dict:
    if not request.items:
        raise EmptyCart()
    now = now or now_utc()

    cart = build_cart(db, request.items)
    if request.coupon_code:
        cart.apply_coupon(find_coupon(db, request.coupon_code), now)
    totals = cart.totals()

    order = Order(
        order_number=generate_order_number(now),
        items=[
            OrderItem(
                painting_id=line.painting_id,
                title=line.title,
                price=line.price,
                quantity=line.quantity,
                image_url=line.image_url,
            )
            for line in cart.lines
        ],
        subtotal=totals.subtotal,
        shipping_cost=totals.shipping_cost,
        discount=totals.discount,
        total=totals.total,
        coupon_code=cart.coupon.coupon.code if cart.coupon else None,
        shipping_info=request.shipping_info,
        payment_info=PaymentInfo(
            method=request.payment_method,
            status="pending",
            transaction_id=f"TXN-{int(now.timestamp() * 1000)}",
        ),
        public_access_token=str(uuid.uuid4()),
        user_id=request.user_id,
    )

    reserved: List[CartLine] = []
    coupon_reserved = False
    try:
        for line in cart.lines:
            if line.stock is not None:
                _reserve_stock(db, line)
                reserved.append(line)
        if cart.coupon:
            _reserve_coupon_use(db, cart.coupon)
            coupon_reserved = True
        order_id = create_document(db, "order", order)
    except Exception:
        logger.warning("Order %s failed, releasing reservations", order.order_number)
        for line in reserved:
            try:
                _release_stock(db, line)
            except PyMongoError:
                logger.exception("Could not release stock for painting %s", line.painting_id)
        if coupon_reserved:
            try:
                _release_coupon_use(db, cart.coupon)
            except PyMongoError:
                logger.exception("Could not release coupon use for %s", cart.coupon.id)
        raise

    logger.info(
        "Order %s created (total=%s, coupon=%s)",
        order.order_number, order.total, order.coupon_code,
    )
    return {
        "order_id": order_id,
        "order_number": order.order_number,
        "public_access_token": order.public_access_token,
        **totals.as_dict(),
        "coupon_code": order.coupon_code,
        "status": order.status,
        "clear_cart": True,
    }
