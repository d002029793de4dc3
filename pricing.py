"""
Cart pricing and coupon validation.

Everything here is pure except `find_coupon`, which reads one document.
Amounts are integer CLP.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from pymongo.database import Database

from database import now_utc, serialize_doc, settings
from schemas import Coupon

SHIPPING_COST = settings.SHIPPING_COST


class CouponError(Exception):
    reason = "invalid"
    message = "Invalid coupon"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class CouponNotFound(CouponError):
    reason = "not_found"
    message = "Coupon code not found"


class CouponInactive(CouponError):
    reason = "inactive"
    message = "This coupon is not active"


class CouponNotYetValid(CouponError):
    reason = "not_yet_valid"
    message = "This coupon is not valid yet"


class CouponExpired(CouponError):
    reason = "expired"
    message = "This coupon has expired"


class CouponLimitReached(CouponError):
    reason = "limit_reached"
    message = "This coupon has reached its usage limit"


class CouponBelowMinimum(CouponError):
    reason = "below_minimum"

    def __init__(self, min_purchase: int):
        self.min_purchase = min_purchase
        super().__init__(f"A minimum purchase of ${min_purchase:,} is required".replace(",", "."))


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class AppliedCoupon:
    """A coupon document as read from the store, with its id."""
    id: str
    coupon: Coupon


def coupon_from_doc(doc: Dict[str, Any]) -> AppliedCoupon:
    doc = serialize_doc(doc)
    coupon_id = doc.pop("id")
    return AppliedCoupon(id=coupon_id, coupon=Coupon(**doc))


def find_coupon(db: Database, code: str) -> AppliedCoupon:
    normalized = normalize_code(code)
    if not normalized:
        raise CouponNotFound("Enter a coupon code")
    doc = db["coupon"].find_one({"code": normalized})
    if not doc:
        raise CouponNotFound()
    return coupon_from_doc(doc)


def validate_coupon(coupon: Coupon, subtotal: int, now: Optional[datetime] = None) -> Coupon:
    """
    Check a coupon against the cart subtotal.

    Raises the first failing CouponError in this order: inactive, not yet
    valid, expired, usage limit, minimum purchase. Does not touch usage_count.
    """
    now = _aware(now or now_utc())
    if not coupon.is_active:
        raise CouponInactive()
    if now < _aware(coupon.valid_from):
        raise CouponNotYetValid()
    if now > _aware(coupon.valid_until):
        raise CouponExpired()
    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        raise CouponLimitReached()
    if coupon.min_purchase is not None and subtotal < coupon.min_purchase:
        raise CouponBelowMinimum(coupon.min_purchase)
    return coupon


def round_peso(amount) -> int:
    """Round to whole pesos, halves away from zero."""
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_discount(coupon: Optional[Coupon], subtotal: int, shipping_cost: int = SHIPPING_COST) -> int:
    if coupon is None:
        return 0
    if coupon.discount_type == "fixed":
        discount = round_peso(coupon.discount_value)
    else:
        discount = round_peso(Decimal(subtotal) * Decimal(str(coupon.discount_value)) / 100)
        if coupon.max_discount is not None:
            discount = min(discount, coupon.max_discount)
    # Never discount more than the payable amount
    return max(0, min(discount, subtotal + shipping_cost))


@dataclass
class Totals:
    subtotal: int
    shipping_cost: int
    discount: int
    total: int

    def as_dict(self) -> Dict[str, int]:
        return {
            "subtotal": self.subtotal,
            "shipping_cost": self.shipping_cost,
            "discount": self.discount,
            "total": self.total,
        }


def compute_totals(subtotal: int, coupon: Optional[Coupon] = None, shipping_cost: int = SHIPPING_COST) -> Totals:
    discount = compute_discount(coupon, subtotal, shipping_cost)
    return Totals(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        discount=discount,
        total=subtotal + shipping_cost - discount,
    )


@dataclass
class CartLine:
    painting_id: str
    title: str
    price: int
    quantity: int = 1
    image_url: Optional[str] = None
    stock: Optional[int] = None

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


@dataclass
class Cart:
    """
    In-memory cart: one line per painting, at most one applied coupon.
    """
    lines: List[CartLine] = field(default_factory=list)
    coupon: Optional[AppliedCoupon] = None
    shipping_cost: int = SHIPPING_COST

    def _find(self, painting_id: str) -> Optional[CartLine]:
        for line in self.lines:
            if line.painting_id == painting_id:
                return line
        return None

    def add(self, line: CartLine) -> None:
        if line.stock is not None and line.stock <= 0:
            raise ValueError(f'"{line.title}" is no longer available')
        existing = self._find(line.painting_id)
        if existing:
            existing.quantity += line.quantity
        else:
            self.lines.append(line)

    def remove(self, painting_id: str) -> None:
        self.lines = [line for line in self.lines if line.painting_id != painting_id]

    def update_quantity(self, painting_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove(painting_id)
            return
        line = self._find(painting_id)
        if line:
            line.quantity = quantity

    def clear(self) -> None:
        self.lines = []
        self.coupon = None

    def is_empty(self) -> bool:
        return not self.lines

    @property
    def subtotal(self) -> int:
        return sum(line.line_total for line in self.lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def apply_coupon(self, applied: AppliedCoupon, now: Optional[datetime] = None) -> None:
        # Replaces any previous coupon, so re-applying never stacks
        validate_coupon(applied.coupon, self.subtotal, now)
        self.coupon = applied

    def remove_coupon(self) -> None:
        self.coupon = None

    def totals(self) -> Totals:
        coupon = self.coupon.coupon if self.coupon else None
        return compute_totals(self.subtotal, coupon, self.shipping_cost)
