import logging
import os
from typing import Any, Dict, List, Literal, Optional

from bson import ObjectId
from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, EmailStr, Field
from pymongo.database import Database

from admin_logs import log_admin_action
from checkout import CheckoutError, CheckoutRequest, OutOfStock, place_order
from database import create_document, get_db, get_documents, now_utc, serialize_doc, settings
from pricing import CouponError, CouponLimitReached, compute_totals, find_coupon, round_peso, validate_coupon
from schemas import (
    BASE_CUSTOM_ORDER_PRICE,
    CUSTOM_ORDER_SIZES,
    Blogpost,
    BlogpostIn,
    Coupon,
    CouponIn,
    Customorder,
    CustomOrderStatus,
    OrderStatus,
    Painting,
    PaymentStatus,
    Review,
    ShippingStatus,
    User,
)
from site_settings import SETTINGS_KINDS, get_settings, put_settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Art Gallery Store API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Helpers
def to_object_id(value: str, what: str = "id") -> ObjectId:
    try:
        return ObjectId(str(value))
    except Exception:
        raise HTTPException(status_code=400, detail=f"Invalid {what}")


def require_admin(
    x_admin_token: str = Header(default=""),
    x_admin_email: Optional[str] = Header(default=None),
    x_admin_uid: Optional[str] = Header(default=None),
) -> Dict[str, Optional[str]]:
    if x_admin_token != settings.ADMIN_TOKEN:
        raise HTTPException(status_code=401, detail="Invalid or missing admin token")
    return {"email": x_admin_email, "uid": x_admin_uid}


def coupon_http_error(exc: CouponError) -> HTTPException:
    status = 409 if isinstance(exc, CouponLimitReached) else 400
    return HTTPException(status_code=status, detail={"reason": exc.reason, "message": str(exc)})


@app.get("/")
def root():
    return {"message": "Art Gallery Store Backend is running"}


# ---------------- Paintings ----------------
@app.get("/api/paintings")
def list_paintings(
    category: Optional[str] = None,
    q: Optional[str] = None,
    limit: int = Query(12, ge=1, le=200),
    db: Database = Depends(get_db),
):
    filter_q: Dict[str, Any] = {"available": True}
    if category:
        filter_q["category"] = category
    if q:
        filter_q["$or"] = [
            {"title": {"$regex": q, "$options": "i"}},
            {"description": {"$regex": q, "$options": "i"}},
        ]
    items = get_documents(db, "painting", filter_q, limit, sort=[("created_at", -1)])
    return {"items": items, "count": len(items)}


@app.get("/api/paintings/{painting_id}")
def get_painting(painting_id: str, db: Database = Depends(get_db)):
    doc = db["painting"].find_one({"_id": to_object_id(painting_id, "painting id")})
    if not doc:
        raise HTTPException(status_code=404, detail="Painting not found")
    painting = serialize_doc(doc)
    stock = painting.get("stock")
    threshold = painting.get("low_stock_threshold")
    painting["low_stock"] = stock is not None and threshold is not None and stock <= threshold
    return painting


@app.post("/api/paintings")
def create_painting(payload: Painting, db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    painting_id = create_document(db, "painting", payload)
    log_admin_action(db, "painting_created", admin["email"], admin["uid"], {
        "painting_id": painting_id,
        "painting_title": payload.title,
    })
    return {"id": painting_id}


@app.put("/api/paintings/{painting_id}")
def update_painting(
    painting_id: str,
    payload: Painting,
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    oid = to_object_id(painting_id, "painting id")
    res = db["painting"].update_one({"_id": oid}, {"$set": {**payload.model_dump(), "updated_at": now_utc()}})
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail="Painting not found")
    log_admin_action(db, "painting_updated", admin["email"], admin["uid"], {
        "painting_id": painting_id,
        "painting_title": payload.title,
    })
    return serialize_doc(db["painting"].find_one({"_id": oid}))


@app.delete("/api/paintings/{painting_id}")
def delete_painting(painting_id: str, db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    oid = to_object_id(painting_id, "painting id")
    doc = db["painting"].find_one_and_delete({"_id": oid})
    if not doc:
        raise HTTPException(status_code=404, detail="Painting not found")
    log_admin_action(db, "painting_deleted", admin["email"], admin["uid"], {
        "painting_id": painting_id,
        "painting_title": doc.get("title"),
    })
    return {"deleted": True}


# ---------------- Reviews ----------------
class ReviewCreate(BaseModel):
    painting_id: str
    user_name: str
    rating: int
    comment: str
    user_id: Optional[str] = None


def refresh_rating(db: Database, painting_id: str) -> None:
    rlist = list(db["review"].find({"painting_id": painting_id, "approved": True}))
    avg = sum(int(r.get("rating", 0)) for r in rlist) / len(rlist) if rlist else 0
    db["painting"].update_one(
        {"_id": ObjectId(painting_id)},
        {"$set": {"rating": {"average": round(avg, 2), "count": len(rlist)}}},
    )


@app.post("/api/reviews")
def create_review(payload: ReviewCreate, db: Database = Depends(get_db)):
    prod = db["painting"].find_one({"_id": to_object_id(payload.painting_id, "painting id")})
    if not prod:
        raise HTTPException(status_code=404, detail="Painting not found")
    try:
        review = Review(**payload.model_dump(), approved=False)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    review_id = create_document(db, "review", review)
    return {"id": review_id, "approved": False}


@app.get("/api/paintings/{painting_id}/reviews")
def list_reviews(painting_id: str, db: Database = Depends(get_db)):
    reviews = get_documents(db, "review", {"painting_id": painting_id, "approved": True}, 200, sort=[("created_at", -1)])
    average = round(sum(r["rating"] for r in reviews) / len(reviews), 2) if reviews else 0
    return {"items": reviews, "count": len(reviews), "average": average}


@app.patch("/api/reviews/{review_id}/approve")
def approve_review(review_id: str, db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    oid = to_object_id(review_id, "review id")
    review = db["review"].find_one_and_update({"_id": oid}, {"$set": {"approved": True, "updated_at": now_utc()}})
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    refresh_rating(db, review["painting_id"])
    log_admin_action(db, "review_approved", admin["email"], admin["uid"], {
        "review_id": review_id,
        "reviewer_name": review.get("user_name"),
    })
    return {"ok": True}


@app.delete("/api/reviews/{review_id}")
def delete_review(review_id: str, db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    review = db["review"].find_one_and_delete({"_id": to_object_id(review_id, "review id")})
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    refresh_rating(db, review["painting_id"])
    log_admin_action(db, "review_deleted", admin["email"], admin["uid"], {
        "review_id": review_id,
        "reviewer_name": review.get("user_name"),
    })
    return {"deleted": True}


# ---------------- Coupons ----------------
class CouponCheck(BaseModel):
    code: str
    subtotal: int = Field(..., ge=0)


@app.post("/api/coupons/validate")
def check_coupon(payload: CouponCheck, db: Database = Depends(get_db)):
    try:
        applied = find_coupon(db, payload.code)
        validate_coupon(applied.coupon, payload.subtotal)
    except CouponError as e:
        return {"valid": False, "reason": e.reason, "message": str(e)}
    totals = compute_totals(payload.subtotal, applied.coupon)
    return {
        "valid": True,
        "coupon": {"id": applied.id, **applied.coupon.model_dump()},
        **totals.as_dict(),
    }


@app.get("/api/coupons")
def list_coupons(db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    return get_documents(db, "coupon", {}, 500, sort=[("created_at", -1)])


def ensure_unique_code(db: Database, code: str, exclude: Optional[ObjectId] = None) -> None:
    filt: Dict[str, Any] = {"code": code}
    if exclude is not None:
        filt["_id"] = {"$ne": exclude}
    if db["coupon"].find_one(filt):
        raise HTTPException(status_code=409, detail=f"Coupon code {code} already exists")


@app.post("/api/coupons")
def create_coupon(payload: CouponIn, db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    ensure_unique_code(db, payload.code)
    coupon = Coupon(**payload.model_dump(), usage_count=0)
    coupon_id = create_document(db, "coupon", coupon)
    log_admin_action(db, "coupon_created", admin["email"], admin["uid"], {
        "coupon_id": coupon_id,
        "coupon_code": coupon.code,
    })
    return {"id": coupon_id, "code": coupon.code}


@app.put("/api/coupons/{coupon_id}")
def update_coupon(
    coupon_id: str,
    payload: CouponIn,
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    oid = to_object_id(coupon_id, "coupon id")
    ensure_unique_code(db, payload.code, exclude=oid)
    # usage_count is owned by checkout, never by the edit form
    filt: Dict[str, Any] = {"_id": oid}
    if payload.usage_limit is not None:
        filt["usage_count"] = {"$lte": payload.usage_limit}
    res = db["coupon"].update_one(filt, {"$set": {**payload.model_dump(), "updated_at": now_utc()}})
    if res.matched_count == 0:
        current = db["coupon"].find_one({"_id": oid})
        if not current:
            raise HTTPException(status_code=404, detail="Coupon not found")
        raise HTTPException(
            status_code=409,
            detail=f"usage_limit cannot be below the {current.get('usage_count', 0)} uses already made",
        )
    log_admin_action(db, "coupon_updated", admin["email"], admin["uid"], {
        "coupon_id": coupon_id,
        "coupon_code": payload.code,
    })
    return serialize_doc(db["coupon"].find_one({"_id": oid}))


@app.post("/api/coupons/{coupon_id}/toggle")
def toggle_coupon(coupon_id: str, db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    oid = to_object_id(coupon_id, "coupon id")
    coupon = db["coupon"].find_one({"_id": oid})
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    is_active = not coupon.get("is_active", True)
    db["coupon"].update_one({"_id": oid}, {"$set": {"is_active": is_active, "updated_at": now_utc()}})
    log_admin_action(db, "coupon_updated", admin["email"], admin["uid"], {
        "coupon_id": coupon_id,
        "coupon_code": coupon.get("code"),
        "is_active": is_active,
    })
    return {"id": coupon_id, "is_active": is_active}


@app.delete("/api/coupons/{coupon_id}")
def delete_coupon(coupon_id: str, db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    coupon = db["coupon"].find_one_and_delete({"_id": to_object_id(coupon_id, "coupon id")})
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    log_admin_action(db, "coupon_deleted", admin["email"], admin["uid"], {
        "coupon_id": coupon_id,
        "coupon_code": coupon.get("code"),
    })
    return {"deleted": True}


# ---------------- Checkout / Orders ----------------
@app.post("/api/checkout")
def checkout(payload: CheckoutRequest, db: Database = Depends(get_db)):
    try:
        return place_order(db, payload)
    except CouponError as e:
        raise coupon_http_error(e)
    except OutOfStock as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CheckoutError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/orders")
def list_orders(
    status: Optional[OrderStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    filt: Dict[str, Any] = {}
    if status:
        filt["status"] = status
    return get_documents(db, "order", filt, limit, sort=[("created_at", -1)])


@app.get("/api/orders/{order_id}")
def get_order(order_id: str, token: Optional[str] = None, db: Database = Depends(get_db)):
    if not token:
        raise HTTPException(status_code=400, detail="Token required")
    doc = db["order"].find_one({"_id": to_object_id(order_id, "order id")})
    if not doc:
        raise HTTPException(status_code=404, detail="Order not found")
    if doc.get("public_access_token") != token:
        raise HTTPException(status_code=401, detail="Not authorized")
    order = serialize_doc(doc)
    order.pop("public_access_token", None)
    return order


class StatusChange(BaseModel):
    status: OrderStatus


class ShippingStatusChange(BaseModel):
    shipping_status: ShippingStatus


class PaymentStatusChange(BaseModel):
    status: PaymentStatus
    transaction_id: Optional[str] = None


def _update_order(db: Database, order_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    oid = to_object_id(order_id, "order id")
    before = db["order"].find_one_and_update({"_id": oid}, {"$set": {**changes, "updated_at": now_utc()}})
    if not before:
        raise HTTPException(status_code=404, detail="Order not found")
    return before


@app.patch("/api/orders/{order_id}/status")
def change_order_status(
    order_id: str,
    payload: StatusChange,
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    before = _update_order(db, order_id, {"status": payload.status})
    log_admin_action(db, "order_status_updated", admin["email"], admin["uid"], {
        "order_id": order_id,
        "order_number": before.get("order_number"),
        "old_status": before.get("status"),
        "new_status": payload.status,
    })
    return {"id": order_id, "status": payload.status}


@app.patch("/api/orders/{order_id}/shipping-status")
def change_shipping_status(
    order_id: str,
    payload: ShippingStatusChange,
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    before = _update_order(db, order_id, {"shipping_status": payload.shipping_status})
    log_admin_action(db, "order_shipping_status_updated", admin["email"], admin["uid"], {
        "order_id": order_id,
        "order_number": before.get("order_number"),
        "old_status": before.get("shipping_status"),
        "new_status": payload.shipping_status,
    })
    return {"id": order_id, "shipping_status": payload.shipping_status}


@app.patch("/api/orders/{order_id}/payment")
def change_payment_status(
    order_id: str,
    payload: PaymentStatusChange,
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    changes: Dict[str, Any] = {"payment_info.status": payload.status}
    if payload.transaction_id:
        changes["payment_info.transaction_id"] = payload.transaction_id
    if payload.status == "paid":
        changes["payment_info.paid_at"] = now_utc()
    before = _update_order(db, order_id, changes)
    log_admin_action(db, "order_payment_updated", admin["email"], admin["uid"], {
        "order_id": order_id,
        "order_number": before.get("order_number"),
        "payment_status": payload.status,
    })
    return {"id": order_id, "payment_status": payload.status}


@app.delete("/api/orders/{order_id}")
def delete_order(order_id: str, db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    doc = db["order"].find_one_and_delete({"_id": to_object_id(order_id, "order id")})
    if not doc:
        raise HTTPException(status_code=404, detail="Order not found")
    log_admin_action(db, "order_deleted", admin["email"], admin["uid"], {
        "order_id": order_id,
        "order_number": doc.get("order_number"),
    })
    return {"deleted": True}


# ---------------- Custom orders ----------------
class CustomOrderCreate(BaseModel):
    customer_name: str
    email: EmailStr
    phone: str
    reference_image_url: str
    size_name: str
    notes: Optional[str] = None


class CustomOrderStatusChange(BaseModel):
    status: CustomOrderStatus


@app.get("/api/custom-orders/sizes")
def custom_order_sizes():
    return [
        {**size.model_dump(), "price": round_peso(BASE_CUSTOM_ORDER_PRICE * size.price_multiplier)}
        for size in CUSTOM_ORDER_SIZES
    ]


@app.post("/api/custom-orders")
def create_custom_order(payload: CustomOrderCreate, db: Database = Depends(get_db)):
    size = next((s for s in CUSTOM_ORDER_SIZES if s.name == payload.size_name), None)
    if size is None:
        raise HTTPException(status_code=400, detail="Unknown size")
    try:
        custom = Customorder(
            customer_name=payload.customer_name,
            email=payload.email,
            phone=payload.phone,
            reference_image_url=payload.reference_image_url,
            selected_size=size,
            total_price=round_peso(BASE_CUSTOM_ORDER_PRICE * size.price_multiplier),
            notes=payload.notes,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    custom_id = create_document(db, "customorder", custom)
    logger.info("Custom order %s created for size %s", custom_id, size.name)
    return {"id": custom_id, "total_price": custom.total_price, "status": custom.status}


@app.get("/api/custom-orders")
def list_custom_orders(
    limit: int = Query(50, ge=1, le=200),
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    return get_documents(db, "customorder", {}, limit, sort=[("created_at", -1)])


@app.patch("/api/custom-orders/{order_id}/status")
def change_custom_order_status(
    order_id: str,
    payload: CustomOrderStatusChange,
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    oid = to_object_id(order_id, "order id")
    before = db["customorder"].find_one_and_update(
        {"_id": oid}, {"$set": {"status": payload.status, "updated_at": now_utc()}}
    )
    if not before:
        raise HTTPException(status_code=404, detail="Custom order not found")
    log_admin_action(db, "custom_order_status_updated", admin["email"], admin["uid"], {
        "order_id": order_id,
        "old_status": before.get("status"),
        "new_status": payload.status,
    })
    return {"id": order_id, "status": payload.status}


# ---------------- Blog ----------------
@app.get("/api/blog")
def list_posts(limit: int = Query(20, ge=1, le=100), db: Database = Depends(get_db)):
    return get_documents(db, "blogpost", {"published": True}, limit, sort=[("published_at", -1)])


@app.get("/api/blog/{slug}")
def get_post(slug: str, db: Database = Depends(get_db)):
    post = db["blogpost"].find_one({"slug": slug, "published": True})
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return serialize_doc(post)


@app.get("/api/admin/blog")
def list_all_posts(
    limit: int = Query(100, ge=1, le=500),
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    return get_documents(db, "blogpost", {}, limit, sort=[("created_at", -1)])


def ensure_unique_slug(db: Database, slug: str, exclude: Optional[ObjectId] = None) -> None:
    filt: Dict[str, Any] = {"slug": slug}
    if exclude is not None:
        filt["_id"] = {"$ne": exclude}
    if db["blogpost"].find_one(filt):
        raise HTTPException(status_code=409, detail=f"A post with slug '{slug}' already exists")


@app.post("/api/blog")
def create_post(payload: BlogpostIn, db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    ensure_unique_slug(db, payload.slug)
    post = Blogpost(
        **payload.model_dump(),
        author_id=admin["uid"],
        published_at=now_utc() if payload.published else None,
    )
    post_id = create_document(db, "blogpost", post)
    action = "blog_post_published" if post.published else "blog_post_created"
    log_admin_action(db, action, admin["email"], admin["uid"], {
        "post_id": post_id,
        "post_title": post.title,
        "post_slug": post.slug,
    })
    return {"id": post_id, "slug": post.slug, "published_at": post.published_at}


@app.put("/api/blog/{post_id}")
def update_post(
    post_id: str,
    payload: BlogpostIn,
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    oid = to_object_id(post_id, "post id")
    current = db["blogpost"].find_one({"_id": oid})
    if not current:
        raise HTTPException(status_code=404, detail="Post not found")
    ensure_unique_slug(db, payload.slug, exclude=oid)

    changes: Dict[str, Any] = {**payload.model_dump(), "updated_at": now_utc()}
    if not payload.published:
        changes["published_at"] = None
    elif not current.get("published") or not current.get("published_at"):
        changes["published_at"] = now_utc()
    db["blogpost"].update_one({"_id": oid}, {"$set": changes})

    action = "blog_post_published" if payload.published and not current.get("published") else "blog_post_updated"
    log_admin_action(db, action, admin["email"], admin["uid"], {
        "post_id": post_id,
        "post_title": payload.title,
        "post_slug": payload.slug,
    })
    return serialize_doc(db["blogpost"].find_one({"_id": oid}))


@app.delete("/api/blog/{post_id}")
def delete_post(post_id: str, db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    post = db["blogpost"].find_one_and_delete({"_id": to_object_id(post_id, "post id")})
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    log_admin_action(db, "blog_post_deleted", admin["email"], admin["uid"], {
        "post_id": post_id,
        "post_title": post.get("title"),
        "post_slug": post.get("slug"),
    })
    return {"deleted": True}


# ---------------- Settings ----------------
def settings_model(kind: str):
    model = SETTINGS_KINDS.get(kind)
    if model is None:
        raise HTTPException(status_code=404, detail=f"Unknown settings '{kind}'")
    return model


@app.get("/api/settings/{kind}")
def read_settings(kind: str, db: Database = Depends(get_db)):
    settings_model(kind)
    return get_settings(db, kind).model_dump()


@app.put("/api/settings/{kind}")
def save_settings(
    kind: str,
    payload: Dict[str, Any],
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    model = settings_model(kind)
    try:
        values = model(**payload)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    saved = put_settings(db, kind, values, updated_by=admin["uid"])
    log_admin_action(db, f"{kind}_settings_updated", admin["email"], admin["uid"])
    return saved.model_dump()


# ---------------- Admin users ----------------
class RoleChange(BaseModel):
    uid: str = Field(..., min_length=1)
    role: Optional[Literal["admin"]] = None
    admin_uid: Optional[str] = None


@app.get("/api/admin/users")
def list_users(db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    rows = []
    for doc in get_documents(db, "user", {}, 1000, sort=[("created_at", -1)]):
        user = User(**doc)
        rows.append({
            **user.model_dump(exclude={"role"}),
            "created_at": doc.get("created_at"),
            "last_sign_in_at": user.last_sign_in_at or doc.get("created_at"),
            "is_admin": user.role == "admin",
        })
    return {"users": rows}


@app.post("/api/admin/users/set-role")
def set_user_role(payload: RoleChange, db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    if payload.admin_uid and payload.uid == payload.admin_uid:
        raise HTTPException(status_code=400, detail="You cannot change your own role")
    res = db["user"].update_one({"uid": payload.uid}, {"$set": {"role": payload.role, "updated_at": now_utc()}})
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail="User not found")
    log_admin_action(db, "user_role_updated", admin["email"], admin["uid"] or payload.admin_uid, {
        "uid": payload.uid,
        "role": payload.role,
    })
    return {
        "success": True,
        "message": "User promoted to admin" if payload.role == "admin" else "Admin permissions revoked",
    }


@app.get("/api/admin/logs")
def list_admin_logs(
    action: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    db: Database = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    filt = {"action": action} if action else {}
    return get_documents(db, "adminlog", filt, limit, sort=[("timestamp", -1)])


# ---------------- Seed sample data ----------------
@app.post("/api/seed")
def seed_paintings(db: Database = Depends(get_db), admin: dict = Depends(require_admin)):
    existing = db["painting"].count_documents({})
    if existing > 0:
        return {"message": "Paintings already exist", "count": existing}

    samples: List[Dict[str, Any]] = [
        {
            "title": "Atardecer en Valparaíso",
            "description": "Oil on canvas, warm light over the port hills.",
            "image_url": "https://images.unsplash.com/photo-1579783902614-a3fb3927b6a5?q=80&w=1200&auto=format&fit=crop",
            "price": 180000,
            "dimensions": {"width": 50, "height": 70},
            "category": "landscape",
            "stock": 1,
            "low_stock_threshold": 1,
        },
        {
            "title": "Retrato en azul",
            "description": "Acrylic portrait study in cold tones.",
            "image_url": "https://images.unsplash.com/photo-1578301978693-85fa9c0320b9?q=80&w=1200&auto=format&fit=crop",
            "price": 120000,
            "dimensions": {"width": 30, "height": 40},
            "category": "portrait",
        },
        {
            "title": "Bosque nativo",
            "description": "Mixed media on wood, southern forest at dawn.",
            "image_url": "https://images.unsplash.com/photo-1549887534-1541e9326642?q=80&w=1200&auto=format&fit=crop",
            "price": 240000,
            "dimensions": {"width": 70, "height": 100},
            "category": "landscape",
            "stock": 2,
        },
    ]
    ids = [create_document(db, "painting", Painting(**s)) for s in samples]
    return {"inserted": len(ids), "ids": ids}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": settings.DATABASE_NAME,
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        db = get_db()
        response["database"] = "✅ Available"
        response["connection_status"] = "Connected"
        try:
            collections = db.list_collection_names()
            response["collections"] = collections[:10]
            response["database"] = "✅ Connected & Working"
        except Exception as e:
            response["database"] = f"⚠️ Connected but Error: {str(e)[:50]}"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:50]}"
    return response


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
