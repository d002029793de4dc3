from datetime import datetime, timedelta, timezone

from bson import ObjectId


def test_root(client):
    assert client.get("/").json()["message"].startswith("Art Gallery")


def test_list_paintings_only_available(client, make_painting):
    make_painting(title="Visible")
    make_painting(title="Hidden", available=False)
    body = client.get("/api/paintings").json()
    assert body["count"] == 1
    assert body["items"][0]["title"] == "Visible"


def test_get_painting_flags_low_stock(client, make_painting):
    pid = make_painting(stock=1, low_stock_threshold=2)
    body = client.get(f"/api/paintings/{pid}").json()
    assert body["id"] == pid
    assert body["low_stock"] is True
    assert client.get("/api/paintings/bad-id").status_code == 400
    assert client.get(f"/api/paintings/{ObjectId()}").status_code == 404


def test_admin_routes_require_token(client):
    assert client.get("/api/orders").status_code == 401
    assert client.get("/api/coupons", headers={"X-Admin-Token": "wrong"}).status_code == 401


def test_validate_coupon_endpoint(client, make_coupon):
    make_coupon(code="ARTE10", discount_value=10, max_discount=8000)
    ok = client.post("/api/coupons/validate", json={"code": " arte10 ", "subtotal": 100000}).json()
    assert ok["valid"] is True
    assert ok["discount"] == 8000
    assert ok["total"] == 97000

    missing = client.post("/api/coupons/validate", json={"code": "NOPE", "subtotal": 100000}).json()
    assert missing == {"valid": False, "reason": "not_found", "message": "Coupon code not found"}


def test_validate_coupon_reports_each_reason(client, make_coupon):
    now = datetime.now(timezone.utc)
    make_coupon(code="OFF", is_active=False)
    make_coupon(code="SOON", valid_from=now + timedelta(days=1), valid_until=now + timedelta(days=2))
    make_coupon(code="OLD", valid_from=now - timedelta(days=5), valid_until=now - timedelta(days=1))
    make_coupon(code="USED", usage_limit=2, usage_count=2)
    make_coupon(code="BIG", min_purchase=50000)

    def reason(code):
        return client.post("/api/coupons/validate", json={"code": code, "subtotal": 40000}).json()["reason"]

    assert reason("OFF") == "inactive"
    assert reason("SOON") == "not_yet_valid"
    assert reason("OLD") == "expired"
    assert reason("USED") == "limit_reached"
    assert reason("BIG") == "below_minimum"


def test_coupon_admin_lifecycle(client, db, admin_headers):
    payload = {
        "code": " verano ",
        "description": "Summer sale",
        "discount_type": "fixed",
        "discount_value": 10000,
        "valid_from": "2025-01-01T00:00:00Z",
        "valid_until": "2025-03-01T00:00:00Z",
        "usage_limit": 50,
    }
    created = client.post("/api/coupons", json=payload, headers=admin_headers)
    assert created.status_code == 200
    coupon_id = created.json()["id"]
    assert created.json()["code"] == "VERANO"

    assert client.post("/api/coupons", json=payload, headers=admin_headers).status_code == 409

    db["coupon"].update_one({"_id": ObjectId(coupon_id)}, {"$set": {"usage_count": 7}})
    updated = client.put(
        f"/api/coupons/{coupon_id}",
        json={**payload, "discount_value": 15000},
        headers=admin_headers,
    ).json()
    assert updated["discount_value"] == 15000
    assert updated["usage_count"] == 7

    toggled = client.post(f"/api/coupons/{coupon_id}/toggle", headers=admin_headers).json()
    assert toggled["is_active"] is False

    assert client.delete(f"/api/coupons/{coupon_id}", headers=admin_headers).json() == {"deleted": True}
    actions = [log["action"] for log in client.get("/api/admin/logs", headers=admin_headers).json()]
    assert set(actions) == {"coupon_created", "coupon_updated", "coupon_deleted"}


def test_coupon_rejects_inverted_window(client, admin_headers):
    payload = {
        "code": "BAD",
        "discount_type": "percentage",
        "discount_value": 10,
        "valid_from": "2025-03-01T00:00:00Z",
        "valid_until": "2025-01-01T00:00:00Z",
    }
    assert client.post("/api/coupons", json=payload, headers=admin_headers).status_code == 422


def test_coupon_limit_cannot_drop_below_uses(client, db, make_coupon, admin_headers):
    coupon_id = make_coupon(usage_limit=5, usage_count=4)
    payload = {
        "code": "ARTE10",
        "discount_type": "percentage",
        "discount_value": 10,
        "valid_from": "2025-01-01T00:00:00Z",
        "valid_until": "2030-01-01T00:00:00Z",
        "usage_limit": 2,
    }
    res = client.put(f"/api/coupons/{coupon_id}", json=payload, headers=admin_headers)
    assert res.status_code == 409
    assert db["coupon"].find_one({"_id": ObjectId(coupon_id)})["usage_limit"] == 5

    res = client.put(f"/api/coupons/{coupon_id}", json={**payload, "usage_limit": 4}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["usage_limit"] == 4
    assert res.json()["usage_count"] == 4

    missing = client.put(f"/api/coupons/{ObjectId()}", json={**payload, "code": "OTRO"}, headers=admin_headers)
    assert missing.status_code == 404


def test_checkout_and_public_order_lookup(client, make_painting, make_coupon, shipping_info):
    pid = make_painting(price=100000)
    make_coupon(code="ARTE10", discount_value=10, max_discount=8000)

    res = client.post("/api/checkout", json={
        "items": [{"painting_id": pid, "quantity": 1}],
        "shipping_info": shipping_info,
        "payment_method": "webpay",
        "coupon_code": "ARTE10",
    })
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 97000

    order_url = f"/api/orders/{body['order_id']}"
    assert client.get(order_url).status_code == 400
    assert client.get(order_url, params={"token": "wrong"}).status_code == 401
    order = client.get(order_url, params={"token": body["public_access_token"]}).json()
    assert order["order_number"] == body["order_number"]
    assert "public_access_token" not in order


def test_checkout_errors(client, make_painting, make_coupon, shipping_info):
    assert client.post("/api/checkout", json={"items": [], "shipping_info": shipping_info}).status_code == 400

    pid = make_painting(price=40000, stock=1)
    make_coupon(code="BIG", min_purchase=50000)
    res = client.post("/api/checkout", json={
        "items": [{"painting_id": pid, "quantity": 1}],
        "shipping_info": shipping_info,
        "coupon_code": "BIG",
    })
    assert res.status_code == 400
    assert res.json()["detail"]["reason"] == "below_minimum"

    res = client.post("/api/checkout", json={
        "items": [{"painting_id": pid, "quantity": 2}],
        "shipping_info": shipping_info,
    })
    assert res.status_code == 409


def test_order_status_changes_are_unconditional(client, make_painting, shipping_info, admin_headers):
    pid = make_painting()
    order_id = client.post("/api/checkout", json={
        "items": [{"painting_id": pid, "quantity": 1}],
        "shipping_info": shipping_info,
    }).json()["order_id"]

    for status in ("confirmed", "delivered", "pending"):
        res = client.patch(f"/api/orders/{order_id}/status", json={"status": status}, headers=admin_headers)
        assert res.json()["status"] == status
    res = client.patch(
        f"/api/orders/{order_id}/shipping-status", json={"shipping_status": "shipped"}, headers=admin_headers
    )
    assert res.json()["shipping_status"] == "shipped"
    client.patch(f"/api/orders/{order_id}/payment", json={"status": "paid"}, headers=admin_headers)

    orders = client.get("/api/orders", headers=admin_headers).json()
    assert orders[0]["status"] == "pending"
    assert orders[0]["shipping_status"] == "shipped"
    assert orders[0]["payment_info"]["status"] == "paid"
    assert orders[0]["payment_info"]["paid_at"] is not None

    bad = client.patch(f"/api/orders/{order_id}/status", json={"status": "lost"}, headers=admin_headers)
    assert bad.status_code == 422
    assert client.delete(f"/api/orders/{order_id}", headers=admin_headers).json() == {"deleted": True}


def test_custom_order_price_computed_from_size(client, admin_headers):
    sizes = client.get("/api/custom-orders/sizes").json()
    assert sizes[0]["price"] == 145000

    res = client.post("/api/custom-orders", json={
        "customer_name": "Diego Soto",
        "email": "diego@example.com",
        "phone": "+56998765432",
        "reference_image_url": "https://example.com/ref.jpg",
        "size_name": "50x70 cm",
    }).json()
    assert res["total_price"] == 435000
    assert res["status"] == "pending"

    changed = client.patch(
        f"/api/custom-orders/{res['id']}/status", json={"status": "in-progress"}, headers=admin_headers
    )
    assert changed.json()["status"] == "in-progress"

    unknown = client.post("/api/custom-orders", json={
        "customer_name": "Diego Soto",
        "email": "diego@example.com",
        "phone": "+56998765432",
        "reference_image_url": "https://example.com/ref.jpg",
        "size_name": "1x1 cm",
    })
    assert unknown.status_code == 400


def test_reviews_need_approval(client, make_painting, admin_headers):
    pid = make_painting()
    review = client.post("/api/reviews", json={
        "painting_id": pid,
        "user_name": "Ana",
        "rating": 4,
        "comment": "Hermosa obra, llegó muy bien embalada.",
    }).json()
    assert client.get(f"/api/paintings/{pid}/reviews").json()["count"] == 0

    client.patch(f"/api/reviews/{review['id']}/approve", headers=admin_headers)
    listed = client.get(f"/api/paintings/{pid}/reviews").json()
    assert listed["count"] == 1
    assert listed["average"] == 4
    assert client.get(f"/api/paintings/{pid}").json()["rating"] == {"average": 4, "count": 1}

    short = client.post("/api/reviews", json={"painting_id": pid, "user_name": "Ana", "rating": 5, "comment": "ok"})
    assert short.status_code == 400


def test_blog_lists_published_posts(client, db):
    db["blogpost"].insert_many([
        {"title": "Old", "slug": "old", "published": True, "published_at": datetime(2024, 1, 1, tzinfo=timezone.utc)},
        {"title": "New", "slug": "new", "published": True, "published_at": datetime(2025, 1, 1, tzinfo=timezone.utc)},
        {"title": "Draft", "slug": "draft", "published": False},
    ])
    assert [p["slug"] for p in client.get("/api/blog").json()] == ["new", "old"]
    assert client.get("/api/blog/new").json()["title"] == "New"
    assert client.get("/api/blog/draft").status_code == 404


def test_blog_admin_lifecycle(client, db, admin_headers):
    post = {"title": "Técnicas de óleo", "excerpt": "Capas y veladuras", "content": "...", "published": True}
    created = client.post("/api/blog", json=post, headers=admin_headers)
    assert created.status_code == 200
    assert created.json()["slug"] == "tecnicas-de-oleo"
    assert created.json()["published_at"] is not None

    draft = client.post("/api/blog", json={"title": "Próxima muestra"}, headers=admin_headers).json()
    assert draft["published_at"] is None

    assert [p["slug"] for p in client.get("/api/blog").json()] == ["tecnicas-de-oleo"]
    assert len(client.get("/api/admin/blog", headers=admin_headers).json()) == 2
    assert client.post("/api/blog", json=post, headers=admin_headers).status_code == 409
    assert client.post("/api/blog", json={"title": "Nuevo"}).status_code == 401

    published = client.put(
        f"/api/blog/{draft['id']}",
        json={"title": "Próxima muestra", "published": True},
        headers=admin_headers,
    ).json()
    assert published["published"] is True
    assert published["published_at"] is not None
    assert client.get("/api/blog/proxima-muestra").status_code == 200

    clash = client.put(
        f"/api/blog/{draft['id']}",
        json={"title": "Otra", "slug": "tecnicas-de-oleo"},
        headers=admin_headers,
    )
    assert clash.status_code == 409

    assert client.delete(f"/api/blog/{created.json()['id']}", headers=admin_headers).json() == {"deleted": True}
    assert client.get("/api/blog/tecnicas-de-oleo").status_code == 404

    actions = [log["action"] for log in client.get("/api/admin/logs", headers=admin_headers).json()]
    assert set(actions) == {"blog_post_published", "blog_post_created", "blog_post_deleted"}


def test_settings_defaults_and_overwrite(client, admin_headers):
    general = client.get("/api/settings/general").json()
    assert general["primary_color"] == "#5B7F2D"
    assert client.get("/api/settings/unknown").status_code == 404

    saved = client.put("/api/settings/music", json={"enabled": True, "volume": 0.3}, headers=admin_headers)
    assert saved.status_code == 200
    music = client.get("/api/settings/music").json()
    assert music["enabled"] is True
    assert music["volume"] == 0.3

    # Saving replaces the whole document
    client.put("/api/settings/music", json={"autoplay": True}, headers=admin_headers)
    music = client.get("/api/settings/music").json()
    assert music["enabled"] is False
    assert music["autoplay"] is True

    bad = client.put("/api/settings/music", json={"volume": 3}, headers=admin_headers)
    assert bad.status_code == 422


def test_admin_user_roles(client, db, admin_headers):
    db["user"].insert_many([
        {"uid": "u1", "email": "a@example.com", "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc)},
        {"uid": "admin-1", "email": "admin@example.com", "role": "admin",
         "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc)},
    ])
    users = client.get("/api/admin/users", headers=admin_headers).json()["users"]
    assert [u["uid"] for u in users] == ["u1", "admin-1"]
    assert users[1]["is_admin"] is True
    assert users[0]["email_verified"] is False
    assert users[0]["last_sign_in_at"] is not None
    assert "role" not in users[0]

    res = client.post("/api/admin/users/set-role", json={"uid": "u1", "role": "admin"}, headers=admin_headers)
    assert res.json()["success"] is True
    assert db["user"].find_one({"uid": "u1"})["role"] == "admin"

    own = client.post(
        "/api/admin/users/set-role", json={"uid": "admin-1", "role": None, "admin_uid": "admin-1"},
        headers=admin_headers,
    )
    assert own.status_code == 400
    missing = client.post("/api/admin/users/set-role", json={"uid": "ghost", "role": "admin"}, headers=admin_headers)
    assert missing.status_code == 404
