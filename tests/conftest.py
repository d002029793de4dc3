from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import get_db, settings
from main import app

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db():
    client = mongomock.MongoClient(tz_aware=True)
    return client["gallery_store_test"]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {
        "X-Admin-Token": settings.ADMIN_TOKEN,
        "X-Admin-Email": "admin@example.com",
        "X-Admin-Uid": "admin-1",
    }


@pytest.fixture
def make_painting(db):
    def _make(**overrides):
        doc = {
            "title": "Bosque nativo",
            "image_url": "https://example.com/bosque.jpg",
            "images": [],
            "price": 50000,
            "dimensions": {"width": 50, "height": 70},
            "category": "landscape",
            "available": True,
            "created_at": NOW,
        }
        doc.update(overrides)
        return str(db["painting"].insert_one(doc).inserted_id)
    return _make


@pytest.fixture
def make_coupon(db):
    def _make(**overrides):
        doc = {
            "code": "ARTE10",
            "description": "",
            "discount_type": "percentage",
            "discount_value": 10,
            "min_purchase": None,
            "max_discount": None,
            "valid_from": datetime.now(timezone.utc) - timedelta(days=1),
            "valid_until": datetime.now(timezone.utc) + timedelta(days=30),
            "usage_limit": None,
            "usage_count": 0,
            "is_active": True,
        }
        doc.update(overrides)
        return str(db["coupon"].insert_one(doc).inserted_id)
    return _make


@pytest.fixture
def shipping_info():
    return {
        "full_name": "Camila Rojas",
        "email": "camila@example.com",
        "phone": "+56912345678",
        "address": "Av. Brasil 123",
        "city": "Valparaíso",
        "region": "Valparaíso",
        "postal_code": "2340000",
    }
