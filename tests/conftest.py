from datetime import datetime, timedelta

import pytest

from app import create_app
from config import TestConfig
from models import db
from schemas import CategoryCreate, ProductCreate
from storage import DatabaseStorage


class FrozenClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 3, 14, 10, 30))


@pytest.fixture
def store(app, clock):
    return DatabaseStorage(clock=clock)


@pytest.fixture
def make_product(store):
    def _make(**overrides):
        fields = {
            "name": "Gold Ring",
            "description": "22K gold band",
            "category": "rings",
            "price_inr": "45000.00",
            "price_bhd": "205.125",
            "gross_weight": "5.20",
            "net_weight": "4.90",
            "stock": 3,
        }
        fields.update(overrides)
        return store.create_product(ProductCreate(**fields))
    return _make


@pytest.fixture
def make_category(store):
    def _make(slug, parent_id=None, **overrides):
        fields = {"name": slug.replace("-", " ").title(), "slug": slug, "parent_id": parent_id}
        fields.update(overrides)
        return store.create_category(CategoryCreate(**fields))
    return _make
