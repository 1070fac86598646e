"""
Pytest configuration: in-memory database, seeded catalog, API client.
"""
import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("SMS_ENABLED", "false")

from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from hardware_store.core.config import get_settings
from hardware_store.database import Database
from hardware_store.main import create_app
from hardware_store.models.product import Category, Product
from hardware_store.repositories.order_repo import OrderRepository
from hardware_store.repositories.product_repo import ProductRepository
from hardware_store.repositories.status_event_repo import StatusEventRepository
from hardware_store.schemas.order import OrderCreate, OrderItemCreate
from hardware_store.services.order_service import OrderService


class RecordingNotifier:
    """Keeps every notification; optionally blows up on each call."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.notifications = []

    def notify(self, notification):
        self.notifications.append(notification)
        if self.fail:
            raise RuntimeError("sms gateway down")

    @property
    def statuses(self):
        return [n.status.value for n in self.notifications]


@pytest.fixture
def database():
    db = Database("sqlite://").open()
    db.create_all()
    yield db
    db.close()


@pytest.fixture
def session(database):
    with database.session() as session:
        yield session


@pytest.fixture
def catalog(database):
    """Two categories, three products (one unavailable). Pipe: 50 on hand, wire: 10."""
    with database.session() as session:
        plumbing = Category(name="Plumbing")
        electrical = Category(name="Electrical")
        session.add(plumbing)
        session.add(electrical)
        session.flush()

        pipe = Product(
            name="PVC Pipe 1/2in",
            category_id=plumbing.id,
            price=Decimal("85.50"),
            unit="length",
            stock_quantity=50,
        )
        wire = Product(
            name="THHN Wire 2.0mm",
            category_id=electrical.id,
            price=Decimal("1200.00"),
            unit="box",
            stock_quantity=10,
        )
        cement = Product(
            name="Portland Cement",
            price=Decimal("260.00"),
            unit="bag",
            stock_quantity=5,
            is_available=False,
        )
        session.add_all([pipe, wire, cement])
        session.commit()

        return SimpleNamespace(
            plumbing_id=plumbing.id,
            electrical_id=electrical.id,
            pipe_id=pipe.id,
            wire_id=wire.id,
            cement_id=cement.id,
        )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def order_service(notifier):
    return OrderService(
        OrderRepository(),
        ProductRepository(),
        StatusEventRepository(),
        notifier=notifier,
    )


@pytest.fixture
def make_order_payload(catalog):
    def _make(items=None, **overrides) -> OrderCreate:
        data = {
            "customer_name": "Juan Dela Cruz",
            "phone": "0917 123 4567",
            "address": "123 Rizal St.",
            "barangay": "San Isidro",
            "landmarks": "Near the chapel",
            "items": items
            if items is not None
            else [
                OrderItemCreate(product_id=catalog.pipe_id, quantity=2),
                OrderItemCreate(product_id=catalog.wire_id, quantity=1),
            ],
        }
        data.update(overrides)
        return OrderCreate(**data)

    return _make


@pytest.fixture
def client(database, catalog, notifier):
    app = create_app(get_settings(), database=database, notifier=notifier)
    with TestClient(app) as test_client:
        yield test_client


def _bearer(claims: dict) -> dict:
    settings = get_settings()
    token = jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return _bearer({"sub": "admin-1", "role": "admin"})


@pytest.fixture
def customer_headers():
    return _bearer({"sub": "customer-42", "role": "customer"})
