"""Pytest fixtures for checkout service tests."""

import os
import tempfile
import threading
from decimal import Decimal
from pathlib import Path

#must be set before app.utils.settings is imported
_BOOTSTRAP_DIR = tempfile.mkdtemp(prefix="checkout-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{Path(_BOOTSTRAP_DIR) / 'bootstrap.db'}")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_secret")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.data.database import init_db
from app.data.models import CartItemModel, CartModel, EnrollmentModel, UserModel
from app.domain.results import CurrentUser, GatewayVerification
from app.domain.rules import compute_cart_total

WEBHOOK_SECRET = "whsec_test_secret"


class FakeGateway:
    """In-memory stand-in for PaystackClient."""

    def __init__(self):
        self._lock = threading.Lock()
        self.initialized = []
        self.verified = []
        self.verify_success = True
        self.verify_status = None
        self.initialize_error = None
        self.verify_error = None
        self.on_verify = None

    def initialize_transaction(self, email, amount, reference, metadata=None):
        with self._lock:
            self.initialized.append(
                {"email": email, "amount": amount, "reference": reference, "metadata": metadata}
            )
        if self.initialize_error is not None:
            raise self.initialize_error
        return f"https://checkout.paystack.test/{reference}"

    def verify_transaction(self, reference):
        with self._lock:
            self.verified.append(reference)
        if self.on_verify is not None:
            self.on_verify(reference)
        if self.verify_error is not None:
            raise self.verify_error
        status = self.verify_status or ("success" if self.verify_success else "failed")
        return GatewayVerification(success=self.verify_success, status=status, data={"reference": reference})


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def send_enrollment_notification(self, user_id, course_ids, reference):
        self.sent.append((user_id, list(course_ids), reference))


class FakeCourseClient:
    def __init__(self, courses=None):
        self.courses = courses or {
            1: {"id": 1, "title": "Course A", "price": 20.00, "published": True},
            2: {"id": 2, "title": "Course B", "price": 30.00, "published": True},
            3: {"id": 3, "title": "Course C", "price": 45.50, "published": True},
            4: {"id": 4, "title": "Draft", "price": 25.00, "published": False},
            5: {"id": 5, "title": "Free", "price": 0, "published": True},
        }

    def fetch_course(self, course_id):
        return self.courses.get(course_id)


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'checkout.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def user(db):
    db.add(UserModel(id=1, name="Ada", email="ada@example.com"))
    db.commit()
    return CurrentUser(id=1, email="ada@example.com")


def fill_cart(db, user_id, items):
    """Create (or extend) a user's cart with (course_id, title, price) tuples."""
    cart = db.query(CartModel).filter(CartModel.user_id == user_id).one_or_none()
    if cart is None:
        cart = CartModel(user_id=user_id, total_price=Decimal("0.00"), version=1)
        db.add(cart)
        db.flush()

    for course_id, title, price in items:
        db.add(CartItemModel(cart_id=cart.id, course_id=course_id, title=title, price=Decimal(price)))
    db.flush()

    prices = [i.price for i in db.query(CartItemModel).filter(CartItemModel.cart_id == cart.id)]
    cart.total_price = compute_cart_total(prices)
    db.commit()
    return cart


def enroll(db, user_id, course_id):
    db.add(EnrollmentModel(user_id=user_id, course_id=course_id, completed_lessons=[]))
    db.commit()


@pytest.fixture
def cart_ab(db, user):
    """cart = [courseA ($20), courseB ($30)]"""
    return fill_cart(db, user.id, [(1, "Course A", "20.00"), (2, "Course B", "30.00")])
