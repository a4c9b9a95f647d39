"""Tests for CartService commands and queries."""

from decimal import Decimal

import pytest

from app.domain.errors import (
    AlreadyEnrolledError,
    CartConflictError,
    CartFullError,
    CartItemNotFoundError,
    CartNotFoundError,
    CourseAlreadyInCartError,
    CourseNotFoundError,
    CourseNotPublishedError,
    InvalidCoursePriceError,
)
from app.repos.cart_repo import CartRepo
from app.services.cart_service import CartService

from .conftest import FakeCourseClient, enroll


@pytest.fixture
def courses():
    return FakeCourseClient()


@pytest.fixture
def svc(db, courses):
    return CartService(db, courses)


class TestQueries:
    def test_missing_cart(self, svc, user):
        with pytest.raises(CartNotFoundError):
            svc.get_cart(user.id)
        assert svc.count_items(user.id) == 0


class TestAdd:
    def test_first_add_creates_cart(self, svc, user):
        cart = svc.add_course(user.id, 1)

        assert cart["user_id"] == user.id
        assert cart["items"] == [{"course_id": 1, "title": "Course A", "price": Decimal("20.00")}]
        assert cart["total"] == Decimal("20.00")

    def test_total_tracks_items(self, svc, user):
        svc.add_course(user.id, 1)
        svc.add_course(user.id, 2)
        cart = svc.add_course(user.id, 3)

        assert [i["course_id"] for i in cart["items"]] == [1, 2, 3]
        assert cart["total"] == Decimal("95.50")
        assert svc.count_items(user.id) == 3

    def test_duplicate_course(self, svc, user):
        svc.add_course(user.id, 1)
        with pytest.raises(CourseAlreadyInCartError):
            svc.add_course(user.id, 1)
        assert svc.count_items(user.id) == 1

    @pytest.mark.parametrize(
        "course_id, error",
        [(4, CourseNotPublishedError), (5, InvalidCoursePriceError), (99, CourseNotFoundError)],
    )
    def test_catalog_rejections(self, svc, user, course_id, error):
        with pytest.raises(error):
            svc.add_course(user.id, course_id)
        assert svc.count_items(user.id) == 0

    def test_owned_course_is_rejected(self, db, svc, user):
        enroll(db, user.id, 2)

        with pytest.raises(AlreadyEnrolledError) as exc:
            svc.add_course(user.id, 2)
        assert exc.value.titles == ["Course B"]

    def test_cart_limit(self, db, courses, user):
        svc = CartService(db, courses, max_items=2)
        svc.add_course(user.id, 1)
        svc.add_course(user.id, 2)

        with pytest.raises(CartFullError) as exc:
            svc.add_course(user.id, 3)
        assert exc.value.limit == 2
        assert svc.count_items(user.id) == 2

    def test_price_is_captured_at_add_time(self, svc, courses, user):
        svc.add_course(user.id, 1)
        courses.courses[1]["price"] = 99.0

        assert svc.get_cart(user.id)["total"] == Decimal("20.00")


class TestRemoveAndClear:
    def test_remove(self, svc, user):
        svc.add_course(user.id, 1)
        svc.add_course(user.id, 2)

        cart = svc.remove_course(user.id, 1)

        assert [i["course_id"] for i in cart["items"]] == [2]
        assert cart["total"] == Decimal("30.00")

    def test_remove_missing_item(self, svc, user):
        svc.add_course(user.id, 1)
        with pytest.raises(CartItemNotFoundError):
            svc.remove_course(user.id, 2)

    def test_remove_without_cart(self, svc, user):
        with pytest.raises(CartNotFoundError):
            svc.remove_course(user.id, 1)

    def test_clear(self, svc, user):
        svc.add_course(user.id, 1)
        svc.add_course(user.id, 2)

        cart = svc.clear_cart(user.id)

        assert cart["items"] == []
        assert cart["total"] == Decimal("0.00")
        assert svc.count_items(user.id) == 0

    def test_version_advances_on_every_change(self, db, svc, user):
        svc.add_course(user.id, 1)
        svc.add_course(user.id, 2)
        svc.remove_course(user.id, 1)

        assert CartRepo(db).get_cart_by_user(user.id).version == 4


class TestConcurrentAdds:
    """Both requests read before either writes; the loser hits a unique constraint."""

    def test_second_first_add_is_a_conflict(self, svc, user, monkeypatch):
        svc.add_course(user.id, 1)
        #this request still sees no cart
        monkeypatch.setattr(CartRepo, "get_cart_by_user", lambda repo, user_id: None)

        with pytest.raises(CartConflictError):
            svc.add_course(user.id, 2)

        monkeypatch.undo()
        assert [i["course_id"] for i in svc.get_cart(user.id)["items"]] == [1]

    def test_same_course_added_twice_at_once(self, svc, user, monkeypatch):
        svc.add_course(user.id, 1)
        #this request still sees an empty cart
        monkeypatch.setattr(CartRepo, "get_cart_items", lambda repo, cart_id: [])

        with pytest.raises(CourseAlreadyInCartError):
            svc.add_course(user.id, 1)

        monkeypatch.undo()
        assert svc.count_items(user.id) == 1
