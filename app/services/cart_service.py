from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
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
from app.domain.rules import compute_cart_total
from app.repos.cart_repo import CartRepo
from app.repos.enrollment_repo import EnrollmentRepo
from app.services.course_client import CourseClient
from app.utils.settings import CART_MAX_ITEMS
from app.utils.logging import get_logger

logger = get_logger(__name__)

class CartService:
    """
    Simple cqrs split for the cart domain
    commands (add, remove, clear) modify state
    queries (get, count) only read
    """

    def __init__(
        self,
        db: Session,
        course_client: CourseClient,
        max_items: int = CART_MAX_ITEMS,
    ):
        self.repo = CartRepo(db)
        self.enrollments = EnrollmentRepo(db)
        self.course_client = course_client
        self.max_items = max_items

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        if not cart:
            raise CartNotFoundError(user_id)

        return self._to_dict(cart)

    def count_items(self, user_id: int) -> int:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return 0
        return len(self.repo.get_cart_items(cart.id))

    #commands
    def add_course(self, user_id: int, course_id: int) -> Dict[str, Any]:
        #catalog check: exists, published, priced
        course = self.course_client.fetch_course(course_id)

        if not course:
            raise CourseNotFoundError(course_id)

        if not course.get("published"):
            raise CourseNotPublishedError(course_id)

        price = Decimal(str(course.get("price", 0)))
        if price <= 0:
            raise InvalidCoursePriceError(course_id)

        if self.enrollments.exists(user_id, course_id):
            raise AlreadyEnrolledError([course_id], [course.get("title", str(course_id))])

        #cart is created lazily on the first add
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            try:
                cart = self.repo.create_cart(
                    CartModel(user_id=user_id, total_price=Decimal("0.00"), version=1)
                )
            except IntegrityError as e:
                #a concurrent first add created the cart
                self.repo.rollback()
                raise CartConflictError() from e
            logger.info(f"Created cart {cart.id} for user {user_id}")

        items = self.repo.get_cart_items(cart.id)

        if any(i.course_id == course_id for i in items):
            self.repo.rollback()
            raise CourseAlreadyInCartError(course_id)

        if len(items) >= self.max_items:
            self.repo.rollback()
            raise CartFullError(self.max_items)

        logger.info(f"Adding course {course_id} to cart {cart.id} at {price}")
        try:
            self.repo.add_cart_item(
                CartItemModel(
                    cart_id=cart.id,
                    course_id=course_id,
                    title=course.get("title", ""),
                    price=price,
                )
            )
        except IntegrityError as e:
            #u_cart_course, a concurrent add of the same course won
            self.repo.rollback()
            raise CourseAlreadyInCartError(course_id) from e

        self._bump(cart, [i.price for i in items] + [price])

        logger.info(f"Course {course_id} added to cart {cart.id}, new version: {cart.version + 1}")
        return self.get_cart(user_id)

    def remove_course(self, user_id: int, course_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        if not cart:
            raise CartNotFoundError(user_id)

        if not self.repo.get_cart_item(cart.id, course_id):
            raise CartItemNotFoundError(course_id)

        logger.info(f"Removing course {course_id} from cart {cart.id}")

        self.repo.delete_cart_item(cart.id, course_id)
        remaining = self.repo.get_cart_items(cart.id)

        self._bump(cart, [i.price for i in remaining])

        return self.get_cart(user_id)

    def clear_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        if not cart:
            raise CartNotFoundError(user_id)

        self.repo.clear_cart_for_user(user_id)
        self.repo.commit()

        logger.info(f"Cart {cart.id} cleared")
        return self.get_cart(user_id)

    # ---------- helpers ----------

    def _bump(self, cart: CartModel, prices: list[Decimal]):
        """Recompute the total and advance the version, or fail on a lost race."""
        # optimistic locking: UPDATE ... SET version = 2 WHERE id = 1 AND version = 1
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={
                "version": cart.version + 1,
                "total_price": compute_cart_total(prices),
                "updated_at": datetime.now(timezone.utc),
            },
        )

        if rowcount == 0:
            self.repo.rollback()
            raise CartConflictError()

        self.repo.commit()

    def _to_dict(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)

        #dict serialized to json by the router
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "items": [
                {
                    "course_id": i.course_id,
                    "title": i.title,
                    "price": i.price,
                }
                for i in items
            ],
            "total": compute_cart_total(i.price for i in items),
            "updated_at": cart.updated_at,
        }
