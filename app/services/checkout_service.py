# app/services/checkout_service.py
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.payment import PaymentModel, PENDING
from app.data.unit_of_work import SqlAlchemyUnitOfWork
from app.domain.errors import (
    AlreadyEnrolledError,
    CheckoutConflictError,
    EmptyCartError,
    ExternalServiceError,
    PaymentInitializationError,
)
from app.domain.results import CheckoutResult, CurrentUser
from app.domain.rules import (
    compute_cart_total,
    course_set_key,
    generate_reference,
    normalize_course_set,
    same_course_set,
)
from app.services.gateway_client import PaystackClient
from app.utils.retry import conflict_retry
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Cart -> pending payment -> gateway transaction.
    No enrollment or cart writes here, those belong to settlement.
    """

    def __init__(self, db: Session, gateway: PaystackClient):
        self.db = db
        self.gateway = gateway

    def initialize_checkout(self, user: CurrentUser) -> CheckoutResult:
        """
        Use Case: open a payment for the user's cart.

        Reuses the pending payment for an identical course set (reference
        rotated, amount refreshed) instead of creating a duplicate. A pending
        payment for a different course set is left as it is.
        """
        try:
            reference, amount, course_ids, reused = self._open_payment(user)
        except IntegrityError as e:
            logger.warning(f"Checkout for user {user.id} kept colliding with a concurrent checkout")
            raise CheckoutConflictError() from e

        #payment is committed before the outbound call, a gateway failure leaves it pending
        try:
            checkout_url = self.gateway.initialize_transaction(
                user.email,
                amount,
                reference,
                {"user_id": user.id, "course_ids": course_ids},
            )
        except ExternalServiceError as e:
            logger.error(f"Gateway initialization failed for {reference}: {e}")
            raise PaymentInitializationError(e.message) from e

        return CheckoutResult(checkout_url=checkout_url, reused=reused, reference=reference)

    @conflict_retry()
    def _open_payment(self, user: CurrentUser) -> tuple[str, Decimal, list[int], bool]:
        #a concurrent checkout for the same course set wins the pending slot,
        #the second attempt then finds its payment and reuses it
        with SqlAlchemyUnitOfWork(self.db) as uow:
            cart = uow.carts.get_cart_by_user(user.id)
            items = uow.carts.get_cart_items(cart.id) if cart else []

            if not items:
                raise EmptyCartError()

            course_ids = normalize_course_set(i.course_id for i in items)
            amount = compute_cart_total(i.price for i in items)

            enrolled = uow.enrollments.find_for_courses(user.id, course_ids)
            pending = uow.payments.get_pending_for_user(user.id)

            if enrolled:
                enrolled_ids = sorted({e.course_id for e in enrolled})
                titles = [i.title for i in items if i.course_id in enrolled_ids]
                logger.info(f"Checkout blocked for user {user.id}, already enrolled in {enrolled_ids}")
                raise AlreadyEnrolledError(enrolled_ids, titles)

            reference = generate_reference()
            reusable = next((p for p in pending if same_course_set(p.course_ids, course_ids)), None)

            if reusable:
                #conditional on the payment still being pending
                rowcount = uow.payments.rotate_reference(reusable.id, reference, amount)
                if rowcount == 0:
                    uow.rollback()
                    raise CheckoutConflictError()

                logger.info(
                    f"Reusing pending payment {reusable.id} for user {user.id}: "
                    f"reference {reusable.reference} -> {reference}, amount {amount}"
                )
                return reference, amount, course_ids, True

            payment = uow.payments.create_payment(
                PaymentModel(
                    user_id=user.id,
                    course_ids=course_ids,
                    course_set_key=course_set_key(course_ids),
                    amount=amount,
                    status=PENDING,
                    payment_method="paystack",
                    reference=reference,
                )
            )
            logger.info(f"Created pending payment {payment.id} ({reference}) for user {user.id}")
            return reference, amount, course_ids, False
