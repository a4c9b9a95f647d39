# app/services/settlement_service.py
from sqlalchemy.orm import Session

from app.data.models.payment import PENDING, COMPLETED, FAILED
from app.data.unit_of_work import SqlAlchemyUnitOfWork
from app.domain.errors import (
    InvalidReferenceError,
    PaymentAlreadyFailedError,
    PaymentNotFoundError,
)
from app.domain.results import SettlementOutcome, SettlementResult
from app.domain.rules import is_valid_reference
from app.services.gateway_client import PaystackClient
from app.services.notification_service import NotificationService
from app.utils.retry import db_retry
from app.utils.logging import get_logger

logger = get_logger(__name__)


class SettlementService:
    """
    Turns a confirmed payment into enrollments, exactly once.

    Called from the webhook and from the verify endpoint, possibly at the same
    time and possibly many times for one reference. payments.status is the only
    mutex: every terminal write is a conditional UPDATE on the current status,
    and the (user_id, course_id) unique constraint backs up enrollment inserts.
    """

    def __init__(
        self,
        db: Session,
        gateway: PaystackClient,
        notifier: NotificationService | None = None,
    ):
        self.db = db
        self.gateway = gateway
        self.notifier = notifier

    def verify_and_settle(self, reference: str, user_id: int | None = None) -> SettlementResult:
        """
        Use Case: settle a payment by reference.

        user_id is the caller's identity on the polling path, the webhook has
        none. A payment owned by someone else is reported as not found.

        1. load the payment (read transaction closed before the gateway call)
        2. completed -> already settled, failed -> PaymentAlreadyFailedError
        3. verify with the gateway (authoritative)
        4. failure -> pending to failed
        5. success -> pending to completed + enrollments + cart clear, atomically
        """
        if not is_valid_reference(reference):
            raise InvalidReferenceError()

        with SqlAlchemyUnitOfWork(self.db) as uow:
            payment = uow.payments.get_by_reference(reference)
            if not payment:
                raise PaymentNotFoundError(reference)

            if user_id is not None and payment.user_id != user_id:
                logger.warning(f"User {user_id} tried to verify payment {reference} of user {payment.user_id}")
                raise PaymentNotFoundError(reference)

            payment_id = payment.id
            status = payment.status
            user_id = payment.user_id
            course_ids = list(payment.course_ids)
            current_reference = payment.reference

        if status == COMPLETED:
            logger.info(f"Payment {reference} already settled, skipping gateway call")
            return SettlementResult(SettlementOutcome.ALREADY_SETTLED, reference)

        if status == FAILED:
            raise PaymentAlreadyFailedError(reference)

        #GatewayUnavailableError propagates, the payment stays pending
        verification = self.gateway.verify_transaction(reference)

        if not verification.success:
            return self._fail(payment_id, reference, current_reference, verification.status)

        result = self._settle(payment_id, reference, user_id, course_ids)

        if result.outcome == SettlementOutcome.SETTLED:
            self._notify(user_id, course_ids, reference)

        return result

    def record_failure(self, reference: str) -> str:
        """
        Use Case: the gateway reported a failed or disputed charge.

        Marks the payment failed only while it is pending and only for its
        current reference. Returns the resulting status.
        """
        if not is_valid_reference(reference):
            raise InvalidReferenceError()

        with SqlAlchemyUnitOfWork(self.db) as uow:
            payment = uow.payments.get_by_reference(reference)
            if not payment:
                raise PaymentNotFoundError(reference)

            if payment.status != PENDING:
                logger.info(f"Payment {reference} already {payment.status}, failure event ignored")
                return payment.status

            if payment.reference != reference:
                logger.info(
                    f"Failure event for rotated-out reference {reference} "
                    f"(current {payment.reference}), payment left pending"
                )
                return payment.status

            moved = uow.payments.transition_status(payment.id, PENDING, FAILED, reference=reference)
            payment_id = payment.id

        if moved:
            logger.info(f"Payment {reference} marked failed")
            return FAILED

        return self._current_status(payment_id)

    # ---------- internals ----------

    def _fail(self, payment_id: int, reference: str, current_reference: str, gateway_status: str | None):
        logger.info(f"Gateway did not confirm payment {reference} (status={gateway_status})")

        if reference != current_reference:
            #an abandoned attempt under an old reference says nothing about the current one
            logger.warning(f"Reference {reference} was rotated out, payment {payment_id} left pending")
            return SettlementResult(SettlementOutcome.FAILED, reference)

        with SqlAlchemyUnitOfWork(self.db) as uow:
            moved = uow.payments.transition_status(payment_id, PENDING, FAILED, reference=reference)

        if not moved and self._current_status(payment_id) == COMPLETED:
            logger.info(f"Payment {reference} was settled concurrently")
            return SettlementResult(SettlementOutcome.ALREADY_SETTLED, reference)

        if moved:
            logger.info(f"Payment {reference} marked failed")
        return SettlementResult(SettlementOutcome.FAILED, reference)

    @db_retry()
    def _settle(self, payment_id: int, reference: str, user_id: int, course_ids: list[int]) -> SettlementResult:
        with SqlAlchemyUnitOfWork(self.db) as uow:
            #entry guard, first write of the unit
            moved = uow.payments.transition_status(payment_id, PENDING, COMPLETED)

            if not moved:
                uow.rollback()
                return self._lost_race(payment_id, reference)

            inserted = uow.enrollments.insert_missing(user_id, course_ids)
            uow.carts.clear_cart_for_user(user_id)

        logger.info(
            f"Payment {reference} settled: {inserted}/{len(course_ids)} enrollments created "
            f"for user {user_id}, cart cleared"
        )
        return SettlementResult(SettlementOutcome.SETTLED, reference, tuple(course_ids))

    def _lost_race(self, payment_id: int, reference: str) -> SettlementResult:
        status = self._current_status(payment_id)

        if status == FAILED:
            logger.error(f"Gateway confirmed payment {reference} but it is already marked failed")
            raise PaymentAlreadyFailedError(reference)

        logger.info(f"Payment {reference} settled by a concurrent caller")
        return SettlementResult(SettlementOutcome.ALREADY_SETTLED, reference)

    def _current_status(self, payment_id: int) -> str:
        with SqlAlchemyUnitOfWork(self.db) as uow:
            return uow.payments.get_status(payment_id)

    def _notify(self, user_id: int, course_ids: list[int], reference: str):
        if self.notifier is None:
            return
        #settlement is already committed, a lost notification must not undo it
        try:
            self.notifier.send_enrollment_notification(user_id, course_ids, reference)
        except Exception as e:
            logger.exception(f"Failed to enqueue enrollment notification for {reference}: {e}")
