# app/repos/payment_repo.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.data.models.payment import PaymentModel, PaymentReferenceModel, PENDING


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_reference(self, reference: str) -> PaymentModel | None:
        """Resolve a current or rotated-out reference to its payment."""
        return self.db.execute(
            select(PaymentModel)
            .join(PaymentReferenceModel, PaymentReferenceModel.payment_id == PaymentModel.id)
            .where(PaymentReferenceModel.reference == reference)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_pending_for_user(self, user_id: int) -> list[PaymentModel]:
        #newest first
        return list(
            self.db.execute(
                select(PaymentModel)
                .where(PaymentModel.user_id == user_id, PaymentModel.status == PENDING)
                .order_by(PaymentModel.created_at.desc(), PaymentModel.id.desc())
                .execution_options(populate_existing=True)
            ).scalars().all()
        )

    def get_status(self, payment_id: int) -> str | None:
        return self.db.execute(
            select(PaymentModel.status).where(PaymentModel.id == payment_id)
        ).scalar_one_or_none()

    def create_payment(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        self.db.flush()
        self.db.add(PaymentReferenceModel(reference=payment.reference, payment_id=payment.id))
        self.db.flush()
        return payment

    def rotate_reference(self, payment_id: int, new_reference: str, amount: Decimal) -> int:
        """Point a still-pending payment at a fresh reference.

        Returns 0 when the payment left pending in the meantime.
        """
        result = self.db.execute(
            update(PaymentModel)
            .where(PaymentModel.id == payment_id, PaymentModel.status == PENDING)
            .values(
                reference=new_reference,
                amount=amount,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            self.db.add(PaymentReferenceModel(reference=new_reference, payment_id=payment_id))
            self.db.flush()
        return result.rowcount

    def transition_status(self, payment_id: int, from_status: str, to_status: str, reference: str | None = None) -> int:
        """Conditional status write, the only way a payment reaches a terminal state.

        UPDATE payments SET status = :to WHERE id = :id AND status = :from
        0 rows means a concurrent caller already moved the payment.
        """
        conditions = [PaymentModel.id == payment_id, PaymentModel.status == from_status]
        if reference is not None:
            conditions.append(PaymentModel.reference == reference)

        result = self.db.execute(
            update(PaymentModel)
            .where(*conditions)
            .values(status=to_status, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
