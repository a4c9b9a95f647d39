from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, JSON, Index, text

from app.data.database import Base

PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"


def _now():
    return datetime.now(timezone.utc)


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    #normalized course set, sorted distinct ids
    course_ids = Column(JSON, nullable=False)
    course_set_key = Column(String, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String, nullable=False, default=PENDING, index=True)  # pending, completed, failed
    payment_method = Column(String, nullable=False, default="paystack")

    #current reference, every issued one is also kept in payment_references
    reference = Column(String, nullable=False, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    #at most one pending payment per user and course set, concurrent checkouts
    #for the same cart collide here instead of both inserting
    __table_args__ = (
        Index(
            "uq_pending_payment_course_set",
            "user_id",
            "course_set_key",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )


class PaymentReferenceModel(Base):
    __tablename__ = "payment_references"

    reference = Column(String, primary_key=True)
    payment_id = Column(Integer, ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
