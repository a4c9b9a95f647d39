"""Unit of work (atomic settlement unit).

Groups the payment, enrollment and cart writes of one settlement so they are
applied all-or-nothing. Services depend on the interface; the SQLAlchemy
implementation maps it onto one database transaction, other backends could
map it onto compensating actions or an outbox.
"""

from abc import ABC, abstractmethod

from sqlalchemy.orm import Session

from app.repos.cart_repo import CartRepo
from app.repos.enrollment_repo import EnrollmentRepo
from app.repos.payment_repo import PaymentRepo


class UnitOfWork(ABC):
    """Interface for an atomic group of store operations.

    Used as a context manager: leaving the block normally commits, leaving it
    with an exception rolls back. An explicit commit() or rollback() inside the
    block ends the unit early.
    """

    payments: PaymentRepo
    enrollments: EnrollmentRepo
    carts: CartRepo

    def __init__(self) -> None:
        self._finished = False

    def __enter__(self) -> "UnitOfWork":
        self._finished = False
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._finished:
            return
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    def commit(self) -> None:
        try:
            self._commit()
        except Exception:
            self._rollback()
            raise
        finally:
            self._finished = True

    def rollback(self) -> None:
        self._rollback()
        self._finished = True

    @abstractmethod
    def _commit(self) -> None:
        ...

    @abstractmethod
    def _rollback(self) -> None:
        ...


class SqlAlchemyUnitOfWork(UnitOfWork):
    """One database transaction on the request's session."""

    def __init__(self, db: Session) -> None:
        super().__init__()
        self.db = db
        self.payments = PaymentRepo(db)
        self.enrollments = EnrollmentRepo(db)
        self.carts = CartRepo(db)

    def _commit(self) -> None:
        self.db.commit()

    def _rollback(self) -> None:
        self.db.rollback()
