# app/api/routers/payments.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_gateway, get_notifier
from app.data.database import get_db
from app.domain.errors import DomainError, PaymentVerificationFailedError
from app.domain.results import CurrentUser, SettlementOutcome
from app.domain.schemas import CheckoutOut, VerifyOut
from app.services.checkout_service import CheckoutService
from app.services.gateway_client import PaystackClient
from app.services.notification_service import NotificationService
from app.services.settlement_service import SettlementService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/checkout", response_model=CheckoutOut)
def initialize_checkout(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: PaystackClient = Depends(get_gateway),
):
    """
    Opens (or reuses) a pending payment for the user's cart.
    """
    svc = CheckoutService(db, gateway)
    try:
        result = svc.initialize_checkout(user)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return CheckoutOut(
        checkout_url=result.checkout_url,
        reused=result.reused,
        reference=result.reference,
    )


@router.get("/verify", response_model=VerifyOut)
def verify_payment(
    reference: str | None = Query(default=None),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: PaystackClient = Depends(get_gateway),
    notifier: NotificationService | None = Depends(get_notifier),
):
    """
    Client-side polling, same settlement path as the webhook.
    Repeat calls after settlement answer "already processed".
    """
    if not reference:
        raise HTTPException(status_code=400, detail="Payment reference is required")

    svc = SettlementService(db, gateway, notifier)
    try:
        result = svc.verify_and_settle(reference, user_id=user.id)
        if result.outcome == SettlementOutcome.FAILED:
            raise PaymentVerificationFailedError(reference)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return VerifyOut(message=result.message, outcome=result.outcome.value, reference=reference)
