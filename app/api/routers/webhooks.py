# app/api/routers/webhooks.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_gateway, get_notifier, get_raw_body, get_signature, get_webhook_secret
from app.data.database import get_db
from app.domain.errors import DomainError
from app.domain.schemas import WebhookAck
from app.services.gateway_client import PaystackClient
from app.services.notification_service import NotificationService
from app.services.settlement_service import SettlementService
from app.services.webhook_service import WebhookService

router = APIRouter(prefix="/webhook", tags=["webhooks"])


@router.post("/paystack", response_model=WebhookAck)
def paystack_webhook(
    raw_body: bytes = Depends(get_raw_body),
    signature: str | None = Depends(get_signature),
    secret: str = Depends(get_webhook_secret),
    db: Session = Depends(get_db),
    gateway: PaystackClient = Depends(get_gateway),
    notifier: NotificationService | None = Depends(get_notifier),
):
    """
    Public endpoint, authenticated by the HMAC signature of the body.
    200 for every processed event (idempotent no-ops included) so the
    gateway stops redelivering; 401 on a bad signature.
    """
    svc = WebhookService(SettlementService(db, gateway, notifier), secret)
    try:
        return svc.handle_event(raw_body, signature)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
