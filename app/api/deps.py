# app/api/deps.py
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.results import CurrentUser
from app.services.course_client import CourseClient
from app.services.gateway_client import PaystackClient
from app.services.notification_service import NotificationService
from app.services.user_service import UserService
from app.utils.settings import PAYSTACK_SECRET_KEY, WEBHOOK_SIGNATURE_HEADER


def get_current_user(
    x_user_id: int | None = Header(default=None),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Identity forwarded by the upstream auth layer, resolved once per request."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")

    user = UserService(db).resolve_identity(x_user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def get_gateway() -> PaystackClient:
    return PaystackClient()


def get_course_client() -> CourseClient:
    return CourseClient()


def get_notifier() -> NotificationService | None:
    return NotificationService()


def get_webhook_secret() -> str:
    return PAYSTACK_SECRET_KEY


async def get_raw_body(request: Request) -> bytes:
    #exact bytes, the signature is computed over them
    return await request.body()


def get_signature(request: Request) -> str | None:
    return request.headers.get(WEBHOOK_SIGNATURE_HEADER)
