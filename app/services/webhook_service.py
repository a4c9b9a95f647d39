# app/services/webhook_service.py
import hashlib
import hmac
import json

from pydantic import ValidationError as PydanticValidationError

from app.domain.errors import (
    ConflictError,
    InvalidReferenceError,
    InvalidSignatureError,
    MalformedEventError,
    PaymentNotFoundError,
)
from app.domain.schemas import WebhookAck, WebhookEvent
from app.services.settlement_service import SettlementService
from app.utils.logging import get_logger

logger = get_logger(__name__)

CHARGE_SUCCESS = "charge.success"
CHARGE_FAILURE_EVENTS = {"charge.failed", "charge.dispute"}


def compute_signature(secret: str, raw_body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


class WebhookService:
    """
    Authenticates gateway callbacks and hands them to settlement.
    The HMAC check is the only trust boundary, nothing runs before it passes.
    """

    def __init__(self, settlement: SettlementService, secret: str):
        self.settlement = settlement
        self.secret = secret

    def verify_signature(self, raw_body: bytes, signature: str | None) -> None:
        if not signature or not self.secret:
            raise InvalidSignatureError()

        expected = compute_signature(self.secret, raw_body)
        if not hmac.compare_digest(expected, signature.strip().lower()):
            raise InvalidSignatureError()

    def handle_event(self, raw_body: bytes, signature: str | None) -> WebhookAck:
        try:
            self.verify_signature(raw_body, signature)
        except InvalidSignatureError:
            logger.warning("Webhook rejected: invalid signature")
            raise

        event = self._parse(raw_body)
        reference = event.data.reference
        logger.info(f"[webhook] {event.event} (reference={reference})")

        if event.event == CHARGE_SUCCESS:
            return self._dispatch(event, lambda ref: {
                "outcome": self.settlement.verify_and_settle(ref).outcome.value,
            })

        if event.event in CHARGE_FAILURE_EVENTS:
            return self._dispatch(event, lambda ref: {
                "status": self.settlement.record_failure(ref),
            })

        #forward compatibility
        logger.info(f"Unhandled event type: {event.event}")
        return WebhookAck(event=event.event, handled=False)

    def _dispatch(self, event: WebhookEvent, action) -> WebhookAck:
        reference = event.data.reference
        if not reference:
            raise MalformedEventError("data.reference is required")

        #unknown references and terminal-state conflicts are acknowledged,
        #a redelivery would not change the answer
        try:
            detail = action(reference)
        except InvalidReferenceError:
            #signed but unusable, redelivery would fail the same way
            logger.warning(f"Webhook {event.event} with malformed reference {reference!r}, ignored")
            return WebhookAck(event=event.event, handled=False, detail={"reference": reference})
        except PaymentNotFoundError:
            logger.warning(f"Webhook {event.event} for unknown reference {reference}, ignored")
            return WebhookAck(event=event.event, handled=False, detail={"reference": reference})
        except ConflictError as e:
            logger.info(f"Webhook {event.event} for {reference} is a no-op: {e}")
            return WebhookAck(
                event=event.event,
                handled=False,
                detail={"reference": reference, "code": e.code.value},
            )

        detail["reference"] = reference
        return WebhookAck(event=event.event, handled=True, detail=detail)

    @staticmethod
    def _parse(raw_body: bytes) -> WebhookEvent:
        try:
            payload = json.loads(raw_body)
        except ValueError as e:
            raise MalformedEventError("body is not valid JSON") from e

        if not isinstance(payload, dict):
            raise MalformedEventError("body must be a JSON object")

        try:
            return WebhookEvent.model_validate(payload)
        except PydanticValidationError as e:
            raise MalformedEventError(str(e.errors()[0].get("msg", "invalid envelope"))) from e
