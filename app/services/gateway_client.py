# app/services/gateway_client.py
from decimal import Decimal

import requests
from requests import RequestException

from app.domain.errors import GatewayRejectedError, GatewayUnavailableError
from app.domain.results import GatewayVerification
from app.domain.rules import to_minor_units
from app.utils.settings import (
    APP_ORIGIN,
    GATEWAY_TIMEOUT_SECONDS,
    PAYSTACK_BASE_URL,
    PAYSTACK_SECRET_KEY,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)


class PaystackClient:
    """
    Thin adapter over the Paystack transaction API.
    - no retries here, every failure goes back to the caller
    - every call is bounded by a timeout
    """

    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        callback_url: str | None = None,
    ):
        self.secret_key = secret_key if secret_key is not None else PAYSTACK_SECRET_KEY
        self.base_url = (base_url or PAYSTACK_BASE_URL).rstrip("/")
        self.timeout = timeout or GATEWAY_TIMEOUT_SECONDS
        self.callback_url = callback_url or f"{APP_ORIGIN.rstrip('/')}/payment/callback"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    def initialize_transaction(
        self,
        email: str,
        amount: Decimal,
        reference: str,
        metadata: dict | None = None,
    ) -> str:
        url = f"{self.base_url}/transaction/initialize"
        payload = {
            "email": email,
            "amount": to_minor_units(amount),
            "reference": reference,
            "metadata": metadata or {},
            "callback_url": self.callback_url,
        }
        logger.info(f"PaystackClient POST {url} reference={reference}")

        try:
            resp = requests.post(url, json=payload, headers=self._headers(), timeout=self.timeout)
        except RequestException as e:
            logger.error(f"Gateway unreachable while initializing {reference}: {e}")
            raise GatewayUnavailableError() from e

        if resp.status_code >= 500:
            raise GatewayUnavailableError(f"Payment gateway error ({resp.status_code})")

        body = _json_or_empty(resp)
        if resp.status_code >= 400 or not body.get("status"):
            raise GatewayRejectedError(body.get("message") or "Failed to initialize payment")

        checkout_url = (body.get("data") or {}).get("authorization_url")
        if not checkout_url:
            raise GatewayRejectedError("Gateway response did not contain a checkout URL")
        return checkout_url

    def verify_transaction(self, reference: str) -> GatewayVerification:
        url = f"{self.base_url}/transaction/verify/{reference}"
        logger.info(f"PaystackClient GET {url}")

        #timeout / connection error -> caller leaves the payment pending
        try:
            resp = requests.get(url, headers=self._headers(), timeout=self.timeout)
        except RequestException as e:
            logger.error(f"Gateway unreachable while verifying {reference}: {e}")
            raise GatewayUnavailableError() from e

        if resp.status_code >= 500:
            raise GatewayUnavailableError(f"Payment gateway error ({resp.status_code})")

        body = _json_or_empty(resp)
        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        status = data.get("status")

        #4xx and negative envelopes are an authoritative "not successful"
        success = resp.status_code < 400 and bool(body.get("status")) and status == "success"
        return GatewayVerification(success=success, status=status, data=data)


def _json_or_empty(resp) -> dict:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
