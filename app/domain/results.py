from dataclasses import dataclass, field
from enum import Enum


class SettlementOutcome(str, Enum):
    SETTLED = "settled"
    ALREADY_SETTLED = "already_settled"
    FAILED = "failed"


_MESSAGES = {
    SettlementOutcome.SETTLED: "Payment verified successfully",
    SettlementOutcome.ALREADY_SETTLED: "Payment already processed",
    SettlementOutcome.FAILED: "Payment verification failed",
}


@dataclass(frozen=True)
class SettlementResult:
    """Outcome of one verify_and_settle call."""

    outcome: SettlementOutcome
    reference: str
    enrolled_course_ids: tuple[int, ...] = field(default_factory=tuple)

    @property
    def message(self) -> str:
        return _MESSAGES[self.outcome]


@dataclass(frozen=True)
class CheckoutResult:
    checkout_url: str
    reused: bool
    reference: str


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated identity passed explicitly into every service call."""

    id: int
    email: str


@dataclass(frozen=True)
class GatewayVerification:
    success: bool
    status: str | None = None
    data: dict = field(default_factory=dict)
