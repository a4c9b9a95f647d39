"""Pure cart and payment rules, callable without a storage round-trip."""

import re
import secrets
import time
from decimal import Decimal
from typing import Iterable

ZERO = Decimal("0.00")

_REFERENCE_RE = re.compile(r"^[A-Za-z0-9_.=-]{1,100}$")


def compute_cart_total(prices: Iterable[Decimal]) -> Decimal:
    """Sum of current item prices, recomputed after every cart mutation."""
    return sum((Decimal(p) for p in prices), ZERO).quantize(Decimal("0.01"))


def normalize_course_set(course_ids: Iterable[int]) -> list[int]:
    return sorted({int(c) for c in course_ids})


def same_course_set(left: Iterable[int], right: Iterable[int]) -> bool:
    return normalize_course_set(left) == normalize_course_set(right)


def course_set_key(course_ids: Iterable[int]) -> str:
    #"1,2,3", one pending payment per (user, key)
    return ",".join(str(c) for c in normalize_course_set(course_ids))


def generate_reference() -> str:
    return f"ref_{int(time.time() * 1000)}_{secrets.token_hex(6)}"


def is_valid_reference(reference: str | None) -> bool:
    return bool(reference) and bool(_REFERENCE_RE.match(reference))


def to_minor_units(amount: Decimal) -> int:
    #paystack expects kobo
    return int((Decimal(amount) * 100).quantize(Decimal("1")))
