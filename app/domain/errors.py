"""Domain errors for checkout and settlement.

Every error carries a stable code, a user-safe message and the HTTP status
the routers answer with. Concurrent status transitions are not errors: the
settlement engine resolves them as idempotent no-ops.
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    EMPTY_CART = "EMPTY_CART"
    INVALID_REFERENCE = "INVALID_REFERENCE"
    MALFORMED_EVENT = "MALFORMED_EVENT"
    COURSE_NOT_PUBLISHED = "COURSE_NOT_PUBLISHED"
    INVALID_COURSE_PRICE = "INVALID_COURSE_PRICE"
    CART_FULL = "CART_FULL"
    PAYMENT_VERIFICATION_FAILED = "PAYMENT_VERIFICATION_FAILED"

    PAYMENT_NOT_FOUND = "PAYMENT_NOT_FOUND"
    CART_NOT_FOUND = "CART_NOT_FOUND"
    CART_ITEM_NOT_FOUND = "CART_ITEM_NOT_FOUND"
    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    COURSE_ALREADY_IN_CART = "COURSE_ALREADY_IN_CART"
    PAYMENT_ALREADY_FAILED = "PAYMENT_ALREADY_FAILED"
    CHECKOUT_CONFLICT = "CHECKOUT_CONFLICT"
    CART_CONFLICT = "CART_CONFLICT"
    EMAIL_ALREADY_REGISTERED = "EMAIL_ALREADY_REGISTERED"

    GATEWAY_UNAVAILABLE = "GATEWAY_UNAVAILABLE"
    GATEWAY_REJECTED = "GATEWAY_REJECTED"
    PAYMENT_INITIALIZATION_FAILED = "PAYMENT_INITIALIZATION_FAILED"
    CATALOG_UNAVAILABLE = "CATALOG_UNAVAILABLE"

    INVALID_SIGNATURE = "INVALID_SIGNATURE"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    status_code = 500

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


# ---------- taxonomy ----------

class ValidationError(DomainError):
    """Rejected to the caller, no state change."""

    status_code = 400


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """Business-rule conflict, no state change."""

    status_code = 409


class ExternalServiceError(DomainError):
    """Gateway or catalog failure. Payment records are left pending."""

    status_code = 502


class AuthenticationError(DomainError):
    status_code = 401


# ---------- validation ----------

class EmptyCartError(ValidationError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.EMPTY_CART, "Cart is empty")


class InvalidReferenceError(ValidationError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.INVALID_REFERENCE, "Payment reference is missing or malformed")


class MalformedEventError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(ErrorCode.MALFORMED_EVENT, f"Malformed webhook event: {detail}")


class CourseNotPublishedError(ValidationError):
    def __init__(self, course_id: int) -> None:
        super().__init__(ErrorCode.COURSE_NOT_PUBLISHED, "Course is not published")
        self.course_id = course_id


class InvalidCoursePriceError(ValidationError):
    def __init__(self, course_id: int) -> None:
        super().__init__(ErrorCode.INVALID_COURSE_PRICE, "Course price is invalid")
        self.course_id = course_id


class CartFullError(ValidationError):
    def __init__(self, limit: int) -> None:
        super().__init__(ErrorCode.CART_FULL, f"Cart can only hold up to {limit} items")
        self.limit = limit


class PaymentVerificationFailedError(ValidationError):
    def __init__(self, reference: str) -> None:
        super().__init__(ErrorCode.PAYMENT_VERIFICATION_FAILED, "Payment verification failed")
        self.reference = reference


# ---------- not found ----------

class PaymentNotFoundError(NotFoundError):
    def __init__(self, reference: str) -> None:
        super().__init__(ErrorCode.PAYMENT_NOT_FOUND, "Payment not found")
        self.reference = reference


class CartNotFoundError(NotFoundError):
    def __init__(self, user_id: int) -> None:
        super().__init__(ErrorCode.CART_NOT_FOUND, "Cart not found")
        self.user_id = user_id


class CartItemNotFoundError(NotFoundError):
    def __init__(self, course_id: int) -> None:
        super().__init__(ErrorCode.CART_ITEM_NOT_FOUND, "Item not found in cart")
        self.course_id = course_id


class CourseNotFoundError(NotFoundError):
    def __init__(self, course_id: int) -> None:
        super().__init__(ErrorCode.COURSE_NOT_FOUND, "Course not found")
        self.course_id = course_id


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int) -> None:
        super().__init__(ErrorCode.USER_NOT_FOUND, "User not found")
        self.user_id = user_id


# ---------- conflict ----------

class AlreadyEnrolledError(ConflictError):
    """Raised when a user tries to buy a course they already own."""

    def __init__(self, course_ids: list[int], titles: list[str]) -> None:
        super().__init__(
            ErrorCode.ALREADY_ENROLLED,
            f"You are already enrolled in: {', '.join(titles)}",
        )
        self.course_ids = course_ids
        self.titles = titles


class CourseAlreadyInCartError(ConflictError):
    def __init__(self, course_id: int) -> None:
        super().__init__(ErrorCode.COURSE_ALREADY_IN_CART, "Course already exists in cart")
        self.course_id = course_id


class PaymentAlreadyFailedError(ConflictError):
    def __init__(self, reference: str) -> None:
        super().__init__(ErrorCode.PAYMENT_ALREADY_FAILED, "Payment has already failed")
        self.reference = reference


class CheckoutConflictError(ConflictError):
    """The pending payment changed state between read and reuse."""

    def __init__(self) -> None:
        super().__init__(
            ErrorCode.CHECKOUT_CONFLICT,
            "Payment was modified by another operation, please retry checkout",
        )


class CartConflictError(ConflictError):
    def __init__(self) -> None:
        super().__init__(
            ErrorCode.CART_CONFLICT,
            "Cart was modified by another operation, please retry",
        )


class EmailAlreadyRegisteredError(ConflictError):
    def __init__(self, email: str) -> None:
        super().__init__(ErrorCode.EMAIL_ALREADY_REGISTERED, "Email already registered")
        self.email = email


# ---------- external services ----------

class GatewayUnavailableError(ExternalServiceError):
    status_code = 503

    def __init__(self, detail: str = "Payment gateway is unavailable") -> None:
        super().__init__(ErrorCode.GATEWAY_UNAVAILABLE, detail)


class GatewayRejectedError(ExternalServiceError):
    def __init__(self, detail: str = "Payment gateway rejected the request") -> None:
        super().__init__(ErrorCode.GATEWAY_REJECTED, detail)


class PaymentInitializationError(ExternalServiceError):
    def __init__(self, detail: str = "Failed to initialize payment") -> None:
        super().__init__(ErrorCode.PAYMENT_INITIALIZATION_FAILED, detail)


class CatalogUnavailableError(ExternalServiceError):
    status_code = 503

    def __init__(self) -> None:
        super().__init__(ErrorCode.CATALOG_UNAVAILABLE, "Course catalog is unavailable")


# ---------- authentication ----------

class InvalidSignatureError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.INVALID_SIGNATURE, "Invalid signature")
