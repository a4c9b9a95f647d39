# app/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List
from decimal import Decimal
from datetime import datetime


class ItemIn(BaseModel):
    """Schema for adding a course to the cart."""

    course_id: int = Field(..., gt=0, description="Course ID (must be > 0)")


class CartItemOut(BaseModel):
    """Schema for a cart item (response)."""

    course_id: int
    title: str
    price: Decimal


class CartOut(BaseModel):
    """Schema for a cart (response)."""

    cart_id: int
    user_id: int
    items: List[CartItemOut]
    total: Decimal
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CartCountOut(BaseModel):
    count: int


class UserCreate(BaseModel):
    """Schema for creating a user."""

    id: int = Field(..., gt=0, description="User ID (must be > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="User name")
    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")


class UserRead(BaseModel):
    """Schema for a user (response)."""

    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class CheckoutOut(BaseModel):
    """Schema for an initialized checkout (response)."""

    message: str = "Checkout initialized successfully"
    checkout_url: str
    reused: bool
    reference: str


class VerifyOut(BaseModel):
    message: str
    outcome: str
    reference: str


class WebhookData(BaseModel):
    reference: str | None = None

    model_config = ConfigDict(extra="allow")


class WebhookEvent(BaseModel):
    """Gateway event envelope {event, data: {reference, ...}}."""

    event: str
    data: WebhookData = Field(default_factory=WebhookData)


class WebhookAck(BaseModel):
    message: str = "Webhook processed successfully"
    event: str
    handled: bool
    detail: Dict[str, Any] = Field(default_factory=dict)
