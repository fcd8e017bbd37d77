"""Pydantic schemas for Stripe checkout and webhook endpoints."""

from typing import Optional

from .company_schemas import CamelModel


class CheckoutSessionResponse(CamelModel):
    session_id: str
    url: Optional[str] = None


class WebhookAck(CamelModel):
    received: bool = True
