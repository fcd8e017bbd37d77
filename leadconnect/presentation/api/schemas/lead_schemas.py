"""Pydantic schemas for lead endpoints."""

from typing import List, Optional

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from .company_schemas import CamelModel


class PublicLeadSchema(CamelModel):
    """Caller-specific view of a lead; contact fields may hold placeholders."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    zip_code: Optional[str] = None
    property_type: str
    timeline: str
    details: str
    photos: List[str]
    date_submitted: Optional[str] = None
    price: float
    is_in_exclusive_window: bool
    exclusive_purchased_by: Optional[str] = None
    exclusive_purchase_date: Optional[str] = None


class LeadListMeta(CamelModel):
    count: int
    offset: int
    limit: int
    has_more: bool


class LeadListResponse(CamelModel):
    success: bool = True
    data: List[PublicLeadSchema]
    meta: LeadListMeta


class LeadDetailResponse(CamelModel):
    success: bool = True
    data: PublicLeadSchema


class LeadSubmitResponse(CamelModel):
    success: bool = True
    message: str = "Lead submitted successfully"
    lead_id: int
