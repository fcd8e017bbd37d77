"""API router for lead submission and caller-specific lead listings."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status

from ....application.services.lead_service import LeadService
from ....application.validation.validator import validate_or_raise
from ....core.config import Settings
from ....core.dependencies import get_lead_service, get_settings
from ....domain.models import SessionClaims
from ...api.dependencies import get_client_ip, read_json_body, require_claims
from ...api.schemas.lead_schemas import (
    LeadDetailResponse,
    LeadListMeta,
    LeadListResponse,
    LeadSubmitResponse,
    PublicLeadSchema,
)

router = APIRouter(prefix="/api/leads", tags=["leads"])


@router.get("", response_model=LeadListResponse)
def list_leads(
    request: Request,
    claims: SessionClaims = Depends(require_claims),
    client_ip: str = Depends(get_client_ip),
    lead_service: LeadService = Depends(get_lead_service),
) -> LeadListResponse:
    """List leads; contact fields are redacted unless the caller may see them."""
    params = validate_or_raise("lead_query", dict(request.query_params))
    leads = lead_service.list_for_caller(claims, params, client_ip)
    return LeadListResponse(
        data=[PublicLeadSchema.model_validate(lead) for lead in leads],
        meta=LeadListMeta(
            count=len(leads),
            offset=params.offset,
            limit=params.limit,
            has_more=len(leads) == params.limit,
        ),
    )


@router.get("/{lead_id}", response_model=LeadDetailResponse)
def get_lead(
    lead_id: int,
    claims: SessionClaims = Depends(require_claims),
    lead_service: LeadService = Depends(get_lead_service),
) -> LeadDetailResponse:
    lead = lead_service.get_for_caller(lead_id, claims)
    return LeadDetailResponse(data=PublicLeadSchema.model_validate(lead))


@router.post("", response_model=LeadSubmitResponse, status_code=status.HTTP_201_CREATED)
def submit_lead(
    payload: Dict[str, Any] = Depends(read_json_body),
    lead_service: LeadService = Depends(get_lead_service),
    settings: Settings = Depends(get_settings),
) -> LeadSubmitResponse:
    form = validate_or_raise(
        "lead_submission", payload, context={"photo_prefixes": settings.photo_prefixes}
    )
    lead = lead_service.submit(form)
    return LeadSubmitResponse(lead_id=lead.id)
