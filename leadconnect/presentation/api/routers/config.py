from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from ....application.services.config_service import ConfigService
from ....core.dependencies import get_config_service
from ....domain.models import SessionClaims
from ...api.dependencies import get_client_ip, get_optional_claims

router = APIRouter(prefix="/api/config", tags=["Configuration"])


@router.get("")
def get_config(
    claims: Optional[SessionClaims] = Depends(get_optional_claims),
    client_ip: str = Depends(get_client_ip),
    config_service: ConfigService = Depends(get_config_service),
) -> Dict[str, Any]:
    return config_service.get_config(claims, client_ip)
