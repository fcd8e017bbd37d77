from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from ..models import Company, Lead, LeadQuery


class CompanyRepository(Protocol):
    """Persistence functions related to company accounts."""

    def create_company(self, fields: Dict[str, Any]) -> Company:
        """Insert a company; raises Conflict when the email is already registered."""
        ...

    def get_company_by_id(self, company_id: int) -> Optional[Company]:
        ...

    def get_company_by_email(self, email: str) -> Optional[Company]:
        ...

    def get_company_by_verification_token(self, token: str) -> Optional[Company]:
        ...

    def get_company_by_consumed_token_hash(self, token_hash: str) -> Optional[Company]:
        ...

    def get_company_by_stripe_customer_id(self, customer_id: str) -> Optional[Company]:
        ...

    def update_company(self, company_id: int, **fields: Any) -> Company:
        ...


class LeadRepository(Protocol):
    """Persistence functions related to submitted leads."""

    def create_lead(self, fields: Dict[str, Any]) -> Lead:
        ...

    def get_lead(self, lead_id: int) -> Optional[Lead]:
        ...

    def list_leads(self, query: LeadQuery) -> List[Lead]:
        """Newest first, excluding leads bought by ``query.exclude_buyer``."""
        ...

    def mark_exclusive_purchase(
        self,
        lead_id: int,
        buyer: str,
        purchased_at: datetime,
        session_id: Optional[str],
    ) -> bool:
        """Record the exclusive buyer only if none is set; returns whether this call won."""
        ...


class PersistenceGateway(CompanyRepository, LeadRepository, Protocol):
    """Composite gateway combining every persistence concern used by the app."""

    name: str

    def ping(self) -> bool:
        ...

    def close(self) -> None:
        ...
