"""Dict-backed persistence for tests and local demos."""

from __future__ import annotations

import copy
import itertools
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...core.exceptions import Conflict, NotFound
from ...domain.models import Company, Lead, LeadQuery
from ...domain.ports.persistence import PersistenceGateway
from .records import COMPANY_FIELDS, LEAD_FIELDS, utcnow


class InMemoryPersistence(PersistenceGateway):
    name = "memory"

    def __init__(self) -> None:
        self._companies: Dict[int, Company] = {}
        self._leads: Dict[int, Lead] = {}
        self._company_ids = itertools.count(1)
        self._lead_ids = itertools.count(1)
        self._lock = threading.Lock()

    def close(self) -> None:
        pass

    def ping(self) -> bool:
        return True

    # CompanyRepository API --------------------------------------------------
    def create_company(self, fields: Dict[str, Any]) -> Company:
        values = {name: fields[name] for name in COMPANY_FIELDS if name in fields}
        with self._lock:
            if any(c.email == values.get("email") for c in self._companies.values()):
                raise Conflict("An account with this email already exists")
            company = Company(id=next(self._company_ids), **values)
            self._companies[company.id] = company
            return copy.copy(company)

    def get_company_by_id(self, company_id: int) -> Optional[Company]:
        return self._find_company(lambda c: c.id == company_id)

    def get_company_by_email(self, email: str) -> Optional[Company]:
        return self._find_company(lambda c: c.email == email)

    def get_company_by_verification_token(self, token: str) -> Optional[Company]:
        return self._find_company(lambda c: c.verification_token == token)

    def get_company_by_consumed_token_hash(self, token_hash: str) -> Optional[Company]:
        return self._find_company(lambda c: c.consumed_token_hash == token_hash)

    def get_company_by_stripe_customer_id(self, customer_id: str) -> Optional[Company]:
        return self._find_company(lambda c: c.stripe_customer_id == customer_id)

    def update_company(self, company_id: int, **fields: Any) -> Company:
        unknown = set(fields) - set(COMPANY_FIELDS)
        if unknown:
            raise ValueError(f"Unknown company fields: {', '.join(sorted(unknown))}")
        with self._lock:
            company = self._companies.get(company_id)
            if company is None:
                raise NotFound("Company not found")
            for name, value in fields.items():
                setattr(company, name, value)
            company.updated_at = utcnow()
            return copy.copy(company)

    # LeadRepository API -----------------------------------------------------
    def create_lead(self, fields: Dict[str, Any]) -> Lead:
        values = {name: fields[name] for name in LEAD_FIELDS if name in fields}
        values.setdefault("created_at", utcnow())
        values["photo_urls"] = list(values.get("photo_urls") or [])
        with self._lock:
            lead = Lead(id=next(self._lead_ids), **values)
            self._leads[lead.id] = lead
            return replace(lead)

    def get_lead(self, lead_id: int) -> Optional[Lead]:
        with self._lock:
            lead = self._leads.get(lead_id)
            return replace(lead) if lead else None

    def list_leads(self, query: LeadQuery) -> List[Lead]:
        with self._lock:
            leads = [lead for lead in self._leads.values() if self._matches(lead, query)]
        leads.sort(key=lambda lead: (lead.created_at, lead.id), reverse=True)
        return [replace(lead) for lead in leads[query.offset : query.offset + query.limit]]

    def mark_exclusive_purchase(
        self,
        lead_id: int,
        buyer: str,
        purchased_at: datetime,
        session_id: Optional[str],
    ) -> bool:
        with self._lock:
            lead = self._leads.get(lead_id)
            if lead is None or lead.exclusive_purchased_by:
                return False
            lead.exclusive_purchased_by = buyer
            lead.exclusive_purchase_date = purchased_at
            lead.stripe_session_id = session_id
            lead.purchased = True
            lead.purchased_by = buyer
            return True

    # Helpers ----------------------------------------------------------------
    def _find_company(self, predicate) -> Optional[Company]:
        with self._lock:
            for company in self._companies.values():
                if predicate(company):
                    return copy.copy(company)
        return None

    @staticmethod
    def _matches(lead: Lead, query: LeadQuery) -> bool:
        if query.timeline and lead.timeline != query.timeline:
            return False
        if query.property_type and lead.property_type != query.property_type:
            return False
        if query.zip_min is not None or query.zip_max is not None:
            if lead.zip_code is None:
                return False
            if query.zip_min is not None and lead.zip_code < query.zip_min:
                return False
            if query.zip_max is not None and lead.zip_code > query.zip_max:
                return False
        if query.exclude_buyer and query.exclude_buyer in (
            lead.purchased_by,
            lead.exclusive_purchased_by,
        ):
            return False
        return True
