"""Supabase (PostgREST) implementation of the persistence gateway."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from ...core.exceptions import Conflict, DatastoreError, NotFound
from ...domain.models import Company, Lead, LeadQuery
from ...domain.ports.persistence import PersistenceGateway
from .records import (
    COMPANY_FIELDS,
    LEAD_FIELDS,
    company_from_row,
    format_timestamp,
    lead_from_row,
    to_storage,
    utcnow,
)

logger = logging.getLogger(__name__)

Params = Sequence[Tuple[str, str]]


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class SupabasePersistence(PersistenceGateway):
    """Talks to the ``Companies`` and ``Leads`` tables over the PostgREST API."""

    name = "supabase"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/rest/v1"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    def close(self) -> None:
        self._session.close()

    def ping(self) -> bool:
        try:
            self._request("GET", "Companies", params=[("select", "id"), ("limit", "1")])
        except DatastoreError:
            return False
        return True

    # CompanyRepository API --------------------------------------------------
    def create_company(self, fields: Dict[str, Any]) -> Company:
        now = utcnow()
        values = {name: fields[name] for name in COMPANY_FIELDS if name in fields}
        values.setdefault("created_at", now)
        values.setdefault("updated_at", now)
        rows = self._request("POST", "Companies", json=to_storage(values), returning=True)
        if not rows:
            raise DatastoreError("Datastore did not return the created company")
        return company_from_row(rows[0])

    def get_company_by_id(self, company_id: int) -> Optional[Company]:
        return self._fetch_company("id", str(company_id))

    def get_company_by_email(self, email: str) -> Optional[Company]:
        return self._fetch_company("email", email)

    def get_company_by_verification_token(self, token: str) -> Optional[Company]:
        return self._fetch_company("verification_token", token)

    def get_company_by_consumed_token_hash(self, token_hash: str) -> Optional[Company]:
        return self._fetch_company("consumed_token_hash", token_hash)

    def get_company_by_stripe_customer_id(self, customer_id: str) -> Optional[Company]:
        return self._fetch_company("stripe_customer_id", customer_id)

    def update_company(self, company_id: int, **fields: Any) -> Company:
        unknown = set(fields) - set(COMPANY_FIELDS)
        if unknown:
            raise ValueError(f"Unknown company fields: {', '.join(sorted(unknown))}")
        fields["updated_at"] = utcnow()
        rows = self._request(
            "PATCH",
            "Companies",
            params=[("id", f"eq.{company_id}")],
            json=to_storage(fields),
            returning=True,
        )
        if not rows:
            raise NotFound("Company not found")
        return company_from_row(rows[0])

    # LeadRepository API -----------------------------------------------------
    def create_lead(self, fields: Dict[str, Any]) -> Lead:
        values = {name: fields[name] for name in LEAD_FIELDS if name in fields}
        values.setdefault("created_at", utcnow())
        rows = self._request("POST", "Leads", json=to_storage(values), returning=True)
        if not rows:
            raise DatastoreError("Datastore did not return the created lead")
        return lead_from_row(rows[0])

    def get_lead(self, lead_id: int) -> Optional[Lead]:
        rows = self._request("GET", "Leads", params=[("id", f"eq.{lead_id}"), ("select", "*")])
        return lead_from_row(rows[0]) if rows else None

    def list_leads(self, query: LeadQuery) -> List[Lead]:
        params: List[Tuple[str, str]] = [("select", "*")]
        if query.timeline:
            params.append(("timeline", f"eq.{query.timeline}"))
        if query.property_type:
            params.append(("property_type", f"eq.{query.property_type}"))
        if query.zip_min is not None:
            params.append(("zip_code", f"gte.{query.zip_min}"))
        if query.zip_max is not None:
            params.append(("zip_code", f"lte.{query.zip_max}"))
        if query.exclude_buyer:
            buyer = _quote(query.exclude_buyer)
            params.append(
                (
                    "and",
                    f"(or(purchased_by.is.null,purchased_by.neq.{buyer}),"
                    f"or(exclusive_purchased_by.is.null,exclusive_purchased_by.neq.{buyer}))",
                )
            )
        params.extend(
            [
                ("order", "created_at.desc,id.desc"),
                ("limit", str(query.limit)),
                ("offset", str(query.offset)),
            ]
        )
        rows = self._request("GET", "Leads", params=params)
        return [lead_from_row(row) for row in rows]

    def mark_exclusive_purchase(
        self,
        lead_id: int,
        buyer: str,
        purchased_at: datetime,
        session_id: Optional[str],
    ) -> bool:
        rows = self._request(
            "PATCH",
            "Leads",
            params=[("id", f"eq.{lead_id}"), ("exclusive_purchased_by", "is.null")],
            json={
                "exclusive_purchased_by": buyer,
                "exclusive_purchase_date": format_timestamp(purchased_at),
                "stripe_session_id": session_id,
                "purchased": True,
                "purchased_by": buyer,
            },
            returning=True,
        )
        return len(rows) == 1

    # Helpers ----------------------------------------------------------------
    def _fetch_company(self, column: str, value: str) -> Optional[Company]:
        rows = self._request(
            "GET",
            "Companies",
            params=[(column, f"eq.{value}"), ("select", "*"), ("limit", "1")],
        )
        return company_from_row(rows[0]) if rows else None

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Params] = None,
        json: Optional[Dict[str, Any]] = None,
        returning: bool = False,
    ) -> List[Dict[str, Any]]:
        headers = {"Prefer": "return=representation"} if returning else {}
        url = f"{self._base_url}/{table}"
        try:
            response = self._session.request(
                method,
                url,
                params=list(params or []),
                json=json,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as exc:
            logger.error("Datastore %s %s failed: %s", method, table, exc)
            raise DatastoreError(str(exc)) from exc

        if response.status_code == 409:
            if table == "Companies":
                raise Conflict("An account with this email already exists")
            raise Conflict()
        if not response.ok:
            logger.error(
                "Datastore %s %s returned %s: %s",
                method,
                table,
                response.status_code,
                response.text[:800],
            )
            raise DatastoreError(f"Datastore responded with status {response.status_code}")
        if not response.content:
            return []
        payload = response.json()
        return payload if isinstance(payload, list) else [payload]
