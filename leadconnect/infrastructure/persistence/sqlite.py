import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

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


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed implementation of the persistence gateway."""

    name = "sqlite"

    def __init__(self, path: Path) -> None:
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS Companies (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE,
                    company_name TEXT NOT NULL,
                    password_hash TEXT NOT NULL,
                    first_name TEXT NOT NULL DEFAULT '',
                    last_name TEXT NOT NULL DEFAULT '',
                    phone TEXT NOT NULL DEFAULT '',
                    business_address TEXT NOT NULL DEFAULT '',
                    business_type TEXT NOT NULL DEFAULT '',
                    years_in_business TEXT NOT NULL DEFAULT '',
                    service_areas TEXT NOT NULL DEFAULT '',
                    license_number TEXT,
                    insurance_carrier TEXT,
                    website_url TEXT,
                    terms_agreed INTEGER NOT NULL DEFAULT 0,
                    background_check_consent INTEGER NOT NULL DEFAULT 0,
                    communication_consent INTEGER NOT NULL DEFAULT 0,
                    professional_conduct_agreed INTEGER NOT NULL DEFAULT 0,
                    email_verified INTEGER NOT NULL DEFAULT 0,
                    verification_token TEXT,
                    verification_token_issued_at TEXT,
                    consumed_token_hash TEXT,
                    account_status TEXT NOT NULL DEFAULT 'pending_verification',
                    subscription_status TEXT NOT NULL DEFAULT 'none',
                    stripe_customer_id TEXT,
                    stripe_subscription_id TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_companies_verification_token
                    ON Companies(verification_token);

                CREATE INDEX IF NOT EXISTS idx_companies_stripe_customer
                    ON Companies(stripe_customer_id);

                CREATE TABLE IF NOT EXISTS Leads (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL,
                    email TEXT NOT NULL,
                    phone TEXT NOT NULL,
                    address TEXT NOT NULL,
                    zip_code TEXT,
                    property_type TEXT NOT NULL,
                    timeline TEXT NOT NULL,
                    details TEXT NOT NULL,
                    photo_urls TEXT NOT NULL DEFAULT '',
                    price REAL NOT NULL DEFAULT 39.99,
                    purchased INTEGER NOT NULL DEFAULT 0,
                    purchased_by TEXT,
                    exclusive_purchased_by TEXT,
                    exclusive_purchase_date TEXT,
                    stripe_session_id TEXT,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_leads_created_at
                    ON Leads(created_at DESC);
                """
            )

    def close(self) -> None:
        self._conn.close()

    def ping(self) -> bool:
        with self._lock:
            try:
                self._conn.execute("SELECT 1").fetchone()
            except sqlite3.Error:
                return False
        return True

    # CompanyRepository API --------------------------------------------------
    def create_company(self, fields: Dict[str, Any]) -> Company:
        now = utcnow()
        values = {name: fields[name] for name in COMPANY_FIELDS if name in fields}
        values.setdefault("created_at", now)
        values.setdefault("updated_at", now)
        row = to_storage(values)
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    f"INSERT INTO Companies ({columns}) VALUES ({placeholders})",
                    tuple(row.values()),
                )
                company_id = cur.lastrowid
        except sqlite3.IntegrityError as exc:
            raise Conflict("An account with this email already exists") from exc
        return self._require_company(company_id)

    def get_company_by_id(self, company_id: int) -> Optional[Company]:
        return self._fetch_company("id = ?", company_id)

    def get_company_by_email(self, email: str) -> Optional[Company]:
        return self._fetch_company("email = ?", email)

    def get_company_by_verification_token(self, token: str) -> Optional[Company]:
        return self._fetch_company("verification_token = ?", token)

    def get_company_by_consumed_token_hash(self, token_hash: str) -> Optional[Company]:
        return self._fetch_company("consumed_token_hash = ?", token_hash)

    def get_company_by_stripe_customer_id(self, customer_id: str) -> Optional[Company]:
        return self._fetch_company("stripe_customer_id = ?", customer_id)

    def update_company(self, company_id: int, **fields: Any) -> Company:
        unknown = set(fields) - set(COMPANY_FIELDS)
        if unknown:
            raise ValueError(f"Unknown company fields: {', '.join(sorted(unknown))}")
        fields["updated_at"] = utcnow()
        row = to_storage(fields)
        assignments = ", ".join(f"{column} = ?" for column in row)
        with self._lock, self._conn:
            cur = self._conn.execute(
                f"UPDATE Companies SET {assignments} WHERE id = ?",
                (*row.values(), company_id),
            )
        if cur.rowcount == 0:
            raise NotFound("Company not found")
        return self._require_company(company_id)

    # LeadRepository API -----------------------------------------------------
    def create_lead(self, fields: Dict[str, Any]) -> Lead:
        values = {name: fields[name] for name in LEAD_FIELDS if name in fields}
        values.setdefault("created_at", utcnow())
        row = to_storage(values)
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        with self._lock, self._conn:
            cur = self._conn.execute(
                f"INSERT INTO Leads ({columns}) VALUES ({placeholders})",
                tuple(row.values()),
            )
            lead_id = cur.lastrowid
        lead = self.get_lead(lead_id)
        if lead is None:
            raise DatastoreError("Lead could not be stored", details=f"lead {lead_id} missing after insert")
        return lead

    def get_lead(self, lead_id: int) -> Optional[Lead]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM Leads WHERE id = ?", (lead_id,))
            row = cur.fetchone()
        return lead_from_row(row) if row else None

    def list_leads(self, query: LeadQuery) -> List[Lead]:
        clauses: List[str] = []
        params: List[Any] = []
        if query.timeline:
            clauses.append("timeline = ?")
            params.append(query.timeline)
        if query.property_type:
            clauses.append("property_type = ?")
            params.append(query.property_type)
        if query.zip_min is not None:
            clauses.append("zip_code >= ?")
            params.append(query.zip_min)
        if query.zip_max is not None:
            clauses.append("zip_code <= ?")
            params.append(query.zip_max)
        if query.exclude_buyer:
            clauses.append("(purchased_by IS NULL OR purchased_by != ?)")
            clauses.append("(exclusive_purchased_by IS NULL OR exclusive_purchased_by != ?)")
            params.extend([query.exclude_buyer, query.exclude_buyer])

        sql = "SELECT * FROM Leads"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
        params.extend([query.limit, query.offset])
        with self._lock:
            cur = self._conn.execute(sql, params)
            rows = cur.fetchall()
        return [lead_from_row(row) for row in rows]

    def mark_exclusive_purchase(
        self,
        lead_id: int,
        buyer: str,
        purchased_at: datetime,
        session_id: Optional[str],
    ) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute(
                """
                UPDATE Leads
                   SET exclusive_purchased_by = ?,
                       exclusive_purchase_date = ?,
                       stripe_session_id = ?,
                       purchased = 1,
                       purchased_by = ?
                 WHERE id = ? AND exclusive_purchased_by IS NULL
                """,
                (buyer, format_timestamp(purchased_at), session_id, buyer, lead_id),
            )
        return cur.rowcount == 1

    # Helpers ----------------------------------------------------------------
    def _fetch_company(self, where: str, value: Any) -> Optional[Company]:
        with self._lock:
            cur = self._conn.execute(f"SELECT * FROM Companies WHERE {where}", (value,))
            row = cur.fetchone()
        return company_from_row(row) if row else None

    def _require_company(self, company_id: Optional[int]) -> Company:
        company = self.get_company_by_id(company_id) if company_id is not None else None
        if company is None:
            raise NotFound("Company not found")
        return company
