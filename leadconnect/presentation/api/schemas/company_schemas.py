"""Pydantic schemas for company account endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ....domain.models import SessionClaims


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionUser(CamelModel):
    """Identity and entitlement echoed back to the client."""

    id: int
    email: str
    company_name: str
    subscription_status: str

    @classmethod
    def from_claims(cls, claims: SessionClaims) -> "SessionUser":
        return cls(
            id=claims.user_id,
            email=claims.email,
            company_name=claims.company_name,
            subscription_status=claims.subscription_status,
        )


class SignupResponse(CamelModel):
    success: bool = True
    message: str
    company_id: int
    verification_required: bool = True


class LoginResponse(CamelModel):
    success: bool = True
    message: str = "Login successful"
    user: SessionUser
    token: str


class VerifyEmailResponse(CamelModel):
    success: bool = True
    message: str
    already_verified: bool = False
    company_name: Optional[str] = None


class ResendVerificationResponse(CamelModel):
    success: bool = True
    message: str
    already_verified: bool = False


class AuthVerifyResponse(CamelModel):
    valid: bool = True
    user: SessionUser


class LogoutResponse(CamelModel):
    success: bool = True
    message: str = "Logged out successfully"
