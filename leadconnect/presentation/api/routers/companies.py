"""API router for company signup, login and email verification."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Response, status

from ....application.services.company_service import CompanyAccountService
from ....application.validation.validator import validate_or_raise
from ....core.config import Settings
from ....core.dependencies import get_company_service, get_settings
from ...api.dependencies import get_bearer_token, read_json_body
from ...api.schemas.company_schemas import (
    AuthVerifyResponse,
    LoginResponse,
    LogoutResponse,
    ResendVerificationResponse,
    SessionUser,
    SignupResponse,
    VerifyEmailResponse,
)

router = APIRouter(prefix="/api", tags=["companies"])

AUTH_COOKIE = "auth_token"


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: Dict[str, Any] = Depends(read_json_body),
    company_service: CompanyAccountService = Depends(get_company_service),
) -> SignupResponse:
    """Register a company account; a verification link is emailed."""
    form = validate_or_raise("signup", payload)
    company = company_service.register(form)
    return SignupResponse(
        message="Account created successfully. Please check your email to verify your account.",
        company_id=company.id,
    )


@router.post("/login", response_model=LoginResponse)
def login(
    response: Response,
    payload: Dict[str, Any] = Depends(read_json_body),
    company_service: CompanyAccountService = Depends(get_company_service),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    company = company_service.authenticate(payload.get("email"), payload.get("password"))
    token = company_service.issue_session(company)
    response.set_cookie(
        AUTH_COOKIE,
        token,
        max_age=settings.jwt_expiration_hours * 3600,
        path="/",
        httponly=True,
        secure=True,
        samesite="strict",
    )
    return LoginResponse(
        user=SessionUser(
            id=company.id,
            email=company.email,
            company_name=company.company_name,
            subscription_status=company.subscription_status,
        ),
        token=token,
    )


@router.post("/verify-email", response_model=VerifyEmailResponse)
def verify_email(
    payload: Dict[str, Any] = Depends(read_json_body),
    company_service: CompanyAccountService = Depends(get_company_service),
) -> VerifyEmailResponse:
    outcome = company_service.verify_email(payload.get("token"))
    if outcome.already_verified:
        return VerifyEmailResponse(
            message="Email already verified. You can log in to your account.",
            already_verified=True,
            company_name=outcome.company.company_name,
        )
    return VerifyEmailResponse(
        message="Email verified successfully. You can now log in to your account.",
        company_name=outcome.company.company_name,
    )


@router.post("/resend-verification", response_model=ResendVerificationResponse)
def resend_verification(
    payload: Dict[str, Any] = Depends(read_json_body),
    company_service: CompanyAccountService = Depends(get_company_service),
) -> ResendVerificationResponse:
    outcome = company_service.resend_verification(payload.get("email"))
    return ResendVerificationResponse(
        message=outcome.message,
        already_verified=outcome.already_verified,
    )


@router.post("/auth/verify", response_model=AuthVerifyResponse)
def verify_session(
    payload: Dict[str, Any] = Depends(read_json_body),
    header_token: Optional[str] = Depends(get_bearer_token),
    company_service: CompanyAccountService = Depends(get_company_service),
) -> AuthVerifyResponse:
    body_token = payload.get("token")
    token = header_token or (body_token if isinstance(body_token, str) else None)
    claims = company_service.verify_session(token)
    return AuthVerifyResponse(user=SessionUser.from_claims(claims))


@router.post("/auth/logout", response_model=LogoutResponse)
def logout(response: Response) -> LogoutResponse:
    response.delete_cookie(AUTH_COOKIE, path="/", secure=True, httponly=True, samesite="strict")
    return LogoutResponse()
