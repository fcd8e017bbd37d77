from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .container import ApplicationContainer
from .exceptions import LeadConnectError, RateLimited, UpstreamFailure, ValidationFailed
from .logging import configure_logging
from ..application.services.billing_service import BillingService
from ..application.services.company_service import CompanyAccountService
from ..application.services.config_service import ConfigService
from ..application.services.lead_service import LeadService
from ..domain.ports.persistence import PersistenceGateway
from ..infrastructure.persistence.memory import InMemoryPersistence
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..infrastructure.persistence.supabase import SupabasePersistence
from ..infrastructure.rate_limiting import build_rate_limiter
from ..presentation.api.routers import companies as companies_router
from ..presentation.api.routers import config as config_router
from ..presentation.api.routers import leads as leads_router
from ..presentation.api.routers import stripe_router
from ..services.email_service import EmailService
from ..services.stripe_service import StripeService
from ..services.token_service import TokenService

logger = logging.getLogger(__name__)

CONFIG_REQUESTS_PER_HOUR = 60
LEAD_REQUESTS_PER_HOUR = 1000
RESEND_REQUESTS_PER_WINDOW = 3
RESEND_WINDOW_SECONDS = 15 * 60


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="LeadConnect Marketplace", lifespan=_create_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(LeadConnectError)
    async def handle_leadconnect_error(request: Request, exc: LeadConnectError) -> JSONResponse:
        payload = exc.to_payload()
        if isinstance(exc, UpstreamFailure):
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
            if settings.is_production:
                payload.pop("details", None)
        headers = None
        if isinstance(exc, RateLimited):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(status_code=exc.status_code, content=payload, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return await handle_leadconnect_error(request, ValidationFailed(_describe_errors(exc.errors())))

    app.include_router(companies_router.router)
    app.include_router(leads_router.router)
    app.include_router(stripe_router.router)
    app.include_router(config_router.router)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        container: ApplicationContainer = app.state.container  # type: ignore[attr-defined]
        return {"ok": container.persistence.ping(), "datastore": container.persistence.name}

    return app


def _describe_errors(errors) -> List[str]:
    messages = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("path", "query", "body")]
        prefix = f"{'.'.join(location)}: " if location else ""
        messages.append(f"{prefix}{error.get('msg', 'Invalid value')}")
    return messages or ["Invalid request"]


def build_persistence(settings: Settings) -> PersistenceGateway:
    if settings.datastore == "supabase":
        return SupabasePersistence(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.supabase_timeout,
        )
    if settings.datastore == "memory":
        return InMemoryPersistence()
    return SQLitePersistence(settings.database_path)


def build_container(settings: Settings, persistence: PersistenceGateway) -> ApplicationContainer:
    storage_uri = settings.rate_limit_storage_uri
    config_limiter = build_rate_limiter(
        CONFIG_REQUESTS_PER_HOUR, 3600, namespace="config", storage_uri=storage_uri
    )
    listing_limiter = build_rate_limiter(
        LEAD_REQUESTS_PER_HOUR, 3600, namespace="leads", storage_uri=storage_uri
    )
    resend_limiter = build_rate_limiter(
        RESEND_REQUESTS_PER_WINDOW,
        RESEND_WINDOW_SECONDS,
        namespace="resend-verification",
        storage_uri=storage_uri,
    )

    token_service = TokenService(settings.jwt_secret, expiration_hours=settings.jwt_expiration_hours)
    email_service = EmailService(
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_username=settings.smtp_username,
        smtp_password=settings.smtp_password,
        from_email=settings.smtp_from_email,
    )
    stripe_service = StripeService(
        secret_key=settings.stripe_secret_key,
        publishable_key=settings.stripe_publishable_key,
        webhook_secret=settings.stripe_webhook_secret,
    )
    company_service = CompanyAccountService(
        persistence,
        token_service,
        email_service,
        settings.site_url,
        verification_expiration_hours=settings.verification_expiration_hours,
        bcrypt_rounds=settings.bcrypt_rounds,
        resend_limiter=resend_limiter,
    )
    lead_service = LeadService(
        persistence,
        lead_price=settings.lead_price,
        listing_limiter=listing_limiter,
    )
    billing_service = BillingService(
        stripe_service,
        persistence,
        lead_service,
        settings.site_url,
        subscription_price_id=settings.stripe_subscription_price_id,
        exclusive_price_id=settings.stripe_exclusive_price_id,
    )
    config_service = ConfigService(
        config_limiter,
        lead_price=settings.lead_price,
        listing_requests_per_hour=LEAD_REQUESTS_PER_HOUR,
        stripe_publishable_key=settings.stripe_publishable_key,
    )

    return ApplicationContainer(
        settings=settings,
        persistence=persistence,
        token_service=token_service,
        email_service=email_service,
        stripe_service=stripe_service,
        company_service=company_service,
        lead_service=lead_service,
        billing_service=billing_service,
        config_service=config_service,
    )


def _create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        persistence = build_persistence(settings)
        logger.info("Using %s datastore", persistence.name)
        app.state.container = build_container(settings, persistence)  # type: ignore[attr-defined]
        try:
            yield
        finally:
            persistence.close()

    return lifespan
