from dataclasses import dataclass

from ..application.services.billing_service import BillingService
from ..application.services.company_service import CompanyAccountService
from ..application.services.config_service import ConfigService
from ..application.services.lead_service import LeadService
from .config import Settings
from ..domain.ports.persistence import PersistenceGateway
from ..services.email_service import EmailService
from ..services.stripe_service import StripeService
from ..services.token_service import TokenService


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    persistence: PersistenceGateway
    token_service: TokenService
    email_service: EmailService
    stripe_service: StripeService
    company_service: CompanyAccountService
    lead_service: LeadService
    billing_service: BillingService
    config_service: ConfigService
