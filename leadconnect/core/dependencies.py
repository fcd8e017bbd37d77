from fastapi import Depends, Request

from .container import ApplicationContainer


def get_container(request: Request) -> ApplicationContainer:
    container = getattr(request.app.state, "container", None)
    if not container:
        raise RuntimeError("Application container not initialised.")
    return container


def get_settings(container: ApplicationContainer = Depends(get_container)):
    return container.settings


def get_persistence_gateway(container: ApplicationContainer = Depends(get_container)):
    return container.persistence


def get_token_service(container: ApplicationContainer = Depends(get_container)):
    return container.token_service


def get_company_service(container: ApplicationContainer = Depends(get_container)):
    return container.company_service


def get_lead_service(container: ApplicationContainer = Depends(get_container)):
    return container.lead_service


def get_billing_service(container: ApplicationContainer = Depends(get_container)):
    return container.billing_service


def get_stripe_service(container: ApplicationContainer = Depends(get_container)):
    return container.stripe_service


def get_config_service(container: ApplicationContainer = Depends(get_container)):
    return container.config_service
