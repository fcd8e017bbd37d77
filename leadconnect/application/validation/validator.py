"""Entry point for validating raw request payloads against a named form."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from ...core.exceptions import ValidationFailed
from .forms import CheckoutForm, LeadQueryParams, LeadSubmissionForm, SignupForm

logger = logging.getLogger(__name__)

SCHEMAS: Dict[str, Type[BaseModel]] = {
    "signup": SignupForm,
    "lead_submission": LeadSubmissionForm,
    "lead_query": LeadQueryParams,
    "checkout": CheckoutForm,
}


@dataclass(slots=True)
class ValidationResult:
    valid: bool
    data: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    form: Optional[BaseModel] = None


def validate(
    schema: str,
    raw: Any,
    *,
    context: Optional[Dict[str, Any]] = None,
) -> ValidationResult:
    """
    Sanitise and validate ``raw`` against the form registered as ``schema``.

    Every failing field contributes exactly one message, in field declaration
    order. ``data`` is only populated on success.

    Raises:
        KeyError: If ``schema`` is not a registered form name
    """
    model = SCHEMAS[schema]
    if not isinstance(raw, Mapping):
        return ValidationResult(valid=False, errors=["Request body must be a JSON object"])

    try:
        form = model.model_validate(dict(raw), context=context)
    except ValidationError as exc:
        errors = [error["msg"] for error in exc.errors()]
        logger.debug("Rejected %s payload with %d error(s)", schema, len(errors))
        return ValidationResult(valid=False, errors=errors)

    return ValidationResult(valid=True, data=form.model_dump(), errors=[], form=form)


def validate_or_raise(
    schema: str,
    raw: Any,
    *,
    context: Optional[Dict[str, Any]] = None,
) -> BaseModel:
    result = validate(schema, raw, context=context)
    if not result.valid:
        raise ValidationFailed(result.errors)
    return result.form
