"""Validation of inbound learning-plan requests."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from app.services.plan_models import HOURS_PER_DAY_LIMIT, LEVELS, MAX_DURATION_WEEKS, PlanRequest

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: List[str] = ["goal", "level", "duration", "perDay"]

_FIELD_MESSAGES: Dict[str, str] = {
    "goal": "goal must be a non-empty string",
    "level": f"level must be one of {', '.join(LEVELS)}",
    "duration": f"duration must be an integer between 1 and {MAX_DURATION_WEEKS} weeks",
    "perDay": f"perDay must be a number between 1 and {HOURS_PER_DAY_LIMIT} hours",
}


class PlanRequestValidationError(ValueError):
    """Raised when a plan request is missing a field or breaks a constraint."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate_plan_request(payload: Any) -> PlanRequest:
    """Turn a decoded JSON body into a PlanRequest or raise PlanRequestValidationError."""
    if not isinstance(payload, dict):
        raise PlanRequestValidationError("body", "request body must be a JSON object")

    missing = [name for name in REQUIRED_FIELDS if _is_blank(payload.get(name))]
    if missing:
        logger.info("Rejected plan request; missing fields: %s", missing)
        raise PlanRequestValidationError(missing[0], f"Missing required fields: {', '.join(missing)}")

    # bools pass pydantic's lax int/float coercion
    for name in ("duration", "perDay"):
        if isinstance(payload[name], bool):
            raise PlanRequestValidationError(name, _FIELD_MESSAGES[name])

    try:
        return PlanRequest.model_validate({name: payload[name] for name in REQUIRED_FIELDS})
    except ValidationError as exc:
        first_error = exc.errors()[0]
        location = first_error.get("loc") or ("body",)
        field = str(location[0])
        logger.info("Rejected plan request; %s: %s", field, first_error.get("msg"))
        raise PlanRequestValidationError(field, _FIELD_MESSAGES.get(field, first_error.get("msg", "invalid value"))) from exc
