"""Coerce loosely-shaped step objects into an exact, schema-valid plan."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from app.services.plan_fallback import build_fallback_step
from app.services.plan_models import (
    PlanRequest,
    PlanStep,
    day_of_week_for_step,
    theme_for_week,
    week_for_step,
)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("label", "description", "details", "estimatedTime", "weeklyGoal")
LIST_FIELDS = ("tasks", "resources")

# snake_case spellings the model sometimes uses instead of camelCase
_ALTERNATE_KEYS = {
    "estimatedTime": "estimated_time",
    "weeklyGoal": "weekly_goal",
}


def _raw_value(raw: Dict[str, Any], key: str) -> Any:
    if key in raw:
        return raw[key]
    alternate = _ALTERNATE_KEYS.get(key)
    return raw.get(alternate) if alternate else None


def _text_or_default(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _string_list_or_default(value: Any, default: List[str]) -> List[str]:
    if isinstance(value, list):
        items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
        if items:
            return items
    return list(default)


def normalize_step(raw: Any, step_number: int, request: PlanRequest) -> Dict[str, Any]:
    """Return the serialized step at `step_number`, keeping well-typed raw content."""
    entry = raw if isinstance(raw, dict) else {}
    defaults = build_fallback_step(request, step_number)
    week = week_for_step(step_number)

    fields: Dict[str, Any] = {
        "stepNumber": step_number,
        "step": step_number,
        "week": week,
        "dayOfWeek": day_of_week_for_step(step_number),
        "weekTheme": theme_for_week(week),
        "completed": False,
    }
    for key in TEXT_FIELDS:
        fields[key] = _text_or_default(_raw_value(entry, key), defaults[key])
    for key in LIST_FIELDS:
        fields[key] = _string_list_or_default(_raw_value(entry, key), defaults[key])

    return PlanStep.model_validate(fields).model_dump(by_alias=True)


def normalize_steps(
    raw_steps: Optional[Sequence[Any]],
    total_steps: int,
    request: PlanRequest,
    *,
    first_step: int = 1,
) -> List[Dict[str, Any]]:
    """
    Produce exactly `total_steps` steps numbered from `first_step`.

    Extra entries are dropped from the end, missing entries are synthesized,
    and position in the sequence decides numbering, week and theme.
    """
    entries = list(raw_steps or [])
    if len(entries) > total_steps:
        logger.warning("Expected %d steps, got %d; truncating", total_steps, len(entries))
        entries = entries[:total_steps]
    elif len(entries) < total_steps:
        logger.warning("Expected %d steps, got %d; synthesizing %d", total_steps, len(entries), total_steps - len(entries))

    normalized = []
    for index in range(total_steps):
        raw = entries[index] if index < len(entries) else None
        normalized.append(normalize_step(raw, first_step + index, request))
    return normalized
