"""Schemas for the learning-path generation endpoint."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.services.plan_models import PlanStep


class PlanMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    goal: str
    level: str
    duration: int
    per_day: float
    total_steps: int
    generated_at: datetime
    generated_by: str
    strategy: str
    model: str
    batches: int
    request_id: Optional[str] = None


class GeneratePathResponse(BaseModel):
    plan: List[PlanStep]
    metadata: PlanMetadata


class ValidationErrorPayload(BaseModel):
    error: str
    field: str
    required: List[str]


class GenerationErrorPayload(BaseModel):
    error: str
    message: str
    code: str


class ValidationErrorResponse(BaseModel):
    detail: ValidationErrorPayload


class GenerationErrorResponse(BaseModel):
    detail: GenerationErrorPayload
