"""Learning path generation endpoint."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from app.api.deps import get_completion_client
from app.api.schemas.learning_path import (
    GeneratePathResponse,
    GenerationErrorResponse,
    PlanMetadata,
    ValidationErrorResponse,
)
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.completion_client import CompletionClient, CompletionTransportError
from app.services.learning_path_generator import generate_learning_path
from app.services.plan_models import PlanStep
from app.services.plan_request_validator import (
    REQUIRED_FIELDS,
    PlanRequestValidationError,
    validate_plan_request,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/api/generate-path",
    response_model=GeneratePathResponse,
    tags=["learning-path"],
    summary="Generate a day-by-day learning plan",
    responses={
        400: {"model": ValidationErrorResponse, "description": "Missing or invalid request field"},
        401: {"model": GenerationErrorResponse, "description": "Completion service rejected the credential"},
        429: {"model": GenerationErrorResponse, "description": "Completion quota exhausted or rate limited"},
        500: {"model": GenerationErrorResponse, "description": "Completion call failed"},
        503: {"model": GenerationErrorResponse, "description": "No completion service configured"},
    },
)
def generate_path_endpoint(
    http_request: Request,
    payload: Any = Body(default=None),
    client: Optional[CompletionClient] = Depends(get_completion_client),
) -> GeneratePathResponse:
    """Validate the request, generate the plan, and return it with generation metadata."""
    request_id = getattr(http_request.state, "request_id", None)

    try:
        plan_request = validate_plan_request(payload)
    except PlanRequestValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": exc.message, "field": exc.field, "required": REQUIRED_FIELDS},
        ) from exc

    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "OpenAI service not available",
                "message": "An OpenAI API key is required to generate learning paths.",
                "code": "SERVICE_UNAVAILABLE",
            },
        )

    route_metadata: Dict[str, Any] = {
        "route": "/api/generate-path",
        "level": plan_request.level,
        "duration_weeks": plan_request.duration_weeks,
    }
    start_time = perf_counter()
    success = False
    try:
        with trace("http.generate_path", metadata=route_metadata, request_id=request_id):
            learning_path = generate_learning_path(plan_request, client, request_id=request_id)
        success = True
    except CompletionTransportError as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail={"error": "Failed to generate learning path", "message": exc.message, "code": exc.code},
        ) from exc
    except Exception as exc:
        logger.exception("Unexpected error while generating learning path")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Failed to generate learning path",
                "message": "Unexpected error while generating plan",
                "code": "GENERATION_FAILED",
            },
        ) from exc
    finally:
        latency_ms = (perf_counter() - start_time) * 1000
        log_metric("generate_path.success", 1 if success else 0, metadata=route_metadata)
        log_metric("generate_path.latency_ms", latency_ms, metadata=route_metadata)

    return GeneratePathResponse(
        plan=[PlanStep.model_validate(step) for step in learning_path.plan],
        metadata=PlanMetadata(
            goal=plan_request.goal,
            level=plan_request.level,
            duration=plan_request.duration_weeks,
            per_day=plan_request.hours_per_day,
            total_steps=len(learning_path.plan),
            generated_at=learning_path.generated_at,
            generated_by=learning_path.generated_by,
            strategy=learning_path.strategy,
            model=learning_path.model,
            batches=learning_path.batches,
            request_id=request_id,
        ),
    )
