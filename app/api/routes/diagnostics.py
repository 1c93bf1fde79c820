"""Service banner and configuration diagnostics."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_completion_client
from app.core.config import settings
from app.services.completion_client import CompletionClient, CompletionTransportError

logger = logging.getLogger(__name__)

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/", tags=["diagnostics"], summary="Service banner")
def root(client: Optional[CompletionClient] = Depends(get_completion_client)) -> Dict[str, Any]:
    return {
        "message": settings.app_name,
        "status": "Server running",
        "hasOpenAI": client is not None,
        "timestamp": _now(),
    }


@router.get("/api/test", tags=["diagnostics"], summary="Configuration echo")
def api_test(client: Optional[CompletionClient] = Depends(get_completion_client)) -> Dict[str, Any]:
    return {
        "message": "API working",
        "hasApiKey": bool(settings.openai_api_key),
        "openaiInitialized": client is not None,
        "model": settings.openai_model,
        "timestamp": _now(),
    }


@router.get("/api/test-openai", tags=["diagnostics"], summary="Round-trip a tiny completion")
def api_test_openai(client: Optional[CompletionClient] = Depends(get_completion_client)) -> Dict[str, Any]:
    """Ask the completion service for one word to prove the credential works."""
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "OpenAI not initialized",
                "message": "Please check your OPENAI_API_KEY configuration",
                "code": "SERVICE_UNAVAILABLE",
            },
        )
    try:
        reply = client.complete("Reply with a single word.", "Say hello in one word", max_tokens=5)
    except CompletionTransportError as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail={"error": "OpenAI connection failed", "message": exc.message, "code": exc.code},
        ) from exc
    return {"status": "OpenAI reachable", "response": reply, "model": client.model, "timestamp": _now()}
