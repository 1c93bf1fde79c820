"""FastAPI dependencies."""
from __future__ import annotations

from typing import Optional

from app.services.completion_client import CompletionClient, build_completion_client


def get_completion_client() -> Optional[CompletionClient]:
    """Completion capability for the current request; None when not configured."""
    return build_completion_client()
