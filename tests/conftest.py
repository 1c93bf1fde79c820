from __future__ import annotations

from typing import Any, Dict, List, Sequence, Union

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_completion_client
from app.services.plan_models import PlanRequest

Reply = Union[str, Exception]


class StubCompletionClient:
    """Returns canned completion text in order, repeating the last reply."""

    model = "stub-model"

    def __init__(self, replies: Union[Reply, Sequence[Reply]]):
        self.replies: List[Reply] = [replies] if isinstance(replies, (str, Exception)) else list(replies)
        self.calls: List[Dict[str, Any]] = []

    def complete(self, system_prompt: str, user_prompt: str, *, max_tokens: int) -> str:
        self.calls.append({"system": system_prompt, "user": user_prompt, "max_tokens": max_tokens})
        reply = self.replies[min(len(self.calls), len(self.replies)) - 1]
        if isinstance(reply, Exception):
            raise reply
        return reply


def make_raw_step(number: int, **overrides: Any) -> Dict[str, Any]:
    step = {
        "stepNumber": number,
        "week": 1,
        "dayOfWeek": number,
        "weekTheme": "Foundation & Setup",
        "label": f"Day {number}: Soil preparation part {number}",
        "description": f"Prepare a bed for day {number}.",
        "details": "Learn how soil texture affects drainage.",
        "tasks": ["Test soil pH (20min)", "Mix compost (25min)", "Log results (15min)"],
        "resources": ["Extension service soil guide", "Composting basics video"],
        "estimatedTime": "1 hour",
        "weeklyGoal": "Get a planting bed ready",
        "completed": False,
    }
    step.update(overrides)
    return step


@pytest.fixture()
def plan_request() -> PlanRequest:
    return PlanRequest(goal="Gardening", level="Beginner", duration=1, perDay=1)


@pytest.fixture()
def api_client():
    from app.main import app

    def _make(stub: StubCompletionClient | None) -> TestClient:
        app.dependency_overrides[get_completion_client] = lambda: stub
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
