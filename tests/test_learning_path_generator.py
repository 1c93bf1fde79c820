from __future__ import annotations

import json

import pytest

from app.core.config import settings
from app.services.completion_client import CompletionTransportError
from app.services.learning_path_generator import generate_learning_path, plan_batches
from app.services.plan_models import PlanRequest
from tests.conftest import StubCompletionClient, make_raw_step


def _week_reply(first_step: int, count: int = 7) -> str:
    return json.dumps([make_raw_step(number) for number in range(first_step, first_step + count)])


def test_small_plans_use_one_call(plan_request) -> None:
    stub = StubCompletionClient(_week_reply(1))
    result = generate_learning_path(plan_request, stub)

    assert len(stub.calls) == 1
    assert stub.calls[0]["max_tokens"] == 700
    assert result.strategy == "single_call:direct"
    assert result.batches == 1
    assert result.model == "stub-model"
    assert len(result.plan) == 7


def test_plan_batches_split_by_week(monkeypatch) -> None:
    assert plan_batches(14) == [(1, 14)]
    assert plan_batches(21) == [(1, 7), (8, 14), (15, 21)]

    monkeypatch.setattr(settings, "batch_weeks", 2)
    assert plan_batches(35) == [(1, 14), (15, 28), (29, 35)]


def test_long_plans_are_generated_week_by_week() -> None:
    request = PlanRequest(goal="Piano", level="Intermediate", duration=3, perDay=1)
    stub = StubCompletionClient([_week_reply(1), "garbage", "```json\n" + _week_reply(15) + "\n```"])

    result = generate_learning_path(request, stub)

    assert len(stub.calls) == 3
    assert "numbered 8 to 14" in stub.calls[1]["user"]
    assert result.strategy == "batched:direct+fallback"
    assert result.generated_by.endswith("with template fallback")
    assert [step["stepNumber"] for step in result.plan] == list(range(1, 22))
    assert result.plan[0]["label"] == "Day 1: Soil preparation part 1"
    assert result.plan[7]["label"].startswith("Day 8: Piano")
    assert result.plan[14]["label"] == "Day 15: Soil preparation part 15"


def test_unparseable_reply_falls_back(plan_request) -> None:
    result = generate_learning_path(plan_request, StubCompletionClient("not json at all"))

    assert result.strategy == "single_call:fallback"
    assert len(result.plan) == 7
    assert all(step["week"] == 1 for step in result.plan)


def test_repair_strategy_is_recorded(plan_request) -> None:
    reply = json.dumps([make_raw_step(n) for n in range(1, 8)])
    truncated = reply[: reply.rindex('{"stepNumber": 7')]

    result = generate_learning_path(plan_request, StubCompletionClient(truncated))

    assert result.strategy == "single_call:truncation_repair"
    assert result.plan[5]["label"] == "Day 6: Soil preparation part 6"
    assert result.plan[6]["label"].startswith("Day 7: Gardening")


def test_transport_errors_propagate(plan_request) -> None:
    stub = StubCompletionClient(CompletionTransportError("quota", "insufficient_quota"))

    with pytest.raises(CompletionTransportError) as excinfo:
        generate_learning_path(plan_request, stub)

    assert excinfo.value.status_code == 429
