from __future__ import annotations

import math

from app.services.plan_models import STEP_FIELDS, PlanRequest
from app.services.plan_normalizer import normalize_steps
from tests.conftest import make_raw_step


def _request(weeks: int = 2) -> PlanRequest:
    return PlanRequest(goal="Gardening", level="Beginner", duration=weeks, perDay=1)


def _assert_grid(plan, total_steps) -> None:
    assert len(plan) == total_steps
    for index, step in enumerate(plan):
        assert step["stepNumber"] == index + 1
        assert step["step"] == index + 1
        assert step["week"] == math.ceil((index + 1) / 7)
        assert step["dayOfWeek"] == index % 7 + 1
        assert step["completed"] is False
        for field in STEP_FIELDS:
            assert field in step


def test_empty_input_is_fully_synthesized() -> None:
    plan = normalize_steps([], 14, _request())

    _assert_grid(plan, 14)
    assert all(step["label"] and step["tasks"] and step["resources"] for step in plan)


def test_position_overrides_embedded_numbers() -> None:
    raw = [make_raw_step(9, week=5, dayOfWeek=3, weekTheme="Made up"), make_raw_step(1)]
    plan = normalize_steps(raw, 2, _request(1))

    assert plan[0]["stepNumber"] == 1
    assert plan[0]["weekTheme"] == "Foundation & Setup"
    assert plan[0]["label"] == "Day 9: Soil preparation part 9"
    assert plan[1]["stepNumber"] == 2


def test_long_input_is_truncated_in_order() -> None:
    raw = [make_raw_step(number) for number in range(1, 11)]
    plan = normalize_steps(raw, 7, _request(1))

    assert [step["label"] for step in plan] == [f"Day {n}: Soil preparation part {n}" for n in range(1, 8)]


def test_short_input_is_padded_with_templates() -> None:
    raw = [make_raw_step(number) for number in range(1, 6)]
    plan = normalize_steps(raw, 7, _request(1))

    _assert_grid(plan, 7)
    assert plan[4]["label"] == "Day 5: Soil preparation part 5"
    assert plan[5]["label"].startswith("Day 6: Gardening")
    assert plan[6]["tasks"] and plan[6]["resources"]


def test_wrongly_typed_fields_get_defaults() -> None:
    raw = [
        {
            "label": 42,
            "description": "   ",
            "details": None,
            "tasks": "do things",
            "resources": [1, None, "  Good book  "],
            "estimatedTime": ["1h"],
            "weekly_goal": "Grow herbs",
            "completed": True,
        },
        "not an object",
    ]
    plan = normalize_steps(raw, 2, _request(1))

    first = plan[0]
    assert first["label"].startswith("Day 1: Gardening")
    assert first["description"] and first["details"]
    assert isinstance(first["tasks"], list) and first["tasks"]
    assert first["resources"] == ["Good book"]
    assert first["estimatedTime"] == "1 hour"
    assert first["weeklyGoal"] == "Grow herbs"
    assert first["completed"] is False
    assert plan[1]["label"].startswith("Day 2: Gardening")


def test_normalization_is_idempotent_except_completed() -> None:
    request = _request(2)
    plan = normalize_steps([make_raw_step(n) for n in range(1, 10)], 14, request)
    plan[3]["completed"] = True

    again = normalize_steps(plan, 14, request)

    plan[3]["completed"] = False
    assert again == plan


def test_first_step_offsets_numbering() -> None:
    plan = normalize_steps([make_raw_step(1)], 7, _request(3), first_step=8)

    assert [step["stepNumber"] for step in plan] == list(range(8, 15))
    assert {step["week"] for step in plan} == {2}
    assert {step["weekTheme"] for step in plan} == {"Core Concepts"}
