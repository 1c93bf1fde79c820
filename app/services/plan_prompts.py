"""Prompt construction for learning-plan completions."""
from __future__ import annotations

import json
from typing import Optional, Tuple

from app.core.config import settings
from app.services.plan_models import (
    DAYS_PER_WEEK,
    WEEK_THEMES,
    PlanRequest,
    theme_for_week,
    week_for_step,
)

SYSTEM_PROMPT_TEMPLATE = (
    "You are LearnBloom, a curriculum designer who writes concise, practical daily study plans. "
    "Create exactly {step_count} unique learning steps for \"{goal}\". "
    "Each day must be specific to the goal and different from every other day. "
    "Reply with a JSON array only: no prose, no explanations, no markdown code fences."
)


def _example_step(request: PlanRequest, step_number: int) -> str:
    week = week_for_step(step_number)
    example = {
        "stepNumber": step_number,
        "week": week,
        "dayOfWeek": ((step_number - 1) % DAYS_PER_WEEK) + 1,
        "weekTheme": theme_for_week(week),
        "label": f"Day {step_number}: <specific topic>",
        "description": "<one sentence summary>",
        "details": "<what to learn and why it matters>",
        "tasks": ["<task 1> (20min)", "<task 2> (25min)", "<task 3> (15min)"],
        "resources": ["<resource 1>", "<resource 2>", "<resource 3>"],
        "estimatedTime": request.hours_label,
        "weeklyGoal": "<what this week should achieve>",
        "completed": False,
    }
    return json.dumps(example)


def _theme_lines(first_week: int, last_week: int) -> str:
    lines = [f"Week {week}: {theme_for_week(week)}" for week in range(first_week, last_week + 1)]
    return "\n".join(lines)


def build_plan_prompts(
    request: PlanRequest,
    *,
    first_step: int = 1,
    last_step: Optional[int] = None,
) -> Tuple[str, str]:
    """Return (system_prompt, user_prompt) asking for steps first_step..last_step inclusive."""
    last_step = request.total_steps if last_step is None else last_step
    step_count = last_step - first_step + 1
    first_week = week_for_step(first_step)
    last_week = week_for_step(last_step)

    system_prompt = SYSTEM_PROMPT_TEMPLATE.format(step_count=step_count, goal=request.goal)

    if first_step == 1 and last_step == request.total_steps:
        scope = f"Create exactly {step_count} learning steps"
    else:
        scope = (
            f"Create exactly {step_count} learning steps, numbered {first_step} to {last_step}, "
            f"covering weeks {first_week}-{last_week} of the program"
        )

    user_prompt = (
        f"{scope} for \"{request.goal}\" at {request.level} level.\n\n"
        f"Program: {request.duration_weeks} weeks ({request.total_steps} days), "
        f"{request.hours_label} per day. One step per day, {DAYS_PER_WEEK} days per week.\n\n"
        "Week themes, in order (later weeks reuse the last theme listed):\n"
        f"{_theme_lines(first_week, last_week)}\n"
        f"Full theme progression: {', '.join(WEEK_THEMES)}.\n\n"
        "Every step is a JSON object with exactly these fields: "
        "stepNumber, week, dayOfWeek, weekTheme, label, description, details, tasks, "
        "resources, estimatedTime, weeklyGoal, completed.\n"
        f"Example:\n{_example_step(request, first_step)}\n\n"
        f"Return only a JSON array of exactly {step_count} objects, starting with \"[\" and ending with \"]\". "
        "Do not wrap it in code fences or add any text before or after it. "
        f"Make each day unique and specific to {request.goal}."
    )
    return system_prompt, user_prompt


def max_tokens_for(step_count: int) -> int:
    """Completion budget for a batch: grows with steps, capped by settings."""
    return min(settings.openai_max_tokens, step_count * settings.tokens_per_step)
