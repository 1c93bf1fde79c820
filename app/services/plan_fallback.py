"""Deterministic, template-based plan synthesis used when no usable completion exists."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from app.services.plan_models import (
    PlanRequest,
    PlanStep,
    day_of_week_for_step,
    theme_for_week,
    week_for_step,
)

logger = logging.getLogger(__name__)

# one focus per weekday
DAILY_FOCUS = (
    "Key Ideas",
    "Essential Vocabulary",
    "Guided Practice",
    "Common Patterns",
    "Problem Solving",
    "Real-World Examples",
    "Review & Reflection",
)

LEVEL_APPROACH = {
    "Beginner": "a gentle, step-by-step introduction",
    "Intermediate": "applied practice that builds on what you already know",
    "Advanced": "in-depth work that stretches your current expertise",
}

TASK_TEMPLATES = (
    (
        "Read an overview of {focus} in {goal}",
        "Work through a {level} exercise on {focus}",
        "Write a short summary of what you learned",
    ),
    (
        "Watch a tutorial covering {focus} for {goal}",
        "Recreate the tutorial example on your own",
        "List three questions to explore next",
    ),
    (
        "Study one worked example of {focus}",
        "Solve two {level} practice problems on {focus}",
        "Compare your solutions with a reference",
    ),
    (
        "Review yesterday's notes on {goal}",
        "Build a small {theme} exercise around {focus}",
        "Record progress and blockers in your learning journal",
    ),
)

# share of the daily budget given to each of the three tasks
TASK_TIME_SHARES = (1 / 3, 5 / 12, 1 / 4)

RESOURCE_TEMPLATES = (
    "Official {goal} documentation",
    "{level} {goal} video tutorials",
    "{goal} practice exercises",
    "{goal} community forums and Q&A",
    "A {level}-level {goal} book or course",
    "Worked {goal} examples and case studies",
)

WEEKLY_GOALS = {
    "Foundation & Setup": "Set up your {goal} environment and understand the fundamentals",
    "Core Concepts": "Master the core concepts of {goal}",
    "Practical Application": "Apply {goal} skills to small practical exercises",
    "Advanced Techniques": "Explore advanced {goal} techniques",
    "Specialization": "Deepen one specialized area of {goal}",
    "Mastery & Projects": "Consolidate {goal} skills through a project",
    "Professional Skills": "Practise {goal} the way professionals do",
    "Expert Applications": "Tackle expert-level {goal} applications",
}


def _task_minutes(hours_per_day: float) -> List[int]:
    return [max(5, round(hours_per_day * 60 * share)) for share in TASK_TIME_SHARES]


def build_fallback_step(request: PlanRequest, step_number: int) -> Dict[str, Any]:
    """Return a fully populated, serialized step for the given 1-based position."""
    week = week_for_step(step_number)
    day = day_of_week_for_step(step_number)
    theme = theme_for_week(week)
    focus = DAILY_FOCUS[day - 1]
    values = {"goal": request.goal, "level": request.level.lower(), "focus": focus.lower(), "theme": theme.lower()}

    templates = TASK_TEMPLATES[(step_number - 1) % len(TASK_TEMPLATES)]
    tasks = [
        f"{template.format(**values)} ({minutes}min)"
        for template, minutes in zip(templates, _task_minutes(request.hours_per_day))
    ]
    offset = (week - 1) % len(RESOURCE_TEMPLATES)
    rotated = RESOURCE_TEMPLATES[offset:] + RESOURCE_TEMPLATES[:offset]
    resources = [template.format(goal=request.goal, level=request.level) for template in rotated[:3]]

    step = PlanStep(
        step_number=step_number,
        step=step_number,
        week=week,
        day_of_week=day,
        week_theme=theme,
        label=f"Day {step_number}: {request.goal} {focus}",
        description=f"{theme}: explore {focus.lower()} in {request.goal}.",
        details=(
            f"Week {week} focuses on {theme.lower()}. Today is {LEVEL_APPROACH[request.level]} "
            f"to {focus.lower()} in {request.goal}, finishing with a short review."
        ),
        tasks=tasks,
        resources=resources,
        estimated_time=request.hours_label,
        weekly_goal=WEEKLY_GOALS[theme].format(goal=request.goal),
        completed=False,
    )
    return step.model_dump(by_alias=True)


def generate_fallback_plan(
    request: PlanRequest,
    total_steps: Optional[int] = None,
    *,
    first_step: int = 1,
) -> List[Dict[str, Any]]:
    """Synthesize `total_steps` steps numbered from `first_step` without calling the completion service."""
    count = request.total_steps if total_steps is None else total_steps
    logger.info("Generating %d fallback steps for %r (%s)", count, request.goal, request.level)
    return [build_fallback_step(request, number) for number in range(first_step, first_step + count)]
