"""Domain models shared by the learning-path pipeline."""
from __future__ import annotations

import math
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DAYS_PER_WEEK = 7
MAX_DURATION_WEEKS = 52
HOURS_PER_DAY_LIMIT = 24

LEVELS = ("Beginner", "Intermediate", "Advanced")

WEEK_THEMES = (
    "Foundation & Setup",
    "Core Concepts",
    "Practical Application",
    "Advanced Techniques",
    "Specialization",
    "Mastery & Projects",
    "Professional Skills",
    "Expert Applications",
)

STEP_FIELDS = (
    "stepNumber",
    "week",
    "dayOfWeek",
    "weekTheme",
    "label",
    "description",
    "details",
    "tasks",
    "resources",
    "estimatedTime",
    "weeklyGoal",
    "completed",
)


class PlanRequest(BaseModel):
    """A validated plan request. Wire names are `duration` and `perDay`."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    goal: str = Field(..., min_length=1)
    level: Literal["Beginner", "Intermediate", "Advanced"]
    duration_weeks: int = Field(..., alias="duration", ge=1, le=MAX_DURATION_WEEKS)
    hours_per_day: float = Field(..., alias="perDay", ge=1, le=HOURS_PER_DAY_LIMIT, allow_inf_nan=False)

    @field_validator("goal", mode="before")
    @classmethod
    def _strip_goal(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value):
        if isinstance(value, str):
            for level in LEVELS:
                if value.strip().lower() == level.lower():
                    return level
        return value

    @property
    def total_steps(self) -> int:
        return self.duration_weeks * DAYS_PER_WEEK

    @property
    def hours_label(self) -> str:
        hours = self.hours_per_day
        amount = str(int(hours)) if float(hours).is_integer() else f"{hours:g}"
        return f"{amount} hour" if amount == "1" else f"{amount} hours"


class PlanStep(BaseModel):
    """One day of a plan, serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    step_number: int = Field(..., ge=1)
    step: int = Field(..., ge=1, description="Mirror of stepNumber read by the web client.")
    week: int = Field(..., ge=1)
    day_of_week: int = Field(..., ge=1, le=DAYS_PER_WEEK)
    week_theme: str
    label: str
    description: str
    details: str
    tasks: List[str]
    resources: List[str]
    estimated_time: str
    weekly_goal: str
    completed: bool = False


def week_for_step(step_number: int) -> int:
    return math.ceil(step_number / DAYS_PER_WEEK)


def day_of_week_for_step(step_number: int) -> int:
    return ((step_number - 1) % DAYS_PER_WEEK) + 1


def theme_for_week(week: int) -> str:
    """Week themes progress in order; weeks past the vocabulary repeat the last one."""
    return WEEK_THEMES[min(max(week, 1) - 1, len(WEEK_THEMES) - 1)]
