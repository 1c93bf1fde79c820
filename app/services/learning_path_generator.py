"""Generate a complete learning path from a validated request."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Dict, List, Optional, Tuple

from app.core.config import settings
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.completion_client import CompletionClient
from app.services.completion_parser import RecoveryFailure, parse_completion
from app.services.plan_fallback import generate_fallback_plan
from app.services.plan_models import DAYS_PER_WEEK, PlanRequest
from app.services.plan_normalizer import normalize_steps
from app.services.plan_prompts import build_plan_prompts, max_tokens_for

logger = logging.getLogger(__name__)

FALLBACK_STRATEGY = "fallback"

GENERATED_BY = {
    "single_call": "OpenAI Single-Call Generation",
    "batched": "OpenAI Batched Weekly Generation",
}


@dataclass
class LearningPath:
    plan: List[Dict[str, Any]]
    strategy: str
    generated_by: str
    model: str
    batches: int
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def plan_batches(total_steps: int) -> List[Tuple[int, int]]:
    """Inclusive (first_step, last_step) ranges, one per upstream call."""
    if total_steps <= settings.single_call_max_steps:
        return [(1, total_steps)]
    size = max(1, settings.batch_weeks) * DAYS_PER_WEEK
    return [(first, min(first + size - 1, total_steps)) for first in range(1, total_steps + 1, size)]


def _generate_batch(
    request: PlanRequest,
    client: CompletionClient,
    first_step: int,
    last_step: int,
    trace_metadata: Dict[str, Any],
    request_id: Optional[str],
) -> Tuple[List[Dict[str, Any]], str]:
    step_count = last_step - first_step + 1
    system_prompt, user_prompt = build_plan_prompts(request, first_step=first_step, last_step=last_step)
    batch_metadata = {**trace_metadata, "first_step": first_step, "last_step": last_step}

    with trace("learning_path.completion", metadata=batch_metadata, request_id=request_id) as completion_trace:
        raw_text = client.complete(system_prompt, user_prompt, max_tokens=max_tokens_for(step_count))
        try:
            parsed = parse_completion(raw_text)
        except RecoveryFailure:
            logger.warning(
                "Steps %d-%d unrecoverable from %d chars; using template fallback",
                first_step,
                last_step,
                len(raw_text or ""),
            )
            steps = generate_fallback_plan(request, step_count, first_step=first_step)
            strategy = FALLBACK_STRATEGY
        else:
            steps, strategy = parsed.steps, parsed.strategy
        if completion_trace:
            completion_trace.update(
                metadata={**batch_metadata, "strategy": strategy, "objects": len(steps), "chars": len(raw_text or "")}
            )

    return normalize_steps(steps, step_count, request, first_step=first_step), strategy


def generate_learning_path(
    request: PlanRequest,
    client: CompletionClient,
    *,
    request_id: Optional[str] = None,
) -> LearningPath:
    """
    Build a plan of exactly `request.total_steps` steps.

    Small plans take one completion call; longer ones are generated batch by
    batch, sequentially. Unparseable completions fall back to templates, so
    only CompletionTransportError escapes.
    """
    batches = plan_batches(request.total_steps)
    mode = "single_call" if len(batches) == 1 else "batched"
    trace_metadata: Dict[str, Any] = {
        "goal": request.goal[:200],
        "level": request.level,
        "duration_weeks": request.duration_weeks,
        "total_steps": request.total_steps,
        "mode": mode,
        "model": client.model,
    }
    logger.info(
        "Generating %d steps for %r (%s) in %d %s call(s)",
        request.total_steps,
        request.goal,
        request.level,
        len(batches),
        mode,
    )

    started = perf_counter()
    steps: List[Dict[str, Any]] = []
    strategies: List[str] = []
    with trace("learning_path.generate", metadata=trace_metadata, request_id=request_id) as generation_trace:
        for first_step, last_step in batches:
            batch_steps, strategy = _generate_batch(request, client, first_step, last_step, trace_metadata, request_id)
            steps.extend(batch_steps)
            if strategy not in strategies:
                strategies.append(strategy)
        plan = normalize_steps(steps, request.total_steps, request)
        strategy_label = f"{mode}:{'+'.join(strategies)}"
        if generation_trace:
            generation_trace.update(metadata={**trace_metadata, "strategy": strategy_label})

    latency_ms = (perf_counter() - started) * 1000
    metric_metadata = {"mode": mode, "strategy": strategy_label, "total_steps": request.total_steps}
    log_metric("learning_path.batches", len(batches), metadata=metric_metadata)
    log_metric("learning_path.fallback.used", 1 if FALLBACK_STRATEGY in strategies else 0, metadata=metric_metadata)
    log_metric("learning_path.latency_ms", latency_ms, metadata=metric_metadata)
    logger.info("Generated %d steps via %s in %.0fms", len(plan), strategy_label, latency_ms)

    generated_by = GENERATED_BY[mode]
    if FALLBACK_STRATEGY in strategies:
        generated_by = f"{generated_by} with template fallback"
    return LearningPath(
        plan=plan,
        strategy=strategy_label,
        generated_by=generated_by,
        model=client.model,
        batches=len(batches),
    )
