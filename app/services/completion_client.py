"""Text-completion capability backed by the OpenAI chat completions API."""
from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, Tuple

import openai

from app.core.config import settings

logger = logging.getLogger(__name__)

# kind -> (HTTP status, public error code, public message)
TRANSPORT_ERRORS: Dict[str, Tuple[int, str, str]] = {
    "quota": (
        429,
        "QUOTA_EXCEEDED",
        "You have exceeded your OpenAI usage quota. Check billing at platform.openai.com.",
    ),
    "auth": (
        401,
        "INVALID_API_KEY",
        "The OpenAI API key is invalid or has expired.",
    ),
    "rate_limit": (
        429,
        "RATE_LIMITED",
        "The completion service is rate limiting requests. Try again shortly.",
    ),
    "generic": (
        500,
        "GENERATION_FAILED",
        "The completion service call failed.",
    ),
}


class CompletionClient(Protocol):
    """Anything that turns a system and user prompt into a single text blob."""

    model: str

    def complete(self, system_prompt: str, user_prompt: str, *, max_tokens: int) -> str:
        ...


class CompletionTransportError(RuntimeError):
    """The completion service could not be reached or refused the call."""

    def __init__(self, kind: str, detail: str, *, status_code: Optional[int] = None) -> None:
        default_status, code, message = TRANSPORT_ERRORS.get(kind, TRANSPORT_ERRORS["generic"])
        super().__init__(detail or message)
        self.kind = kind if kind in TRANSPORT_ERRORS else "generic"
        self.status_code = status_code or default_status
        self.code = code
        self.message = message
        self.detail = detail

    @classmethod
    def from_sdk_error(cls, exc: openai.OpenAIError) -> "CompletionTransportError":
        code = getattr(exc, "code", None)
        if code == "insufficient_quota":
            return cls("quota", str(exc))
        if isinstance(exc, openai.AuthenticationError) or code == "invalid_api_key":
            return cls("auth", str(exc))
        if isinstance(exc, openai.RateLimitError):
            return cls("rate_limit", str(exc))
        if isinstance(exc, openai.APIConnectionError):
            return cls("generic", str(exc), status_code=502)
        return cls("generic", str(exc))


class OpenAICompletionClient:
    """Chat-completion client; one call per `complete`, no retries."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str | None = None,
        temperature: float | None = None,
        sdk_client: openai.OpenAI | None = None,
    ) -> None:
        self.model = model or settings.openai_model
        self.temperature = settings.openai_temperature if temperature is None else temperature
        # no SDK retries; failures propagate to the route
        self._client = sdk_client or openai.OpenAI(api_key=api_key, max_retries=0)

    def complete(self, system_prompt: str, user_prompt: str, *, max_tokens: int) -> str:
        logger.info("Requesting completion from %s (max_tokens=%d)", self.model, max_tokens)
        try:
            completion = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=max_tokens,
                temperature=self.temperature,
            )
        except openai.OpenAIError as exc:
            error = CompletionTransportError.from_sdk_error(exc)
            logger.error("Completion call failed (%s): %s", error.kind, exc)
            raise error from exc

        choice = completion.choices[0] if completion.choices else None
        content = (choice.message.content if choice else None) or ""
        logger.info(
            "Completion received: %d chars, finish_reason=%s",
            len(content),
            getattr(choice, "finish_reason", None),
        )
        return content


def build_completion_client() -> Optional[OpenAICompletionClient]:
    """Return a client for the configured credential, or None when no key is set."""
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not configured; plan generation is unavailable.")
        return None
    return OpenAICompletionClient(settings.openai_api_key)
