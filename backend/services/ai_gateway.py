"""
AI Gateway - structured output from LLM providers with bounded retry.

The gateway turns a prompt plus a pydantic schema into a validated model
instance. One attempt is:

    provider.complete(prompt) -> extract_json(text) -> json.loads -> schema.model_validate

Any step may fail with a GatewayError subclass (TransportError,
ExtractionError, ParseError, SchemaValidationError). Failed attempts are
retried in an explicit loop up to `max_attempts`, sleeping
`base_delay * 2^(n-1)` seconds after failed attempt n (no sleep after the
last one). generate() never raises GatewayErrors: it returns a GatewayResult
carrying either the value or the last error, plus attempt, delay and token
counters.

Callers may pass a `recover` hook. It is consulted on a
SchemaValidationError; when it returns a value the gateway stops retrying
and returns that value with `recovered=True`. The Director uses this to
turn an empty recommendation list into its fallback output.

Providers:
- AnthropicProvider: anthropic.AsyncAnthropic messages API
- OpenAIProvider: openai.AsyncOpenAI chat completions in JSON mode

SDK-level retries are disabled (max_retries=0) so the gateway owns the
retry schedule.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, Type, TypeVar

import anthropic
import openai
from pydantic import BaseModel, ValidationError

from backend.core.config import Settings
from backend.services.errors import (
    ExtractionError,
    GatewayError,
    ParseError,
    SchemaValidationError,
    TransportError,
)
from backend.services.json_extraction import extract_json

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


# =============================================================================
# Provider Abstraction
# =============================================================================

@dataclass
class Completion:
    """Raw provider response text with token usage."""
    text: str
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class AIProvider(ABC):
    """An LLM backend able to complete a single user prompt."""

    name: str = "provider"

    @abstractmethod
    async def complete(self, prompt: str, *, max_tokens: int) -> Completion:
        """
        Send one prompt and return the response text.

        Raises:
            TransportError: On any network, timeout, rate-limit or API error.
        """


class AnthropicProvider(AIProvider):
    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 120.0,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        self.model = model
        self._client = client or anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )

    async def complete(self, prompt: str, *, max_tokens: int) -> Completion:
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise TransportError(f"Anthropic request failed: {e}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        usage = response.usage
        return Completion(
            text=text,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
        )


class OpenAIProvider(AIProvider):
    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 120.0,
        client: Optional[openai.AsyncOpenAI] = None,
    ):
        self.model = model
        self._client = client or openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )

    async def complete(self, prompt: str, *, max_tokens: int) -> Completion:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as e:
            raise TransportError(f"OpenAI request failed: {e}") from e

        text = response.choices[0].message.content if response.choices else ""
        usage = response.usage
        return Completion(
            text=text or "",
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )


def build_provider(settings: Settings) -> AIProvider:
    """
    Construct the provider selected by settings.ai_provider.

    Raises:
        ConfigurationError: If the selected provider has no API key.
    """
    api_key = settings.require_ai_credentials()
    if settings.ai_provider == "openai":
        return OpenAIProvider(api_key, settings.openai_model, timeout=settings.ai_request_timeout_seconds)
    return AnthropicProvider(api_key, settings.anthropic_model, timeout=settings.ai_request_timeout_seconds)


# =============================================================================
# Gateway
# =============================================================================

@dataclass
class GatewayResult(Generic[T]):
    """
    Outcome of AIGateway.generate().

    Exactly one of `value` / `error` is set. `total_delay` is the backoff
    time actually slept; `tokens_used` sums every attempt, failed or not.
    """
    value: Optional[T] = None
    error: Optional[GatewayError] = None
    attempts: int = 0
    total_delay: float = 0.0
    tokens_used: int = 0
    recovered: bool = False

    @property
    def ok(self) -> bool:
        return self.value is not None


RecoverHook = Callable[[SchemaValidationError], Optional[T]]


def decode_response(text: str, schema: Type[T]) -> T:
    """
    Extract, decode and validate one model response.

    Raises:
        ExtractionError: No JSON payload found.
        ParseError: Payload found but not valid JSON.
        SchemaValidationError: JSON does not satisfy `schema`.
    """
    extraction = extract_json(text)
    if not extraction.found:
        raise ExtractionError("No JSON payload found in model response")

    try:
        payload = json.loads(extraction.payload)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON located via {extraction.strategy.value}: {e}") from e

    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise SchemaValidationError(
            f"{schema.__name__} validation failed with {e.error_count()} error(s)",
            errors=e.errors(include_url=False),
            payload=payload,
        ) from e


class AIGateway:
    """
    Retrying structured-output client.

    Args:
        provider: Backend used for completions.
        max_attempts: Attempts per generate() call, including the first.
        base_delay: Backoff base in seconds.
        max_tokens: Completion token cap passed to the provider.
        sleep: Awaitable sleep; tests inject a recorder.
    """

    def __init__(
        self,
        provider: AIProvider,
        *,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_tokens: int = 4096,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.provider = provider
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_tokens = max_tokens
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, provider: Optional[AIProvider] = None) -> "AIGateway":
        return cls(
            provider or build_provider(settings),
            max_attempts=settings.ai_max_attempts,
            base_delay=settings.ai_base_delay_seconds,
            max_tokens=settings.ai_max_tokens,
        )

    def backoff_delay(self, attempt: int) -> float:
        """Delay slept after failed attempt `attempt` (1-based)."""
        return self.base_delay * (2 ** (attempt - 1))

    async def generate(
        self,
        prompt: str,
        schema: Type[T],
        *,
        label: str,
        recover: Optional[RecoverHook] = None,
    ) -> GatewayResult[T]:
        """
        Run the prompt until the response validates or attempts run out.

        Args:
            prompt: Full prompt text.
            schema: pydantic model the JSON payload must satisfy.
            label: Caller name used in log lines (e.g. "Paid agent").
            recover: Optional hook turning a SchemaValidationError into a value.

        Returns:
            GatewayResult; check `.ok` before reading `.value`.
        """
        result: GatewayResult[T] = GatewayResult()

        for attempt in range(1, self.max_attempts + 1):
            result.attempts = attempt
            try:
                completion = await self.provider.complete(prompt, max_tokens=self.max_tokens)
                result.tokens_used += completion.total_tokens
                result.value = decode_response(completion.text, schema)
                result.error = None
                if attempt > 1:
                    logger.info(f"{label}: succeeded on attempt {attempt}")
                return result
            except SchemaValidationError as e:
                if recover is not None:
                    fallback = recover(e)
                    if fallback is not None:
                        logger.warning(f"{label}: recovered from schema validation failure: {e}")
                        result.value = fallback
                        result.error = None
                        result.recovered = True
                        return result
                result.error = e
            except GatewayError as e:
                result.error = e

            logger.warning(
                f"{label}: attempt {attempt}/{self.max_attempts} failed "
                f"({type(result.error).__name__}: {result.error})"
            )
            if attempt < self.max_attempts:
                delay = self.backoff_delay(attempt)
                result.total_delay += delay
                await self._sleep(delay)

        logger.error(f"{label}: retries exhausted after {result.attempts} attempts")
        return result


__all__ = [
    "Completion",
    "AIProvider",
    "AnthropicProvider",
    "OpenAIProvider",
    "build_provider",
    "GatewayResult",
    "RecoverHook",
    "decode_response",
    "AIGateway",
    # Re-exported attempt errors
    "GatewayError",
    "TransportError",
    "ExtractionError",
    "ParseError",
    "SchemaValidationError",
]
