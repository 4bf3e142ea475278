# promptframe/client.py
"""
RESILIENT GENERATION CLIENT
===========================

PURPOSE:
--------
One call to the generation service, made robust against the ways it fails
in practice:

1. RATE LIMITS: HTTP 429 with provider code "3505" (or an error message about
   capacity / rate limits). Waits grow exponentially:
       delay = min(3 + 2**attempt * 1, 30) seconds

2. TRANSIENT FAILURES: the per-attempt timeout fired, the connection broke,
   or a gateway answered 502/503/504. Waits grow linearly:
       delay = min(3 + attempt * 1, 10) seconds

3. EVERYTHING ELSE (bad request, auth failure, a success body that is not a
   chat completion) is fatal and is raised at once.

The attempt budget is 1 + max_retries. When it runs out the last retryable
failure is raised with the attempt count attached, so the caller can say
"gave up after 4 attempts".

USAGE:
------
    client = GenerationClient(CONFIG)
    text = asyncio.run(client.invoke(system_prompt, prompt))

Tests pass an ``httpx.MockTransport`` and a fake ``sleep`` so no real waiting
or networking happens.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

import httpx
from pydantic import ValidationError

from .config import CONFIG, GeneratorConfig
from .schemas import ChatCompletionRequest, ChatCompletionResponse, ChatMessage, ServiceErrorBody

logger = logging.getLogger(__name__)


CAPACITY_VOCABULARY = ("capacity", "rate limit", "too many requests", "容量制限")


class GenerationError(RuntimeError):
    """
    Base class for generation service failures.

    ``attempts`` is the number of attempts made before giving up.
    """
    retryable = False

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class RateLimitedError(GenerationError):
    """The service kept reporting it is over capacity."""
    retryable = True


class TransientError(GenerationError):
    """Timeouts, network errors and gateway errors that outlasted the budget."""
    retryable = True


class FatalGenerationError(GenerationError):
    """A failure that retrying cannot fix."""
    pass


SleepFn = Callable[[float], Awaitable[None]]


class GenerationClient:
    """
    Calls the chat-completions endpoint with timeouts and backoff.

    Parameters:
    -----------
    config : GeneratorConfig
        Endpoint, credentials, attempt budget and backoff constants
    transport : httpx.AsyncBaseTransport, optional
        Replaces the network; tests use ``httpx.MockTransport``
    sleep : coroutine function
        Awaited between attempts with the delay in seconds
    """

    def __init__(
        self,
        config: GeneratorConfig = CONFIG,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.config = config
        self._transport = transport
        self._sleep = sleep
        self.last_attempts = 0

    def _headers(self) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {self.config.api_key}',
            'Content-Type': 'application/json',
        }

    def _request_body(self, system_prompt: str, user_message: str) -> dict:
        request = ChatCompletionRequest(
            model=self.config.model,
            messages=[
                ChatMessage(role='system', content=system_prompt),
                ChatMessage(role='user', content=user_message),
            ],
        )
        return request.model_dump()

    def _delay(self, error: GenerationError, attempt: int) -> float:
        if isinstance(error, RateLimitedError):
            return self.config.rate_limit_delay(attempt)
        return self.config.transient_delay(attempt)

    def _read_content(self, response: httpx.Response) -> str:
        try:
            envelope = ChatCompletionResponse.model_validate(response.json())
        except ValidationError as e:
            raise FatalGenerationError(f"Unexpected response envelope: {e.error_count()} error(s)") from e
        except ValueError as e:
            raise FatalGenerationError("Success response is not JSON") from e
        return envelope.content

    def _classify_failure(self, response: httpx.Response) -> GenerationError:
        try:
            body = ServiceErrorBody.model_validate(response.json())
        except ValueError:
            body = ServiceErrorBody(message=response.text)

        status = response.status_code
        message = body.message or response.text or response.reason_phrase
        code = None if body.code is None else str(body.code)

        if status == self.config.rate_limit_status and code == self.config.rate_limit_code:
            return RateLimitedError(f"Rate limited ({status}, code {code}): {message}")
        if status in self.config.transient_statuses:
            return TransientError(f"Gateway error {status}: {message}")
        if any(word in message.lower() for word in CAPACITY_VOCABULARY):
            return RateLimitedError(f"Capacity error ({status}): {message}")
        return FatalGenerationError(f"Generation service error {status}: {message}")

    async def _post(self, http: httpx.AsyncClient, body: dict) -> str:
        response = await http.post(self.config.api_url, json=body, headers=self._headers())
        logger.debug("Generation service answered %d", response.status_code)
        if response.is_success:
            return self._read_content(response)
        raise self._classify_failure(response)

    async def invoke(
        self,
        system_prompt: str,
        user_message: str,
        *,
        simplified_system_prompt: Optional[str] = None,
    ) -> str:
        """
        Return the text of the first choice of a chat completion.

        Raises:
            RateLimitedError: rate limited on every attempt
            TransientError: timed out / network / gateway failure on the last attempt
            FatalGenerationError: anything not worth retrying
        """
        self.last_attempts = 0
        if not self.config.api_key:
            raise FatalGenerationError(f"No API key configured (set {self.config.api_key_env})")

        budget = 1 + self.config.max_retries
        async with httpx.AsyncClient(transport=self._transport, timeout=self.config.timeout) as http:
            for attempt in range(budget):
                self.last_attempts = attempt + 1
                system = system_prompt
                if simplified_system_prompt and attempt > self.config.simplify_after_retries:
                    system = simplified_system_prompt
                body = self._request_body(system, user_message)

                logger.info("Generation attempt %d/%d", attempt + 1, budget)
                try:
                    text = await asyncio.wait_for(self._post(http, body), timeout=self.config.timeout)
                except (RateLimitedError, TransientError) as e:
                    error = e
                except asyncio.TimeoutError:
                    error = TransientError(f"Attempt timed out after {self.config.timeout:g}s")
                except httpx.TransportError as e:
                    error = TransientError(f"Network error: {e!r}")
                except FatalGenerationError as e:
                    e.attempts = attempt + 1
                    logger.error("Generation failed: %s", e)
                    raise
                else:
                    logger.info("Generation succeeded on attempt %d", attempt + 1)
                    logger.debug("Generated text: %.200s", text)
                    return text

                if attempt + 1 >= budget:
                    logger.error("Giving up after %d attempts: %s", budget, error)
                    raise type(error)(f"{error} (gave up after {budget} attempts)", attempts=budget) from error

                delay = self._delay(error, attempt)
                logger.warning("%s; retrying in %.1fs", error, delay)
                await self._sleep(delay)

        raise FatalGenerationError("Attempt budget is empty", attempts=0)
