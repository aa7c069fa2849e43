"""Resilient Judge Client - Judge0-compatible HTTP adapter with timeout, retry and error mapping.

Invariants:
    - Every call is bounded by timeout_seconds (httpx timeout)
    - Transient errors (connection, 5xx): up to max_retries retries with backoff
    - Timeouts and client errors (4xx): immediate failure, no retry
    - All failures mapped to JudgeGatewayError (core/errors.py)

Design Decisions:
    - Wrapper over raw httpx: isolates transport details from the round engine
    - wait=true submissions: one round trip per test case, no polling of tokens
    - ±25% jitter on backoff: prevents synchronized retries from a fan-out
"""

import asyncio
import logging
import random

import httpx

from codeshuffle.core.domain_types import JUDGE0_LANGUAGE_IDS, Language
from codeshuffle.core.errors import JudgeGatewayError
from codeshuffle.core.judge_verdict import JudgeOutcome

logger = logging.getLogger(__name__)

_SUBMIT_PATH = "/submissions"
_SUBMIT_PARAMS = {"base64_encoded": "false", "wait": "true"}


def language_id_for(language: str) -> int:
    try:
        return JUDGE0_LANGUAGE_IDS[Language(language)]
    except ValueError:
        raise JudgeGatewayError(
            f"Unsupported language '{language}'", "unsupported_language",
        )


def parse_outcome(payload: dict) -> JudgeOutcome:
    """Map a Judge0 submission body to JudgeOutcome."""
    status = payload.get("status") or {}
    memory = payload.get("memory")
    return JudgeOutcome(
        status_id=status.get("id"),
        status=status.get("description") or "Unknown",
        stdout=payload.get("stdout"),
        stderr=payload.get("stderr"),
        compile_output=payload.get("compile_output"),
        time=payload.get("time"),
        memory=int(memory) if memory is not None else None,
    )


class ResilientJudgeClient:
    """Judge0 client with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 1,
        base_delay_ms: int = 250,
        max_delay_ms: int = 2_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["X-Auth-Token"] = api_key
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def execute(
        self,
        source_code: str,
        language: str,
        stdin: str,
        cpu_time_limit: float | None = None,
    ) -> JudgeOutcome:
        """Run source against stdin. Raises JudgeGatewayError on any failure."""
        body: dict = {
            "source_code": source_code,
            "language_id": language_id_for(language),
            "stdin": stdin,
        }
        if cpu_time_limit is not None:
            body["cpu_time_limit"] = cpu_time_limit

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.post(
                    _SUBMIT_PATH, params=_SUBMIT_PARAMS, json=body,
                )
                response.raise_for_status()
                outcome = parse_outcome(response.json())
                logger.debug(
                    f"Judge verdict: {outcome.status}",
                    extra={"attempt": attempt + 1},
                )
                return outcome

            except httpx.TimeoutException:
                raise JudgeGatewayError("judge call timed out", "timeout")

            except httpx.HTTPStatusError as e:
                if e.response.status_code >= 500:
                    await self._handle_transient_error(e, attempt)
                    continue
                raise JudgeGatewayError(
                    f"HTTP {e.response.status_code}", "client_error",
                )

            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt)

            except ValueError as e:
                raise JudgeGatewayError(
                    f"Malformed judge response: {e}", "bad_response",
                )

        raise JudgeGatewayError("retries exhausted", "connection_error")

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _handle_transient_error(self, e: Exception, attempt: int) -> None:
        """Sleep before the next attempt, or raise once retries run out."""
        if attempt >= self.max_retries:
            raise JudgeGatewayError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
            )
        delay = self._backoff(attempt)
        logger.warning(f"Judge transient error, retry after {delay}ms: {e}")
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311


# Singleton (initialized on startup)
judge_client: ResilientJudgeClient | None = None


def init_judge(base_url: str, **kwargs) -> ResilientJudgeClient:
    global judge_client
    judge_client = ResilientJudgeClient(base_url, **kwargs)
    return judge_client


def get_judge() -> ResilientJudgeClient:
    """FastAPI dependency for the judge gateway."""
    if not judge_client:
        raise RuntimeError("Judge client not initialized")
    return judge_client
