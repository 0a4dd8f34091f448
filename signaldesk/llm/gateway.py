"""
LLM Gateway for chat-completion calls with JSON output.

Agents, the debate round, synthesis, structuring and sentiment all go
through ``run_realtime``; none of them talk to the OpenAI client directly.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Optional, Protocol

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI, RateLimitError

from signaldesk.core.config import settings
from signaldesk.core.logging import get_logger
from signaldesk.llm.schemas import LLMResult, LLMTask


logger = get_logger("llm.gateway")

DEFAULT_TIMEOUT = 60.0


class LLMGatewayProtocol(Protocol):
    """Protocol for LLM gateway implementations."""

    async def run_realtime(self, task: LLMTask) -> LLMResult:
        """Execute a single task."""
        ...


class OpenAIGateway:
    """LLM gateway backed by the OpenAI chat completions API."""

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        client: AsyncOpenAI | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.model = model or settings.default_model
        self._api_key = api_key if api_key is not None else settings.openai_api_key
        self._client = client
        self.timeout = timeout

    def _get_client(self) -> Optional[AsyncOpenAI]:
        if self._client is None and self._api_key:
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self.timeout)
        return self._client

    def _failure(self, task: LLMTask, error: str, latency: float = 0.0) -> LLMResult:
        return LLMResult(
            custom_id=task.custom_id,
            agent_id=task.agent_id,
            symbol=task.symbol,
            model=task.model or self.model,
            error=error,
            failed=True,
            latency_ms=latency,
        )

    async def run_realtime(self, task: LLMTask) -> LLMResult:
        """Execute a single task; transport and parse errors become failed results."""
        client = self._get_client()
        if client is None:
            return self._failure(task, "OpenAI client not configured - check OPENAI_API_KEY")

        model = task.model or self.model
        params: dict = {
            "model": model,
            "messages": [
                {"role": "system", "content": task.system_prompt},
                {"role": "user", "content": task.prompt},
            ],
            "temperature": task.temperature,
            "max_tokens": task.max_tokens,
        }
        if task.require_json:
            params["response_format"] = {"type": "json_object"}

        start = time.monotonic()
        try:
            response = await client.chat.completions.create(**params)
        except (APITimeoutError, APIConnectionError, RateLimitError, APIStatusError) as e:
            latency = (time.monotonic() - start) * 1000
            logger.error(f"LLM call {task.custom_id} failed: {e}")
            return self._failure(task, str(e), latency)

        latency = (time.monotonic() - start) * 1000

        if not response.choices:
            return self._failure(task, "No response choices from OpenAI", latency)

        content = response.choices[0].message.content or ""
        tokens_used = response.usage.total_tokens if response.usage else 0

        parsed_json = None
        if task.require_json:
            if not content:
                return self._failure(task, "Empty response", latency)
            try:
                parsed_json = json.loads(content)
            except json.JSONDecodeError as e:
                logger.warning(f"Failed to parse JSON response for {task.custom_id}: {e}")
                result = self._failure(task, f"Invalid JSON: {e}", latency)
                result.content = content
                return result

        return LLMResult(
            custom_id=task.custom_id,
            agent_id=task.agent_id,
            symbol=task.symbol,
            content=content,
            parsed_json=parsed_json,
            model=model,
            tokens_used=tokens_used,
            latency_ms=latency,
        )

    async def run(self, tasks: list[LLMTask]) -> list[LLMResult]:
        """Run tasks concurrently, in input order."""
        if not tasks:
            return []

        results = await asyncio.gather(
            *[self.run_realtime(task) for task in tasks],
            return_exceptions=True,
        )

        final_results = []
        for task, result in zip(tasks, results):
            if isinstance(result, BaseException):
                final_results.append(self._failure(task, str(result)))
            else:
                final_results.append(result)
        return final_results


# =============================================================================
# Singleton
# =============================================================================


_gateway: Optional[LLMGatewayProtocol] = None


def get_gateway() -> LLMGatewayProtocol:
    """Get the process-wide gateway."""
    global _gateway
    if _gateway is None:
        _gateway = OpenAIGateway()
    return _gateway


def set_gateway(gateway: Optional[LLMGatewayProtocol]) -> None:
    """Replace the process-wide gateway (None resets to default on next use)."""
    global _gateway
    _gateway = gateway
