"""Request/response models for the LLM gateway."""

from typing import Any

from pydantic import BaseModel, Field


class LLMTask(BaseModel):
    """Task to be sent to the LLM gateway."""

    custom_id: str = Field(..., description="Deterministic ID for tracking")
    agent_id: str
    symbol: str = ""
    prompt: str
    system_prompt: str = "You are an expert investment analyst."
    model: str | None = None
    max_tokens: int = 1500
    temperature: float = 0.3
    require_json: bool = True


class LLMResult(BaseModel):
    """Result from the LLM gateway. Failures are reported, never raised."""

    custom_id: str
    agent_id: str
    symbol: str = ""
    content: str = ""
    parsed_json: Any = None
    model: str | None = None
    tokens_used: int = 0
    latency_ms: float = 0.0
    error: str | None = None
    failed: bool = False
