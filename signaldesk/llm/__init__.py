"""LLM access for agents, synthesis, structuring and sentiment."""

from signaldesk.llm.gateway import LLMGatewayProtocol, OpenAIGateway, get_gateway, set_gateway
from signaldesk.llm.schemas import LLMResult, LLMTask


__all__ = [
    "LLMGatewayProtocol",
    "LLMResult",
    "LLMTask",
    "OpenAIGateway",
    "get_gateway",
    "set_gateway",
]
