# AI Core Module - LLM client and tracing

from levelup.ai.core.llm import LLMClient, extract_json, get_llm_client
from levelup.ai.core.telemetry import get_tracer, agent_span

__all__ = [
    # LLM
    "LLMClient", "extract_json", "get_llm_client",
    # Telemetry
    "get_tracer", "agent_span",
]
