"""
LevelUp Learning - Unified LLM Client
Centralized LLM access with telemetry, JSON extraction, and retries.
"""
import asyncio
import json
import logging
import re
from typing import Any, Dict, Optional, Type, TypeVar

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel

from levelup.core.config import settings
from levelup.core.exceptions import GenerationFailed
from levelup.ai.core.telemetry import agent_span

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Outermost JSON object in free-form model output
_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


def extract_json(text: str) -> Dict[str, Any]:
    """Pull the first-to-last brace block out of model text and parse it."""
    match = _JSON_BLOCK.search(text)
    if not match:
        raise ValueError("No JSON object found in model response")

    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError("Model response JSON is not an object")
    return data


class LLMClient:
    """
    Unified LLM client for all content generators.

    Features:
    - Multi-provider support (OpenAI, Anthropic)
    - Built-in telemetry (OpenTelemetry)
    - JSON extraction and pydantic validation
    - Retry with linear backoff, failing with GenerationFailed
    """

    def __init__(
        self,
        provider: str = None,
        model: str = None,
        temperature: float = 0.7,
        timeout: int = None,
        max_retries: int = None,
        retry_delay: float = None,
        llm: Optional[BaseChatModel] = None,
    ):
        """
        Initialize the LLM client.

        Args:
            provider: LLM provider ('openai' or 'anthropic'). Defaults to settings.
            model: Model name. Defaults to settings.
            temperature: Sampling temperature.
            timeout: Request timeout in seconds.
            max_retries: Attempts per JSON generation.
            retry_delay: Base delay in seconds; attempt n waits delay * n.
            llm: Pre-built chat model (skips provider construction).
        """
        self.provider = provider or settings.LLM_PROVIDER
        self.model = model or (
            settings.OPENAI_MODEL if self.provider == "openai"
            else settings.ANTHROPIC_MODEL
        )
        self.temperature = temperature
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS
        self.max_retries = max_retries or settings.LLM_MAX_RETRIES
        self.retry_delay = settings.LLM_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay

        self._llm = llm

    @property
    def llm(self) -> BaseChatModel:
        """Lazy-load the chat model."""
        if self._llm is None:
            if self.provider == "openai":
                from langchain_openai import ChatOpenAI
                self._llm = ChatOpenAI(
                    model=self.model,
                    api_key=settings.OPENAI_API_KEY,
                    temperature=self.temperature,
                    timeout=self.timeout,
                    max_tokens=settings.LLM_MAX_TOKENS,
                )
            else:
                from langchain_anthropic import ChatAnthropic
                self._llm = ChatAnthropic(
                    model=self.model,
                    api_key=settings.ANTHROPIC_API_KEY,
                    temperature=self.temperature,
                    timeout=self.timeout,
                    max_tokens=settings.LLM_MAX_TOKENS,
                )
        return self._llm

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        agent_name: str = "LLMClient",
    ) -> str:
        """Single completion; returns the model text."""
        with agent_span("llm.generate", agent_name, {
            "llm.model": self.model,
            "llm.provider": self.provider,
        }) as span:
            messages = []
            if system_prompt:
                messages.append(SystemMessage(content=system_prompt))
            messages.append(HumanMessage(content=prompt))

            span.set_attribute("llm.prompt_length", len(prompt))

            response = await self.llm.ainvoke(messages)
            content = response.content
            if not isinstance(content, str):
                # Content blocks (Anthropic) -> concatenated text
                content = "".join(
                    block.get("text", "") if isinstance(block, dict) else str(block)
                    for block in content
                )

            span.set_attribute("llm.response_length", len(content))
            return content

    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        agent_name: str = "LLMClient",
    ) -> Dict[str, Any]:
        """
        Generate a JSON object from the LLM.

        Retries on provider errors and unparseable output, then raises
        GenerationFailed chained to the last error.
        """
        return await self._with_retries(
            prompt, system_prompt, agent_name, lambda text: extract_json(text)
        )

    async def generate_structured(
        self,
        prompt: str,
        schema: Type[SchemaT],
        system_prompt: Optional[str] = None,
        agent_name: str = "LLMClient",
    ) -> SchemaT:
        """
        Generate JSON and validate it against a pydantic schema.

        Validation failures count as failed attempts.
        """
        return await self._with_retries(
            prompt,
            system_prompt,
            agent_name,
            lambda text: schema.model_validate(extract_json(text)),
        )

    async def _with_retries(self, prompt, system_prompt, agent_name, parse):
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                text = await self.generate(prompt, system_prompt, agent_name)
                return parse(text)
            except Exception as e:  # parse, validation and provider errors alike
                last_error = e

            logger.warning(
                "%s generation attempt %d/%d failed: %s",
                agent_name, attempt, self.max_retries, last_error,
            )
            if attempt < self.max_retries:
                await asyncio.sleep(self.retry_delay * attempt)

        raise GenerationFailed(
            f"Content generation failed after {self.max_retries} attempts: {last_error}"
        ) from last_error


def get_llm_client() -> LLMClient:
    """FastAPI dependency providing a configured LLM client."""
    return LLMClient()
