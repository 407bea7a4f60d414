"""LLM provider interface and implementations."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from openai import AsyncOpenAI

from .prompts import DESCRIPTION_PROMPT

logger = logging.getLogger(__name__)


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    async def generate_description(self, title: str, content: str) -> str:
        """
        Write a searchable description plus sample questions for an article.

        Args:
            title: Article title
            content: Article body, already truncated by the caller

        Returns:
            Generated text in the DESCRIPTION / QUESTIONS format
        """
        pass

    @abstractmethod
    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""
        pass


class OpenAIProvider(LLMProvider):
    """OpenAI implementation of LLM provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        temperature: float = 0.3,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model name to use
            base_url: Custom base URL (for testing or compatible servers)
            temperature: Sampling temperature
        """
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model
        self.temperature = temperature
        self.total_tokens = 0
        self.prompt_tokens = 0
        self.completion_tokens = 0
        self.api_calls = 0

        # Token cost estimates (per 1K tokens)
        self.cost_per_1k_tokens = {
            "gpt-4o": {"input": 0.005, "output": 0.015},
            "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
            "gpt-4.1-mini": {"input": 0.0004, "output": 0.0016},
        }

    async def generate_description(self, title: str, content: str) -> str:
        """Generate description using OpenAI."""
        prompt = DESCRIPTION_PROMPT.format(title=title, content=content)

        self.api_calls += 1
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.temperature,
        )

        if response.usage:
            self.total_tokens += response.usage.total_tokens
            self.prompt_tokens += response.usage.prompt_tokens
            self.completion_tokens += response.usage.completion_tokens

        return (response.choices[0].message.content or "").strip()

    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""
        estimated_cost = 0.0
        if self.model in self.cost_per_1k_tokens:
            rates = self.cost_per_1k_tokens[self.model]
            estimated_cost = (self.prompt_tokens / 1000) * rates["input"] + (
                self.completion_tokens / 1000
            ) * rates["output"]

        return {
            "total_tokens": self.total_tokens,
            "api_calls": self.api_calls,
            "estimated_cost": estimated_cost,
            "model": self.model,
        }


class MockLLMProvider(LLMProvider):
    """Mock LLM provider for offline runs and testing."""

    def __init__(self) -> None:
        """Initialize mock provider."""
        self.calls: List[Tuple[str, Any]] = []

    async def generate_description(self, title: str, content: str) -> str:
        """Mock description generation."""
        self.calls.append(("describe", title))

        return f"""DESCRIPTION:
An article titled "{title}" covering {len(content)} characters of content.

QUESTIONS:
1. What is "{title}" about?
2. What are the key points of "{title}"?"""

    def get_usage_stats(self) -> Dict:
        """Get mock usage statistics."""
        return {
            "total_tokens": len(self.calls) * 100,
            "api_calls": len(self.calls),
            "estimated_cost": 0.0,
            "model": "mock",
        }


def create_llm_provider(llm_config: Dict[str, Any]) -> LLMProvider:
    """Build the configured provider, falling back to the mock without an API key."""
    provider = llm_config.get("provider", "openai")
    if provider == "mock":
        return MockLLMProvider()
    if provider != "openai":
        raise ValueError(f"Unsupported LLM provider: {provider}")

    api_key = llm_config.get("api_key")
    if not api_key:
        logger.warning("No LLM API key configured, using mock provider")
        return MockLLMProvider()

    return OpenAIProvider(
        api_key=api_key,
        model=llm_config.get("model", "gpt-4o-mini"),
        base_url=llm_config.get("base_url"),
        temperature=llm_config.get("temperature", 0.3),
    )
