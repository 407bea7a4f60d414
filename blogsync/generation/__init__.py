"""Description generation and embedding."""

from .embedder import Embedder, SentenceTransformerEmbedder
from .llm_provider import LLMProvider, MockLLMProvider, OpenAIProvider, create_llm_provider
from .prompts import DESCRIPTION_PROMPT

__all__ = [
    "LLMProvider",
    "OpenAIProvider",
    "MockLLMProvider",
    "create_llm_provider",
    "Embedder",
    "SentenceTransformerEmbedder",
    "DESCRIPTION_PROMPT",
]
