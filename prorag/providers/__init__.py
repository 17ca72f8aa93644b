"""
LLM and Embedding Providers

Provider-agnostic interfaces for LLM and embedding operations.

Modules:
    base: Abstract provider interfaces
    llm/: LLM provider implementations
    embedding/: Embedding provider implementations

Supported Providers:
    - OpenAI chat models via LangChain (ChatOpenAI)
    - OpenAI embeddings via LangChain (OpenAIEmbeddings)

Example:
    >>> from prorag.providers import LLMProvider, EmbeddingProvider
    >>> from prorag.providers.llm import OpenAILLMProvider
    >>> from prorag.providers.embedding import OpenAIEmbeddingProvider
"""

from prorag.providers.base import EmbeddingProvider, LLMProvider

__all__ = ["LLMProvider", "EmbeddingProvider", "create_llm_provider", "create_embedding_provider"]

_PLANNED_LLM_PROVIDERS = ("anthropic", "google", "local")
_PLANNED_EMBEDDING_PROVIDERS = ("voyage", "local")


def create_llm_provider(config) -> LLMProvider:
    """Build the LLM provider named by ``config.llm_provider``."""
    if config.llm_provider == "openai":
        from prorag.providers.llm.openai import OpenAILLMProvider

        return OpenAILLMProvider(api_key=config.openai_api_key, model=config.llm_model)
    if config.llm_provider in _PLANNED_LLM_PROVIDERS:
        raise NotImplementedError(f"LLM provider '{config.llm_provider}' is not implemented yet")
    raise ValueError(f"Unknown LLM provider: {config.llm_provider}")


def create_embedding_provider(config) -> EmbeddingProvider:
    """Build the embedding provider named by ``config.embedding_provider``."""
    if config.embedding_provider == "openai":
        from prorag.providers.embedding.openai import OpenAIEmbeddingProvider

        return OpenAIEmbeddingProvider(
            api_key=config.openai_api_key, model=config.embedding_model
        )
    if config.embedding_provider in _PLANNED_EMBEDDING_PROVIDERS:
        raise NotImplementedError(
            f"Embedding provider '{config.embedding_provider}' is not implemented yet"
        )
    raise ValueError(f"Unknown embedding provider: {config.embedding_provider}")
