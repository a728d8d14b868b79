"""
Large Language Model (LLM) adapters used by the fallback intent classifier.
"""

from flightrelay.infrastructure.ai.llm.base_llm import BaseLLM
from flightrelay.infrastructure.ai.llm.ollama_adapter import OllamaAdapter
from flightrelay.infrastructure.ai.llm.openai_adapter import OpenAIAdapter

__all__ = ["BaseLLM", "OllamaAdapter", "OpenAIAdapter"]
