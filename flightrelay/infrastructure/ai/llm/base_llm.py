from abc import ABC, abstractmethod
from typing import Any, Dict

from flightrelay.utils.logger import get_logger


class BaseLLM(ABC):
    """
    Abstract base class for Large Language Model implementations.
    Defines the interface for all LLM adapters.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the LLM with configuration.

        Args:
            config: Dictionary containing model configuration
        """
        self.logger = get_logger(__name__)
        self.config = config
        self.model_name = config.get("model_name", "default")
        self.max_tokens = config.get("max_tokens", 256)
        self.temperature = config.get("temperature", 0.1)
        self.timeout = config.get("timeout", 8.0)

    @abstractmethod
    async def generate(self, prompt: str, **kwargs) -> Dict[str, Any]:
        """
        Generate text from a prompt.

        Args:
            prompt: Input text to generate from
            **kwargs: Additional generation parameters

        Returns:
            Dictionary containing the generated "text" and metadata

        Raises:
            ModelAPIError: If the backend fails
        """
        pass

    def get_model_details(self) -> Dict[str, Any]:
        """Return model specifications."""
        return {
            "provider": self.__class__.__name__,
            "model": self.model_name,
            "temperature": self.temperature,
        }

    async def close(self) -> None:
        return None
