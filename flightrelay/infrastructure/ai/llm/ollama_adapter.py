from typing import Any, Dict, Optional

import httpx

from flightrelay.infrastructure.ai.llm.base_llm import BaseLLM
from flightrelay.utils.exceptions import ModelAPIError


class OllamaAdapter(BaseLLM):
    """
    Local Ollama implementation of the LLM interface.

    Uses the non-streaming `/api/generate` endpoint with JSON output mode.
    """

    def __init__(self, config: Dict[str, Any], http_client: Optional[httpx.AsyncClient] = None):
        super().__init__(config)
        self.base_url = config.get("base_url", "http://localhost:11434").rstrip("/")
        self.client = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)

        self.logger.info(f"Initialized Ollama adapter with model: {self.model_name}")

    async def generate(self, prompt: str, **kwargs) -> Dict[str, Any]:
        payload = {
            "model": kwargs.get("model", self.model_name),
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {"temperature": kwargs.get("temperature", self.temperature)},
        }

        try:
            response = await self.client.post("/api/generate", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            error_message = f"Ollama returned HTTP {e.response.status_code}"
            self.logger.error(error_message)
            raise ModelAPIError(error_message, details={"status_code": e.response.status_code}) from e
        except (httpx.HTTPError, ValueError) as e:
            error_message = f"Ollama request failed: {str(e)}"
            self.logger.error(error_message)
            raise ModelAPIError(error_message) from e

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise ModelAPIError("Ollama response has no text")

        return {
            "text": text,
            "model": data.get("model", payload["model"]),
            "done": data.get("done", True),
        }

    async def close(self) -> None:
        await self.client.aclose()
