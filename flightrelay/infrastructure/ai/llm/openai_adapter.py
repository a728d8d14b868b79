from typing import Any, Dict

import openai
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from flightrelay.infrastructure.ai.llm.base_llm import BaseLLM
from flightrelay.utils.exceptions import ModelAPIError


class OpenAIAdapter(BaseLLM):
    """
    OpenAI implementation of the LLM interface.
    Supports text generation using OpenAI chat models.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the OpenAI adapter with configuration.

        Args:
            config: Dictionary containing model configuration
        """
        super().__init__(config)
        self.api_key = config.get("api_key")

        if not self.api_key:
            raise ValueError("OpenAI API key is required")

        self.client = openai.AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)

        self.logger.info(f"Initialized OpenAI adapter with model: {self.model_name}")

    async def generate(self, prompt: str, **kwargs) -> Dict[str, Any]:
        """
        Generate text using OpenAI models.

        Transient API errors are retried; anything left over is raised as
        ModelAPIError.
        """
        try:
            return await self._generate(prompt, **kwargs)
        except ModelAPIError:
            raise
        except openai.AuthenticationError as e:
            error_message = "Authentication error with OpenAI API. Check API key."
            self.logger.error(error_message)
            raise ModelAPIError(error_message) from e
        except openai.OpenAIError as e:
            error_message = f"OpenAI API error: {str(e)}"
            self.logger.error(error_message)
            raise ModelAPIError(error_message) from e

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        retry=retry_if_exception_type((openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError)),
        reraise=True
    )
    async def _generate(self, prompt: str, **kwargs) -> Dict[str, Any]:
        messages = [{"role": "user", "content": prompt}]
        if "system_prompt" in kwargs:
            messages.insert(0, {"role": "system", "content": kwargs["system_prompt"]})

        self.logger.debug(f"Calling OpenAI API with model: {self.model_name}")
        response = await self.client.chat.completions.create(
            model=kwargs.get("model", self.model_name),
            messages=messages,
            max_tokens=kwargs.get("max_tokens", self.max_tokens),
            temperature=kwargs.get("temperature", self.temperature),
            response_format={"type": "json_object"},
        )

        if not response.choices:
            raise ModelAPIError("OpenAI returned no choices")

        return {
            "text": response.choices[0].message.content or "",
            "finish_reason": response.choices[0].finish_reason,
            "model": response.model,
        }

    async def close(self) -> None:
        await self.client.close()
