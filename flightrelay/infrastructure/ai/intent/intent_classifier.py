import json
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flightrelay.domain.interfaces.classifier_interface import ClassifierResult, FallbackClassifier
from flightrelay.domain.models.intent import IntentType
from flightrelay.infrastructure.ai.llm.base_llm import BaseLLM
from flightrelay.utils.exceptions import ClassifierError, ModelAPIError
from flightrelay.utils.logger import get_logger

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)

PROMPT_TEMPLATE = """CLASSIFY this airport message:

"{message}"

JSON ONLY:
{{"intent":"flight_status","flightCode":"EK509"}}
{{"intent":"departures"}}
{{"intent":"greeting"}}

intents: {intents}"""


class ClassificationPayload(BaseModel):
    """Shape the model is asked to answer with."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    intent: Optional[str] = None
    flight_code: Optional[str] = Field(default=None, alias="flightCode")


class LLMIntentClassifier(FallbackClassifier):
    """
    Classifies free text with an LLM.

    The answer is treated as untrusted: it must contain a single JSON object
    matching `ClassificationPayload`, otherwise ClassifierError is raised.
    Mapping the raw intent onto a known kind is left to the caller.
    """

    def __init__(self, llm: BaseLLM, config: Optional[Dict[str, Any]] = None):
        self.logger = get_logger(__name__)
        self.llm = llm
        self.config = config or {}
        self.intents = self.config.get("intents") or [kind.value for kind in IntentType]

        self.logger.info(f"Initialized LLM intent classifier with {llm.__class__.__name__}")

    def build_prompt(self, text: str) -> str:
        message = (text or "").replace('"', "'")
        return PROMPT_TEMPLATE.format(message=message, intents=",".join(self.intents))

    async def classify(self, text: str) -> ClassifierResult:
        self.logger.debug(f"Classifying intent for text: {(text or '')[:50]}")

        try:
            response = await self.llm.generate(self.build_prompt(text))
        except ModelAPIError as e:
            raise ClassifierError(f"LLM backend failed: {e.message}", details=e.details) from e

        raw_text = response.get("text") if isinstance(response, dict) else None
        payload = self.parse_response(raw_text)
        self.logger.debug(f"LLM classified intent as {payload.intent}")
        return ClassifierResult(intent=payload.intent, flight_code=payload.flight_code)

    def parse_response(self, raw_text: Any) -> ClassificationPayload:
        """
        Extract and validate the JSON object in a model answer.

        Raises:
            ClassifierError: If there is no object or it does not fit the schema
        """
        if not isinstance(raw_text, str):
            raise ClassifierError("LLM returned no text")

        cleaned = _CODE_FENCE.sub("", raw_text).strip()
        json_start = cleaned.find("{")
        json_end = cleaned.rfind("}")
        if json_start == -1 or json_end < json_start:
            self.logger.warning(f"No JSON object in LLM response: {raw_text[:200]}")
            raise ClassifierError("LLM response contained no JSON object")

        try:
            data = json.loads(cleaned[json_start:json_end + 1])
        except json.JSONDecodeError as e:
            self.logger.warning(f"Failed to parse LLM response: {raw_text[:200]}")
            raise ClassifierError(f"LLM response is not valid JSON: {e.msg}") from e

        if not isinstance(data, dict):
            raise ClassifierError("LLM response is not a JSON object")

        try:
            return ClassificationPayload.model_validate(data)
        except ValidationError as e:
            raise ClassifierError(
                "LLM response does not match the expected schema",
                details={"errors": e.errors(include_url=False, include_context=False)}
            ) from e

    async def close(self) -> None:
        await self.llm.close()
