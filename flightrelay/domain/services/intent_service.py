"""
Intent resolution for inbound chat messages.

Deterministic rules are evaluated first, in table order, and the first
match wins. The fallback classifier is only consulted when no rule
matches, and any failure there degrades to an UNKNOWN intent.
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Callable, Optional, Pattern, Sequence

from flightrelay.domain.interfaces.classifier_interface import FallbackClassifier
from flightrelay.domain.models.intent import Intent, IntentType
from flightrelay.utils.logger import get_logger

FLIGHT_CODE_PATTERN = re.compile(r"\b([A-Za-z]{2}\d{3,5})\b")
_FLIGHT_CODE_EXACT = re.compile(r"^[A-Z]{2}\d{3,5}$")

# Matched as word prefixes so "arrivals", "departing" and "landings" count
ARRIVAL_KEYWORDS = ("arriv", "inbound", "landing")
DEPARTURE_KEYWORDS = ("depart", "outbound", "takeoff", "take-off", "boarding")
GREETING_TOKENS = ("hi", "hello", "hey", "ciao", "salve", "buongiorno", "buonasera", "hola", "bonjour", "hallo")


def _keyword_pattern(words: Sequence[str]) -> Pattern:
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + r")", re.IGNORECASE)


def _prefix_pattern(words: Sequence[str]) -> Pattern:
    return re.compile(r"^\s*(?:" + "|".join(re.escape(w) for w in words) + r")\b", re.IGNORECASE)


def normalize_flight_code(value: object) -> Optional[str]:
    """
    Strip non-alphanumerics, uppercase, and validate a flight code.

    Returns None if the result is not 2 letters followed by 3-5 digits.
    """
    if not isinstance(value, str):
        return None
    code = re.sub(r"[^A-Za-z0-9]", "", value).upper()
    return code if _FLIGHT_CODE_EXACT.match(code) else None


@dataclass(frozen=True)
class IntentRule:
    """A named predicate that maps matching text onto an intent."""
    name: str
    kind: IntentType
    pattern: Pattern
    extract: Optional[Callable[["re.Match"], str]] = None

    def apply(self, text: str) -> Optional[Intent]:
        match = self.pattern.search(text)
        if not match:
            return None
        flight_code = self.extract(match) if self.extract else None
        return Intent(kind=self.kind, flight_code=flight_code, source=self.name)


DEFAULT_RULES = (
    IntentRule(
        name="flight_code",
        kind=IntentType.FLIGHT_STATUS,
        pattern=FLIGHT_CODE_PATTERN,
        extract=lambda m: m.group(1).upper(),
    ),
    IntentRule(name="arrivals_keyword", kind=IntentType.ARRIVALS, pattern=_keyword_pattern(ARRIVAL_KEYWORDS)),
    IntentRule(name="departures_keyword", kind=IntentType.DEPARTURES, pattern=_keyword_pattern(DEPARTURE_KEYWORDS)),
    IntentRule(name="greeting", kind=IntentType.GREETING, pattern=_prefix_pattern(GREETING_TOKENS)),
)


class IntentResolver:
    """
    Converts raw inbound text into an Intent.

    `resolve` never raises: classifier errors, timeouts and malformed
    classifier output all resolve to an UNKNOWN intent.
    """

    def __init__(
        self,
        fallback_classifier: Optional[FallbackClassifier] = None,
        fallback_timeout: float = 8.0,
        rules: Sequence[IntentRule] = DEFAULT_RULES,
    ):
        """
        Args:
            fallback_classifier: Classifier consulted when no rule matches
            fallback_timeout: Seconds to wait for the fallback classifier
            rules: Ordered rule table; the first matching rule wins
        """
        self.fallback_classifier = fallback_classifier
        self.fallback_timeout = fallback_timeout
        self.rules = tuple(rules)
        self.logger = get_logger(__name__)

    def match_rules(self, text: str) -> Optional[Intent]:
        """Evaluate the deterministic rules only."""
        for rule in self.rules:
            intent = rule.apply(text)
            if intent is not None:
                return intent
        return None

    async def resolve(self, text: str) -> Intent:
        text = text or ""
        try:
            intent = self.match_rules(text)
        except Exception as e:
            self.logger.error(f"Intent rule evaluation failed: {str(e)}", exc_info=True)
            return Intent.unknown()

        if intent is not None:
            self.logger.debug(f"Resolved intent by rule: {intent!r}")
            return intent

        return await self._resolve_with_fallback(text)

    async def _resolve_with_fallback(self, text: str) -> Intent:
        if self.fallback_classifier is None:
            return Intent.unknown()

        try:
            result = await asyncio.wait_for(
                self.fallback_classifier.classify(text),
                timeout=self.fallback_timeout
            )
        except asyncio.TimeoutError:
            self.logger.warning(f"Fallback classifier timed out after {self.fallback_timeout}s")
            return Intent.unknown(source="fallback")
        except Exception as e:
            self.logger.warning(f"Fallback classifier failed: {str(e)}")
            return Intent.unknown(source="fallback")

        try:
            kind = IntentType.coerce(getattr(result, "intent", None))
            if kind is IntentType.FLIGHT_STATUS:
                flight_code = normalize_flight_code(getattr(result, "flight_code", None))
                if flight_code is None:
                    self.logger.info("Fallback classifier returned flight_status without a usable flight code")
                    return Intent.unknown(source="fallback")
                intent = Intent(kind=kind, flight_code=flight_code, source="fallback")
            else:
                intent = Intent(kind=kind, source="fallback")
        except Exception as e:
            self.logger.warning(f"Discarding malformed fallback classification: {str(e)}")
            return Intent.unknown(source="fallback")

        self.logger.info(
            "Resolved intent via fallback classifier",
            extra={"intent": intent.kind.value, "flight_code": intent.flight_code}
        )
        return intent
