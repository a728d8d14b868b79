from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ClassifierResult:
    """Raw best-guess output of a fallback classifier, not yet trusted."""
    intent: Optional[str] = None
    flight_code: Optional[str] = None


class FallbackClassifier(ABC):
    """
    Best-effort natural-language intent guesser.

    Consulted only when the deterministic rules do not match. Any failure,
    including output that does not fit the expected shape, is raised as
    ClassifierError.
    """

    @abstractmethod
    async def classify(self, text: str) -> ClassifierResult:
        """
        Guess the intent of free text.

        Raises:
            ClassifierError: If the backend fails or returns malformed output
        """
        pass

    async def close(self) -> None:
        return None
