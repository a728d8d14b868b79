from flightrelay.infrastructure.ai.intent.intent_classifier import LLMIntentClassifier

__all__ = ["LLMIntentClassifier"]
