"""Tests for settings and logging setup."""

import json
import logging

import pytest
from pydantic import ValidationError

from flightrelay.config import ClassifierSettings, Settings, TrackingSettings
from flightrelay.main import build_classifier
from flightrelay.infrastructure.ai.intent.intent_classifier import LLMIntentClassifier
from flightrelay.utils.logger import StructuredLogFormatter, correlation_id, set_correlation_id


def test_defaults_need_no_environment():
    settings = Settings()
    assert settings.HOME_AIRPORT == "FCO"
    assert settings.tracking.POLL_INTERVAL_SECONDS == 180
    assert settings.classifier.MODEL == "tinyllama"
    assert settings.aviation.BASE_URL == "http://api.aviationstack.com/v1"


def test_sections_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("TRACKING_POLL_INTERVAL_SECONDS", "60")
    monkeypatch.setenv("AVIATIONSTACK_API_KEY", "k")
    monkeypatch.setenv("CLASSIFIER_BACKEND", "OpenAI")
    settings = Settings()
    assert settings.tracking.POLL_INTERVAL_SECONDS == 60
    assert settings.aviation.API_KEY == "k"
    assert settings.classifier.BACKEND == "openai"


def test_home_airport_is_normalized():
    assert Settings(HOME_AIRPORT=" lhr ").HOME_AIRPORT == "LHR"


@pytest.mark.parametrize("value", ["FIUM", "F1O", ""])
def test_invalid_home_airport_rejected(value):
    with pytest.raises(ValidationError):
        Settings(HOME_AIRPORT=value)


def test_unknown_classifier_backend_rejected():
    with pytest.raises(ValidationError):
        ClassifierSettings(BACKEND="mystery")


def test_non_positive_interval_rejected():
    with pytest.raises(ValidationError):
        TrackingSettings(POLL_INTERVAL_SECONDS=0)


def test_disabled_classifier_is_not_built():
    settings = Settings(classifier=ClassifierSettings(ENABLED=False))
    assert build_classifier(settings) is None


def test_openai_classifier_without_key_is_not_built():
    settings = Settings(classifier=ClassifierSettings(BACKEND="openai", OPENAI_API_KEY=None))
    assert build_classifier(settings) is None


def test_ollama_classifier_is_built_by_default():
    assert isinstance(build_classifier(Settings()), LLMIntentClassifier)


def test_structured_log_includes_correlation_id_and_extra():
    token = correlation_id.set("")
    try:
        set_correlation_id("req-1")
        record = logging.LogRecord("flightrelay.test", logging.INFO, __file__, 1, "checked %s", ("EK509",), None)
        record.flight_code = "EK509"
        payload = json.loads(StructuredLogFormatter(service="flight-relay", environment="test").format(record))
    finally:
        correlation_id.reset(token)

    assert payload["message"] == "checked EK509"
    assert payload["correlation_id"] == "req-1"
    assert payload["flight_code"] == "EK509"
    assert payload["service"] == "flight-relay"
    assert payload["level"] == "INFO"
