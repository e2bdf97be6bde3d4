"""Tests for LanguageDetectionService confidence banding and fallbacks."""

from __future__ import annotations

import pytest

from deltanotes.config import settings
from deltanotes.core.services.language_detection_service import (
    DetectedLanguage,
    LanguageDetectionService,
    fallback_language,
)
from tests.conftest import unwrap

ENGLISH_7 = "The weather today is really very pleasant"
ENGLISH_12 = "This is a longer English sentence that should easily be detected by everyone"


@pytest.fixture
def service() -> LanguageDetectionService:
    return LanguageDetectionService()


class TestDetectLanguage:
    """Confidence is banded by word count."""

    async def test_empty_text_is_fallback_with_zero_confidence(self, service: LanguageDetectionService) -> None:
        detected = unwrap(await service.detect_language("   \n "))

        assert detected.language_code == settings.fallback_language_code == "simple"
        assert detected.confidence == 0.0

    async def test_short_text_is_fallback(self, service: LanguageDetectionService) -> None:
        detected = unwrap(await service.detect_language("buy some milk"))

        assert detected.language_code == "simple"
        assert detected.confidence == 0.3

    async def test_medium_text_gets_medium_confidence(self, service: LanguageDetectionService) -> None:
        detected = unwrap(await service.detect_language(ENGLISH_7))

        assert detected.language_code == "en"
        assert detected.confidence == 0.5

    async def test_long_text_gets_high_confidence(self, service: LanguageDetectionService) -> None:
        detected = unwrap(await service.detect_language(ENGLISH_12))

        assert detected.language_code == "en"
        assert detected.confidence == 0.8
        assert detected.is_reliable

    async def test_text_without_features_falls_back(self, service: LanguageDetectionService) -> None:
        detected = unwrap(await service.detect_language("1 2 3 4 5 6 7"))

        assert detected == fallback_language(0.0)

    async def test_detect_languages_keeps_order(self, service: LanguageDetectionService) -> None:
        detected = unwrap(await service.detect_languages(["", "a b", ENGLISH_12]))

        assert [d.confidence for d in detected] == [0.0, 0.3, 0.8]

    def test_initialize_is_idempotent(self, service: LanguageDetectionService) -> None:
        assert service.initialize().is_success
        assert service.initialize().is_success
        assert service.initialized


class TestDetectedLanguage:
    def test_display_name(self) -> None:
        assert DetectedLanguage(language_code="de", confidence=0.8).display_name == "German"
        assert DetectedLanguage(language_code="xx", confidence=0.8).display_name == "Unknown"

    def test_reliability_threshold(self) -> None:
        assert not DetectedLanguage(language_code="en", confidence=0.7).is_reliable
        assert DetectedLanguage(language_code="en", confidence=0.71).is_reliable
