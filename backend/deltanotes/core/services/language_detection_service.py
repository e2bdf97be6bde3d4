from __future__ import annotations

import asyncio
import re

from langdetect import DetectorFactory, LangDetectException, detect
from langdetect.detector_factory import init_factory

from deltanotes.config import settings
from deltanotes.core.failures import UnknownFailure
from deltanotes.core.models.base import AppBaseModel
from deltanotes.core.result import Failure, Result, Success
from deltanotes.utils.logging import get_logger

logger = get_logger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

MIN_WORDS_FOR_DETECTION = 5
MIN_WORDS_FOR_HIGH_CONFIDENCE = 10

_DISPLAY_NAMES = {
    "de": "German",
    "en": "English",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "nl": "Dutch",
    "sv": "Swedish",
    "no": "Norwegian",
    "da": "Danish",
    "fi": "Finnish",
}


class DetectedLanguage(AppBaseModel):
    """Detected language with a confidence score in [0, 1]."""

    language_code: str
    confidence: float

    @property
    def is_reliable(self) -> bool:
        return self.confidence > 0.7

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES.get(self.language_code, "Unknown")


def fallback_language(confidence: float = 0.0) -> DetectedLanguage:
    return DetectedLanguage(language_code=settings.fallback_language_code, confidence=confidence)


class LanguageDetectionService:
    """Detect the language of note text with ``langdetect``.

    ``langdetect`` gives no usable probability for short inputs, so confidence
    is banded by word count. Text too short to classify, and any detector
    error, resolve to the fallback code instead of a failure.
    """

    def __init__(self) -> None:
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> Result[None]:
        """Load language profiles once; later calls are no-ops."""
        if self._initialized:
            return Success(None)
        try:
            logger.info("Initializing language detection")
            DetectorFactory.seed = settings.language_detection_seed
            init_factory()
        except Exception as err:
            logger.error("Error initializing language detection", exc_info=err)
            return Failure(
                UnknownFailure(message=f"Failed to initialize language detection: {err}", exception=err)
            )
        self._initialized = True
        return Success(None)

    async def detect_language(self, text: str) -> Result[DetectedLanguage]:
        init_result = self.initialize()
        if init_result.is_failure:
            return init_result

        stripped = text.strip()
        if not stripped:
            logger.debug("Empty text provided for language detection")
            return Success(fallback_language(0.0))

        word_count = len(_WHITESPACE_RE.split(stripped))
        if word_count < MIN_WORDS_FOR_DETECTION:
            logger.debug("Text too short for reliable language detection: %d words", word_count)
            return Success(fallback_language(0.3))

        try:
            code = await asyncio.to_thread(detect, stripped)
        except LangDetectException as err:
            logger.warning("Language detection failed, using fallback: %s", err)
            return Success(fallback_language(0.0))

        confidence = 0.8 if word_count >= MIN_WORDS_FOR_HIGH_CONFIDENCE else 0.5
        logger.info("Detected language: %s (confidence: %s)", code, confidence)
        return Success(DetectedLanguage(language_code=code, confidence=confidence))

    async def detect_languages(self, texts: list[str]) -> Result[list[DetectedLanguage]]:
        """Detect each text in order; individual failures become the fallback."""
        detected: list[DetectedLanguage] = []
        for text in texts:
            result = await self.detect_language(text)
            detected.append(result.data if result.is_success else fallback_language(0.0))
        return Success(detected)
