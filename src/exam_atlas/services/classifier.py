"""
Module: services.classifier

Purpose:
    Gemini adapter for classification, OCR and marking. Every public
    coroutine is safe to call from studio and practice code: failures
    (network, quota, malformed output, missing API key) are logged and
    replaced by documented defaults instead of propagating.

Key Classes:
    - Analysis: Structured result of a bulk-enrichment call
    - GeminiClassifier: The adapter

Defaults on failure:
    analyze         topic="Uncategorized", marks=1, lines=4, empty texts
    detect_topic    "Uncategorized" ("General" for an empty reply)
    detect_marks    0
    detect_lines    4
    evaluate_answer "Marking failed." after every retry is exhausted

Dependencies:
    - google-generativeai: GenerativeModel.generate_content_async
    - PIL (via services.attachments)
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import google.generativeai as genai
from google.generativeai.types import GenerationConfig

from exam_atlas.config import AtlasConfig
from exam_atlas.core.models.files import FileRef
from exam_atlas.core.models.staging import DEFAULT_LINES, DEFAULT_TOPIC

from .attachments import load_images
from .prompts import (
    LINES_PROMPT,
    MARKS_PROMPT,
    build_analysis_prompt,
    build_marking_prompt,
    build_topic_prompt,
)

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
FALLBACK_MARKS = 1
MARKING_FAILED = "Marking failed."
EMPTY_MARKING = "Error marking."

_INT_RE = re.compile(r"-?\d+")


class ServiceUnavailableError(RuntimeError):
    """Raised when no model can be built, e.g. GOOGLE_API_KEY is unset."""


@dataclass(frozen=True)
class Analysis:
    """
    Result of one enrichment call.

    Attributes:
        topic: Topic label
        marks: Maximum marks
        lines: Ruled answer lines
        question_text: Question transcription
        scheme_text: Mark scheme transcription
    """
    topic: str = UNCATEGORIZED
    marks: int = FALLBACK_MARKS
    lines: int = DEFAULT_LINES
    question_text: str = ""
    scheme_text: str = ""

    @classmethod
    def fallback(cls) -> Analysis:
        """Low-confidence defaults used when the service fails."""
        return cls()

    @classmethod
    def from_payload(cls, payload: Any) -> Analysis:
        """
        Build from the model's JSON reply, tolerating loose typing.

        Raises:
            ValueError: If the payload is not a JSON object
        """
        if isinstance(payload, list) and payload and isinstance(payload[0], dict):
            payload = payload[0]
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
        return cls(
            topic=_clean_topic(payload.get("topic")) or UNCATEGORIZED,
            marks=_parse_int(payload.get("marks"), FALLBACK_MARKS),
            lines=_parse_int(payload.get("lines"), DEFAULT_LINES),
            question_text=str(payload.get("questionText") or payload.get("question_text") or ""),
            scheme_text=str(payload.get("schemeText") or payload.get("scheme_text") or ""),
        )


def _clean_topic(value: Any) -> str:
    return str(value or "").strip().replace('"', "").replace("'", "")


def _parse_int(value: Any, default: int) -> int:
    """First integer in ``value``; ``default`` when there is none or it is negative."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value >= 0 else default
    match = _INT_RE.search(str(value or ""))
    if not match:
        return default
    number = int(match.group())
    return number if number >= 0 else default


class GeminiClassifier:
    """
    Gemini-backed classification and marking.

    Args:
        config: Application configuration (API key, model, retry delays)
        model: Pre-built model object exposing ``generate_content_async``;
            created lazily from ``config`` when omitted

    Example:
        >>> classifier = GeminiClassifier(load_config())
        >>> analysis = await classifier.analyze(row.images, row.scheme, board="AQA",
        ...                                     subject="PHYSICS", paper="P1")
    """

    def __init__(self, config: AtlasConfig, model: Any = None) -> None:
        self.config = config
        self._model = model

    @property
    def model(self) -> Any:
        if self._model is None:
            if not self.config.api_key:
                raise ServiceUnavailableError("GOOGLE_API_KEY is not set; remote classification is unavailable")
            genai.configure(api_key=self.config.api_key)
            self._model = genai.GenerativeModel(self.config.model_name)
        return self._model

    async def _generate(
        self,
        prompt: str,
        files: Sequence[Optional[FileRef]],
        *,
        json_mode: bool = False,
        temperature: float = 0.1,
    ) -> str:
        images = load_images(files)
        config = GenerationConfig(
            temperature=temperature,
            response_mime_type="application/json" if json_mode else None,
        )
        response = await self.model.generate_content_async(
            [prompt, *images],
            generation_config=config,
        )
        text = (response.text or "").strip()
        if not text:
            raise ValueError("AI model returned an empty response.")
        return text

    # ─────────────────────────────────────────────────────────────────────────
    # Bulk enrichment
    # ─────────────────────────────────────────────────────────────────────────

    async def analyze(
        self,
        images: Sequence[FileRef],
        scheme_image: Optional[FileRef],
        *,
        board: str,
        subject: str,
        paper: str,
        valid_topics: Sequence[str] = (),
    ) -> Analysis:
        """
        Classify and transcribe one question in a single JSON-mode call.

        Never raises; see Analysis.fallback for the failure result.
        """
        prompt = build_analysis_prompt(
            board, subject, paper, valid_topics, has_scheme=scheme_image is not None
        )
        try:
            text = await self._generate(prompt, [*images, scheme_image], json_mode=True)
            return Analysis.from_payload(json.loads(text))
        except Exception as e:
            logger.warning(f"Question analysis failed, using defaults: {e}")
            return Analysis.fallback()

    # ─────────────────────────────────────────────────────────────────────────
    # Single-field detection
    # ─────────────────────────────────────────────────────────────────────────

    async def detect_topic(
        self,
        images: Sequence[FileRef],
        *,
        board: str,
        subject: str,
        valid_topics: Sequence[str] = (),
    ) -> str:
        try:
            text = await self._generate(build_topic_prompt(board, subject, valid_topics), images)
        except ValueError:
            return DEFAULT_TOPIC
        except Exception as e:
            logger.warning(f"Topic detection failed: {e}")
            return UNCATEGORIZED
        return _clean_topic(text) or DEFAULT_TOPIC

    async def detect_marks(self, images: Sequence[FileRef]) -> int:
        try:
            text = await self._generate(MARKS_PROMPT, images)
        except Exception as e:
            logger.warning(f"Marks detection failed: {e}")
            return 0
        return _parse_int(text, 0)

    async def detect_lines(self, images: Sequence[FileRef]) -> int:
        try:
            text = await self._generate(LINES_PROMPT, images)
        except Exception as e:
            logger.warning(f"Lines detection failed: {e}")
            return DEFAULT_LINES
        return _parse_int(text, 0) or DEFAULT_LINES

    # ─────────────────────────────────────────────────────────────────────────
    # Marking
    # ─────────────────────────────────────────────────────────────────────────

    async def evaluate_answer(
        self,
        question_images: Sequence[FileRef],
        scheme_image: Optional[FileRef],
        global_scheme: Optional[FileRef],
        answer: str,
        marks: int,
    ) -> str:
        """
        Mark a learner's answer and return the examiner feedback text.

        Retries with the configured backoff schedule (1, 2, 4, 8, 16 s by
        default); after the last attempt returns "Marking failed.". A missing
        API key is not retried.
        """
        prompt = build_marking_prompt(
            marks,
            answer,
            has_scheme_image=scheme_image is not None,
            has_global_scheme=global_scheme is not None,
        )
        files = [*question_images, scheme_image, global_scheme]
        delays = self.config.marking_retry_delays or (0.0,)
        for attempt, delay in enumerate(delays, 1):
            try:
                return await self._generate(prompt, files, temperature=0.3)
            except ValueError:
                return EMPTY_MARKING
            except ServiceUnavailableError as e:
                logger.warning(f"Marking unavailable: {e}")
                return MARKING_FAILED
            except Exception as e:
                if attempt == len(delays):
                    logger.warning(f"Marking failed after {attempt} attempts: {e}")
                    return MARKING_FAILED
                logger.debug(f"Marking attempt {attempt} failed, retrying in {delay}s: {e}")
                await asyncio.sleep(delay)
        return MARKING_FAILED
