"""
Unit Tests for the Gemini Adapter

The Gemini model is replaced by a mock exposing generate_content_async.
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from exam_atlas.config import AtlasConfig
from exam_atlas.core.models.files import FileRef
from exam_atlas.services.classifier import (
    EMPTY_MARKING,
    MARKING_FAILED,
    Analysis,
    GeminiClassifier,
)

FAST = AtlasConfig(marking_retry_delays=(0.0, 0.0, 0.0))


def model_returning(*texts):
    model = MagicMock()
    model.generate_content_async = AsyncMock(side_effect=[SimpleNamespace(text=t) for t in texts])
    return model


def model_raising(error=RuntimeError("quota exceeded")):
    model = MagicMock()
    model.generate_content_async = AsyncMock(side_effect=error)
    return model


class TestAnalysisPayload:
    """Tests for Analysis.from_payload."""

    def test_from_payload_when_complete_then_fields_mapped(self):
        analysis = Analysis.from_payload({
            "topic": "Energy", "marks": 3, "lines": 6,
            "questionText": "Calculate...", "schemeText": "1 mark for...",
        })
        assert analysis == Analysis("Energy", 3, 6, "Calculate...", "1 mark for...")

    def test_from_payload_when_loosely_typed_then_coerced(self):
        analysis = Analysis.from_payload({"topic": '"Waves"', "marks": "[4 marks]", "lines": None})
        assert (analysis.topic, analysis.marks, analysis.lines) == ("Waves", 4, 4)

    def test_from_payload_when_list_wrapped_then_first_object_used(self):
        assert Analysis.from_payload([{"topic": "Forces", "marks": 2}]).topic == "Forces"

    def test_from_payload_when_not_object_then_raises(self):
        with pytest.raises(ValueError):
            Analysis.from_payload("Energy")


class TestAnalyze:
    """Tests for GeminiClassifier.analyze."""

    @pytest.mark.asyncio
    async def test_analyze_when_json_reply_then_parsed(self, png_file):
        reply = json.dumps({"topic": "Energy", "marks": 3, "lines": 5, "questionText": "Q", "schemeText": "S"})
        model = model_returning(reply)
        classifier = GeminiClassifier(FAST, model=model)

        analysis = await classifier.analyze(
            [png_file], FileRef("m1.png"), board="AQA", subject="PHYSICS", paper="P1",
            valid_topics=["Energy", "Waves"],
        )

        assert analysis == Analysis("Energy", 3, 5, "Q", "S")
        contents = model.generate_content_async.await_args.args[0]
        assert '- "Energy"' in contents[0]
        assert len(contents) == 2
        assert isinstance(contents[1], Image.Image)
        config = model.generate_content_async.await_args.kwargs["generation_config"]
        assert config.response_mime_type == "application/json"

    @pytest.mark.asyncio
    async def test_analyze_when_service_fails_then_defaults(self):
        classifier = GeminiClassifier(FAST, model=model_raising())
        analysis = await classifier.analyze([], None, board="AQA", subject="PHYSICS", paper="P1")
        assert analysis == Analysis("Uncategorized", 1, 4, "", "")

    @pytest.mark.asyncio
    async def test_analyze_when_reply_not_json_then_defaults(self):
        classifier = GeminiClassifier(FAST, model=model_returning("Energy, 3 marks"))
        analysis = await classifier.analyze([], None, board="AQA", subject="PHYSICS", paper="P1")
        assert analysis == Analysis.fallback()

    @pytest.mark.asyncio
    async def test_analyze_when_no_api_key_then_defaults(self):
        classifier = GeminiClassifier(AtlasConfig(api_key=None))
        analysis = await classifier.analyze([], None, board="AQA", subject="PHYSICS", paper="P1")
        assert analysis == Analysis.fallback()


class TestDetection:
    """Tests for the single-field detectors."""

    @pytest.mark.asyncio
    async def test_detect_topic_when_quoted_then_stripped(self):
        classifier = GeminiClassifier(FAST, model=model_returning(' "Electricity" \n'))
        assert await classifier.detect_topic([], board="AQA", subject="PHYSICS") == "Electricity"

    @pytest.mark.asyncio
    async def test_detect_topic_when_empty_reply_then_general(self):
        classifier = GeminiClassifier(FAST, model=model_returning("  "))
        assert await classifier.detect_topic([], board="AQA", subject="PHYSICS") == "General"

    @pytest.mark.asyncio
    async def test_detect_topic_when_failure_then_uncategorized(self):
        classifier = GeminiClassifier(FAST, model=model_raising())
        assert await classifier.detect_topic([], board="AQA", subject="PHYSICS") == "Uncategorized"

    @pytest.mark.asyncio
    async def test_detect_marks_when_integer_in_text_then_parsed(self):
        classifier = GeminiClassifier(FAST, model=model_returning("3"))
        assert await classifier.detect_marks([]) == 3

    @pytest.mark.asyncio
    async def test_detect_marks_when_failure_then_zero(self):
        classifier = GeminiClassifier(FAST, model=model_raising())
        assert await classifier.detect_marks([]) == 0

    @pytest.mark.asyncio
    async def test_detect_marks_when_no_integer_then_zero(self):
        classifier = GeminiClassifier(FAST, model=model_returning("unknown"))
        assert await classifier.detect_marks([]) == 0

    @pytest.mark.asyncio
    async def test_detect_lines_when_failure_then_four(self):
        classifier = GeminiClassifier(FAST, model=model_raising())
        assert await classifier.detect_lines([]) == 4

    @pytest.mark.asyncio
    async def test_detect_lines_when_counted_then_returned(self):
        classifier = GeminiClassifier(FAST, model=model_returning("7"))
        assert await classifier.detect_lines([]) == 7


class TestEvaluateAnswer:
    """Tests for evaluate_answer retries."""

    @pytest.mark.asyncio
    async def test_evaluate_when_success_then_feedback_returned(self):
        model = model_returning("2/3. Good.")
        classifier = GeminiClassifier(FAST, model=model)
        feedback = await classifier.evaluate_answer([], FileRef("m1.png"), None, "Energy is conserved", 3)
        assert feedback == "2/3. Good."
        prompt = model.generate_content_async.await_args.args[0][0]
        assert "Max Marks: 3" in prompt
        assert "Use Mark Scheme Image." in prompt
        assert "Global Guidance" not in prompt

    @pytest.mark.asyncio
    async def test_evaluate_when_transient_failure_then_retried(self):
        model = MagicMock()
        model.generate_content_async = AsyncMock(
            side_effect=[RuntimeError("503"), SimpleNamespace(text="1/2")]
        )
        classifier = GeminiClassifier(FAST, model=model)
        assert await classifier.evaluate_answer([], None, None, "answer", 2) == "1/2"
        assert model.generate_content_async.await_count == 2

    @pytest.mark.asyncio
    async def test_evaluate_when_every_attempt_fails_then_marking_failed(self):
        model = model_raising()
        classifier = GeminiClassifier(FAST, model=model)
        assert await classifier.evaluate_answer([], None, None, "answer", 2) == MARKING_FAILED
        assert model.generate_content_async.await_count == 3

    @pytest.mark.asyncio
    async def test_evaluate_when_empty_reply_then_error_text(self):
        classifier = GeminiClassifier(FAST, model=model_returning(""))
        assert await classifier.evaluate_answer([], None, None, "answer", 2) == EMPTY_MARKING

    @pytest.mark.asyncio
    async def test_evaluate_when_default_schedule_then_backoff_delays(self, monkeypatch):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr("exam_atlas.services.classifier.asyncio.sleep", fake_sleep)
        classifier = GeminiClassifier(AtlasConfig(), model=model_raising())
        assert await classifier.evaluate_answer([], None, None, "answer", 2) == MARKING_FAILED
        assert sleeps == [1.0, 2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    async def test_evaluate_when_no_api_key_then_fails_without_retrying(self, monkeypatch):
        sleep = AsyncMock()
        monkeypatch.setattr("exam_atlas.services.classifier.asyncio.sleep", sleep)
        classifier = GeminiClassifier(AtlasConfig(api_key=None))
        assert await classifier.evaluate_answer([], None, None, "answer", 2) == MARKING_FAILED
        sleep.assert_not_awaited()
