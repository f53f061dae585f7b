"""Tests for the complexity classifier."""

from unittest.mock import AsyncMock

import pytest

from relaychat.config.schema import RoutingConfig
from relaychat.errors import EngineNotReady, StructuredOutputError
from relaychat.routing.classifier import ComplexityClassifier, ComplexityScore


@pytest.fixture
def classifier(mock_local):
    return ComplexityClassifier(mock_local, RoutingConfig())


class TestClamp:
    @pytest.mark.parametrize(
        ("score", "expected"),
        [(0, 1.0), (-3, 1.0), (1, 1.0), (3.5, 3.5), (5, 5.0), (42, 5.0)],
    )
    def test_clamp(self, classifier, score, expected):
        assert classifier.clamp(score) == expected


class TestClassify:
    @pytest.mark.asyncio
    async def test_high_score_routes_remote(self, classifier, mock_local):
        mock_local.complete_json.return_value = {
            "score": 4,
            "explanation": "Requires detailed technical knowledge",
        }

        result = await classifier.classify("Explain the CAP theorem with examples")

        assert result.use_remote
        assert result.score == 4
        assert result.explanation == "Requires detailed technical knowledge"

    @pytest.mark.asyncio
    async def test_threshold_is_inclusive(self, classifier, mock_local):
        mock_local.complete_json.return_value = {"score": 3, "explanation": "moderate"}

        result = await classifier.classify("Compare two sorting algorithms")

        assert result.use_remote

    @pytest.mark.asyncio
    async def test_low_score_routes_local(self, classifier, mock_local):
        mock_local.complete_json.return_value = {"score": 2, "explanation": "simple"}

        result = await classifier.classify("hi there")

        assert not result.use_remote
        assert result.score == 2

    @pytest.mark.asyncio
    async def test_out_of_range_score_is_clamped(self, classifier, mock_local):
        mock_local.complete_json.return_value = {"score": 9, "explanation": "very hard"}

        result = await classifier.classify("prove the Riemann hypothesis")

        assert result.score == 5
        assert result.use_remote

    @pytest.mark.asyncio
    async def test_numeric_string_score(self, classifier, mock_local):
        mock_local.complete_json.return_value = {"score": "1", "explanation": "greeting"}

        result = await classifier.classify("hello")

        assert result.score == 1
        assert not result.use_remote

    @pytest.mark.asyncio
    async def test_missing_explanation(self, classifier, mock_local):
        mock_local.complete_json.return_value = {"score": 4}

        result = await classifier.classify("write a compiler")

        assert result.explanation == "Complexity score 4"

    @pytest.mark.asyncio
    async def test_request_parameters(self, classifier, mock_local):
        mock_local.complete_json.return_value = {"score": 2}

        await classifier.classify("What is 2+2?")

        args = mock_local.complete_json.call_args
        messages, schema = args.args
        assert schema is ComplexityScore
        assert args.kwargs == {"temperature": 0.1, "max_tokens": 200}
        assert messages[0].role == "system"
        assert "What is 2+2?" in messages[1].content
        assert "1" in messages[1].content and "5" in messages[1].content


class TestClassifyFallback:
    @pytest.mark.asyncio
    async def test_missing_score(self, classifier, mock_local):
        mock_local.complete_json.return_value = {"explanation": "no score given"}

        result = await classifier.classify("hello")

        assert not result.use_remote
        assert result.score is None
        assert "fallback" in result.explanation

    @pytest.mark.asyncio
    async def test_non_numeric_score(self, classifier, mock_local):
        mock_local.complete_json.return_value = {"score": "very high"}

        result = await classifier.classify("hello")

        assert not result.use_remote
        assert "unparseable" in result.explanation

    @pytest.mark.asyncio
    async def test_nan_score(self, classifier, mock_local):
        mock_local.complete_json.return_value = {"score": float("nan")}

        result = await classifier.classify("hello")

        assert not result.use_remote
        assert result.score is None

    @pytest.mark.asyncio
    async def test_no_json_in_reply(self, classifier, mock_local):
        mock_local.complete_json.side_effect = StructuredOutputError("no JSON")

        result = await classifier.classify("hello")

        assert not result.use_remote
        assert "unparseable" in result.explanation

    @pytest.mark.asyncio
    async def test_call_failure(self, classifier, mock_local):
        mock_local.complete_json.side_effect = RuntimeError("engine crashed")

        result = await classifier.classify("hello")

        assert not result.use_remote
        assert "call failed" in result.explanation


class TestClassifyEngineNotReady:
    @pytest.mark.asyncio
    async def test_not_ready_raises(self, classifier, mock_local):
        mock_local.ready = False

        with pytest.raises(EngineNotReady):
            await classifier.classify("hello")

        mock_local.complete_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_not_ready_during_call_propagates(self, classifier, mock_local):
        mock_local.complete_json = AsyncMock(side_effect=EngineNotReady())

        with pytest.raises(EngineNotReady):
            await classifier.classify("hello")
