"""
Tests for the typed analysis stages and the stage registry.

Each stage is exercised with a scripted completion client: successful
parsing, the guarded fallback, and the unguarded execute path.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from inbox_insights.email_processing.analyzers import (
    ClassificationRequest,
    ClassifyStage,
    EvaluateStage,
    EvaluationRequest,
    ImproveStage,
    ImprovementRequest,
    SummarizeStage,
    SummaryRequest,
    build_email_stage_registry,
)
from inbox_insights.email_processing.base import StageName, StageRegistry
from inbox_insights.email_processing.models import (
    ERROR_TEXT,
    Priority,
    error_classification,
    error_summary,
)
from inbox_insights.errors import ParseError, StageError

MODEL = "test-model"


class TestClassifyStage:
    @pytest.mark.asyncio
    async def test_parses_fenced_response(self, scripted_client, sample_message):
        client = scripted_client(
            '```json\n{"priority": "urgent", "reasoning": "deadline", "confidence": 0.9}\n```'
        )
        stage = ClassifyStage(client, MODEL)

        result = await stage.run(ClassificationRequest.from_message(sample_message))

        assert result.priority == Priority.URGENT
        assert result.confidence == 0.9
        assert client.calls[0]["temperature"] == 0.2
        assert client.calls[0]["model"] == MODEL
        assert "Invoice due" in client.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_provider_error_gives_half_confidence_default(self, scripted_client, sample_message):
        stage = ClassifyStage(scripted_client(ConnectionError("network down")), MODEL)

        result = await stage.run(ClassificationRequest.from_message(sample_message))

        assert result.priority == Priority.NORMAL
        assert result.reasoning == ERROR_TEXT
        assert result.confidence == 0.5

    @pytest.mark.asyncio
    async def test_out_of_range_confidence_falls_back(self, scripted_client, sample_message):
        client = scripted_client({"priority": "Urgent", "reasoning": "x", "confidence": 7})
        result = await ClassifyStage(client, MODEL).run(ClassificationRequest.from_message(sample_message))
        assert result == error_classification(0.5)

    @pytest.mark.asyncio
    async def test_execute_propagates_parse_error(self, scripted_client, sample_message):
        stage = ClassifyStage(scripted_client("I cannot answer that"), MODEL)
        with pytest.raises(ParseError):
            await stage.execute(ClassificationRequest.from_message(sample_message))

    @pytest.mark.asyncio
    async def test_execute_propagates_validation_error(self, scripted_client, sample_message):
        stage = ClassifyStage(scripted_client({"priority": "Critical", "confidence": 0.5}), MODEL)
        with pytest.raises(ValidationError):
            await stage.execute(ClassificationRequest.from_message(sample_message))

    @pytest.mark.asyncio
    async def test_injected_logger_receives_failure(self, scripted_client, sample_message):
        logger = MagicMock()
        stage = ClassifyStage(scripted_client(RuntimeError("boom")), MODEL, logger=logger)

        await stage.run(ClassificationRequest.from_message(sample_message))

        logger.error.assert_called_once()
        assert "boom" in logger.error.call_args[0][0]


class TestSummarizeStage:
    @pytest.mark.asyncio
    async def test_parses_camel_case_fields(self, scripted_client, sample_message):
        client = scripted_client({
            "keyPoints": ["invoice due"],
            "actionItems": ["pay by Friday"],
            "confidence": 0.9,
        })
        result = await SummarizeStage(client, MODEL).run(SummaryRequest.from_message(sample_message))

        assert result.key_points == ["invoice due"]
        assert result.action_items == ["pay by Friday"]
        assert result.suggested_response is None

    @pytest.mark.asyncio
    async def test_failure_default(self, scripted_client, sample_message):
        result = await SummarizeStage(scripted_client("not json"), MODEL).run(
            SummaryRequest.from_message(sample_message)
        )
        assert result == error_summary(0.5)


class TestReviewStages:
    @pytest.mark.asyncio
    async def test_evaluate_failure_accepts_initial_analysis(self, scripted_client):
        stage = EvaluateStage(scripted_client(TimeoutError()), MODEL)
        request = EvaluationRequest(
            subject="S",
            content="C",
            classification=error_classification(0.9),
            summary=error_summary(0.9),
        )

        result = await stage.run(request)

        assert result.is_accurate is True
        assert result.improvement_needed is False

    @pytest.mark.asyncio
    async def test_improve_parses_nested_analysis(self, scripted_client):
        client = scripted_client({
            "classification": {"priority": "Important", "reasoning": "better", "confidence": 0.95},
            "summary": {"keyPoints": ["k"], "actionItems": ["a"], "confidence": 0.95},
        })
        result = await ImproveStage(client, MODEL).run(
            ImprovementRequest(subject="S", content="C", previous_analysis={"id": "1"}, improvements=["x"])
        )

        assert result.classification.priority == Priority.IMPORTANT
        assert result.summary.key_points == ["k"]
        assert client.calls[0]["max_tokens"] == 2048

    @pytest.mark.asyncio
    async def test_improve_failure_default(self, scripted_client):
        result = await ImproveStage(scripted_client("{}"), MODEL).run(
            ImprovementRequest(subject="S", content="C", previous_analysis={})
        )
        assert result.classification == error_classification(0.5)
        assert result.summary == error_summary(0.5)


class TestStageRegistry:
    def test_default_registry_binds_email_stages(self, scripted_client):
        registry = build_email_stage_registry(scripted_client(), MODEL)

        assert set(registry.names()) == {
            StageName.CLASSIFY, StageName.SUMMARIZE, StageName.EVALUATE, StageName.IMPROVE
        }
        assert isinstance(registry.get(StageName.CLASSIFY), ClassifyStage)

    def test_missing_stage_raises_stage_error(self):
        with pytest.raises(StageError) as exc_info:
            StageRegistry().get(StageName.PORTFOLIO)
        assert exc_info.value.stage == "portfolio"

    def test_register_rejects_object_without_run(self):
        with pytest.raises(ValueError):
            StageRegistry().register(StageName.CLASSIFY, object())

    def test_register_replaces_existing_binding(self):
        registry = StageRegistry()
        first, second = MagicMock(run=AsyncMock()), MagicMock(run=AsyncMock())
        registry.register(StageName.CLASSIFY, first)
        registry.register(StageName.CLASSIFY, second)

        assert registry.get(StageName.CLASSIFY) is second
        assert StageName.CLASSIFY in registry
