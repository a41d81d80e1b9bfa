"""
Tests for SummaryEvaluator

The LLM is mocked; checks cover prompt building, response parsing and the
single-request failure contract.
"""

import json
import time
import pytest
from unittest.mock import Mock


@pytest.fixture
def mock_llm():
    llm = Mock()
    llm.is_available = True
    llm.generate.return_value = json.dumps({
        "matches": False,
        "verdict": "The summary misses the retry loop.",
    })
    return llm


@pytest.fixture
def evaluator(mock_llm):
    from pastewatch.monitor.evaluator import SummaryEvaluator
    return SummaryEvaluator(mock_llm, timeout_seconds=3, max_payload_chars=100)


class TestEvaluationResult:
    def test_failure_message_offers_resubmission(self):
        from pastewatch.monitor.evaluator import EvaluationResult, FailureKind

        result = EvaluationResult.failure(FailureKind.TIMEOUT, "evaluator timed out after 20s")
        assert result.ok is False
        assert result.message.startswith("Review failed: evaluator timed out")
        assert "again" in result.message

    def test_success_message_is_verdict(self):
        from pastewatch.monitor.evaluator import EvaluationResult

        assert EvaluationResult(ok=True, verdict="Good").message == "Good"


class TestEvaluate:
    def test_structured_verdict(self, evaluator, mock_llm):
        result = evaluator.evaluate("def f(): pass", "Defines f")

        assert result.ok is True
        assert result.matches is False
        assert result.verdict == "The summary misses the retry loop."
        from pastewatch.monitor.evaluator import EVALUATION_POLICY

        kwargs = mock_llm.generate.call_args.kwargs
        assert kwargs["timeout"] == 2.5
        assert kwargs["system"] == EVALUATION_POLICY

    def test_request_timeout_ends_before_deadline(self, mock_llm):
        from pastewatch.monitor.evaluator import SummaryEvaluator

        assert SummaryEvaluator(mock_llm, timeout_seconds=20).request_timeout_seconds == 19.5
        assert SummaryEvaluator(mock_llm, timeout_seconds=0.4).request_timeout_seconds == 0.2

    def test_plain_text_verdict_forwarded(self, evaluator, mock_llm):
        mock_llm.generate.return_value = "Your summary is accurate."
        result = evaluator.evaluate("code", "summary")

        assert result.ok is True
        assert result.verdict == "Your summary is accurate."
        assert result.matches is None

    def test_empty_response_fails(self, evaluator, mock_llm):
        from pastewatch.monitor.evaluator import FailureKind

        mock_llm.generate.return_value = "  "
        result = evaluator.evaluate("code", "summary")

        assert result.ok is False
        assert result.error_kind is FailureKind.EMPTY_RESPONSE

    def test_exception_is_single_failure_no_retry(self, evaluator, mock_llm):
        from pastewatch.monitor.evaluator import FailureKind

        mock_llm.generate.side_effect = TimeoutError("read timed out")
        result = evaluator.evaluate("code", "summary")

        assert result.ok is False
        assert result.error_kind is FailureKind.PROVIDER_ERROR
        assert mock_llm.generate.call_count == 1

    def test_unavailable_client(self):
        from pastewatch.monitor.evaluator import SummaryEvaluator, FailureKind

        llm = Mock()
        llm.is_available = False
        result = SummaryEvaluator(llm).evaluate("code", "summary")

        assert result.error_kind is FailureKind.UNAVAILABLE
        llm.generate.assert_not_called()

    def test_no_client(self):
        from pastewatch.monitor.evaluator import SummaryEvaluator

        evaluator = SummaryEvaluator(None)
        assert evaluator.is_available is False
        assert evaluator.evaluate("code", "summary").ok is False


class TestBuildPrompt:
    def test_includes_code_and_summary(self, evaluator):
        prompt = evaluator.build_prompt("print(1)", "  Prints one  ")
        assert "print(1)" in prompt
        assert prompt.endswith("Prints one")

    def test_caps_forwarded_payload(self, evaluator):
        from pastewatch.monitor.evaluator import TRUNCATION_MARKER

        prompt = evaluator.build_prompt("y" * 500, "s")
        assert "y" * 100 in prompt
        assert "y" * 101 not in prompt
        assert TRUNCATION_MARKER in prompt


class TestEvaluateAsync:
    @pytest.mark.asyncio
    async def test_runs_request(self, evaluator, mock_llm):
        result = await evaluator.evaluate_async("code", "summary")
        assert result.ok is True
        mock_llm.generate.assert_called_once()

    @pytest.mark.asyncio
    async def test_timeout_bounded(self, mock_llm):
        from pastewatch.monitor.evaluator import SummaryEvaluator, FailureKind

        mock_llm.generate.side_effect = lambda *a, **kw: time.sleep(0.5) or "late"
        evaluator = SummaryEvaluator(mock_llm, timeout_seconds=0.05)

        result = await evaluator.evaluate_async("code", "summary")

        assert result.ok is False
        assert result.error_kind is FailureKind.TIMEOUT
