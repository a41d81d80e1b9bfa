"""
Summary Evaluator: LLM judgment of a user's description of inserted code.

After a bulk insertion the user is asked to describe, in their own words, what
the inserted code does. The evaluator sends the code and the description to a
text-generation model and forwards its verdict.

One request per evaluation, bounded by a timeout. No retry and no caching of
the response: callers resubmit on failure.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..common.llm_client import LLMClient
from ..common.llm_utils import parse_llm_json

logger = logging.getLogger("pastewatch.monitor.evaluator")

EVALUATION_POLICY = """You review whether a developer understood a block of code they just pasted or generated.

You receive the CODE and the developer's SUMMARY of what it does.

Judge whether the summary accurately describes the code's behavior:
- Credit a summary that names the main purpose and key side effects, even if brief
- Point out anything important the summary misses (error handling, I/O, security-relevant behavior)
- Point out anything the summary claims that the code does not do

Respond with JSON only: {"matches": true/false, "verdict": "two to four sentences addressed to the developer"}"""

TRUNCATION_MARKER = "\n... [truncated]"

# Provider request ends this much before the async deadline
REQUEST_TIMEOUT_MARGIN_SECONDS = 0.5


class FailureKind(str, Enum):
    """Failure kinds surfaced to callers"""
    NO_CODE = "no_code"
    STALE = "stale"
    EMPTY_SUMMARY = "empty_summary"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"
    EMPTY_RESPONSE = "empty_response"


@dataclass
class EvaluationResult:
    """Outcome of one evaluation request"""
    ok: bool
    verdict: Optional[str] = None
    matches: Optional[bool] = None
    error: Optional[str] = None
    error_kind: Optional[FailureKind] = None
    insertion_id: Optional[str] = None
    raw_response: Optional[str] = None

    @classmethod
    def failure(cls, kind: FailureKind, error: str, insertion_id: Optional[str] = None) -> "EvaluationResult":
        return cls(ok=False, error=error, error_kind=kind, insertion_id=insertion_id)

    @property
    def message(self) -> str:
        """Text to show the user"""
        if self.ok:
            return self.verdict or ""
        return f"Review failed: {self.error}. You can submit your summary again."


class SummaryEvaluator:
    """
    Delegates code-vs-summary judgment to an LLM.

    The verdict text is forwarded as-is when the model does not answer with
    the requested JSON shape.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient],
        timeout_seconds: float = 20.0,
        max_tokens: int = 512,
        max_payload_chars: int = 2_000_000,
    ):
        self._llm = llm_client
        self._timeout = timeout_seconds
        self._max_tokens = max_tokens
        self._max_payload_chars = max_payload_chars

    @property
    def is_available(self) -> bool:
        return self._llm is not None and self._llm.is_available

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    @property
    def request_timeout_seconds(self) -> float:
        """Timeout handed to the provider SDK, inside the evaluate_async() deadline"""
        return max(self._timeout - REQUEST_TIMEOUT_MARGIN_SECONDS, self._timeout / 2)

    def build_prompt(self, code: str, summary: str) -> str:
        if len(code) > self._max_payload_chars:
            code = code[: self._max_payload_chars] + TRUNCATION_MARKER
        return f"CODE:\n```\n{code}\n```\n\nSUMMARY:\n{summary.strip()}"

    def evaluate(self, code: str, summary: str) -> EvaluationResult:
        """
        Evaluate a summary against code (blocking).

        Args:
            code: Inserted code under review
            summary: User's free-text description

        Returns:
            EvaluationResult; ok=False on any failure
        """
        if not self.is_available:
            return EvaluationResult.failure(FailureKind.UNAVAILABLE, "evaluator is not configured")

        try:
            raw = self._llm.generate(
                self.build_prompt(code, summary),
                system=EVALUATION_POLICY,
                max_tokens=self._max_tokens,
                timeout=self.request_timeout_seconds,
            )
        except Exception as e:
            logger.warning("Evaluation request failed: %s", e)
            return EvaluationResult.failure(FailureKind.PROVIDER_ERROR, str(e) or type(e).__name__)

        return self._parse_response(raw)

    async def evaluate_async(self, code: str, summary: str) -> EvaluationResult:
        """
        Run evaluate() off the event loop, bounded by timeout_seconds.

        The worker thread is not cancelled on timeout; the provider call in it
        ends on its own at request_timeout_seconds.
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.evaluate, code, summary),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Evaluation timed out after %.1fs", self._timeout)
            return EvaluationResult.failure(FailureKind.TIMEOUT, f"evaluator timed out after {self._timeout:g}s")

    def _parse_response(self, raw: str) -> EvaluationResult:
        if not raw or not raw.strip():
            return EvaluationResult.failure(FailureKind.EMPTY_RESPONSE, "evaluator returned an empty response")

        data = parse_llm_json(raw)
        verdict = data.get("verdict")
        if not isinstance(verdict, str) or not verdict.strip():
            return EvaluationResult(ok=True, verdict=raw.strip(), raw_response=raw)

        matches = data.get("matches")
        return EvaluationResult(
            ok=True,
            verdict=verdict.strip(),
            matches=matches if isinstance(matches, bool) else None,
            raw_response=raw,
        )
