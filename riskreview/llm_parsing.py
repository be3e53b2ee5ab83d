"""LLM response normalization: turn free-text/JSON hybrids into findings and tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional

from riskreview.config import (
    AI_DEFAULT_RULE_ID,
    AI_DEFAULT_SEVERITY,
    AI_DEFAULT_TITLE,
    EMPTY_AI_RESPONSE,
    FALLBACK_NO_RISKS,
    FALLBACK_NOT_CONFIGURED,
    FALLBACK_RISKS_HEADER,
    FALLBACK_SUMMARY_HEADER,
    FALLBACK_TEST_TEMPLATE,
)
from riskreview.models import Finding, Severity, SeverityValue, SuggestedTest

logger = logging.getLogger(__name__)


class NormalizedReview(NamedTuple):
    findings: list[Finding]
    tests: list[SuggestedTest]
    summary: str


class MalformedPayload(ValueError):
    """The extracted JSON does not have the expected shape."""


@dataclass(frozen=True)
class AiPayload:
    """Decoded AI response. ``None`` means the key was absent."""

    risks: Optional[list[Finding]]
    tests: Optional[list[SuggestedTest]]
    summary_markdown: Optional[str]


# ── Fallback Mode ────────────────────────────────────────────────────────────


def _location(finding: Finding) -> str:
    if finding.line is None:
        return f"`{finding.file_path}`"
    return f"`{finding.file_path}`:{finding.line}"


def build_fallback_summary(findings: Sequence[Finding]) -> str:
    """Deterministic Markdown summary built only from local findings."""
    lines = [FALLBACK_SUMMARY_HEADER, FALLBACK_NOT_CONFIGURED]
    if not findings:
        lines.append(FALLBACK_NO_RISKS)
    else:
        lines.append(FALLBACK_RISKS_HEADER)
        for f in findings:
            lines.append(f"  - {f.title} in {_location(f)} ({f.severity})")
    return "\n".join(lines) + "\n"


def synthesize_tests(findings: Sequence[Finding]) -> list[SuggestedTest]:
    """One placeholder test idea per finding."""
    return [
        SuggestedTest(
            title=f"Covers {f.title} ({f.rule_id})",
            rationale=f"Guard against {f.message}",
            example_code=FALLBACK_TEST_TEMPLATE,
        )
        for f in findings
    ]


# ── Payload Decoding ─────────────────────────────────────────────────────────


def extract_json_span(text: str) -> Optional[str]:
    """Slice from the first ``{`` to the last ``}``, or None if there is no such span."""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return text[start : end + 1]


def _as_text(value: Any, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _text_field(record: dict, key: str, default: str) -> str:
    """String value of ``key``; absent or null gives ``default``."""
    return _as_text(record.get(key), default)


def _line_field(record: dict) -> Optional[int]:
    value = record.get("line")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    line = int(value)
    return line if line >= 1 else None


def _coerce_severity(token: str) -> SeverityValue:
    # Unknown tokens pass through untouched.
    try:
        return Severity(token)
    except ValueError:
        return token


def _risk_from_dict(record: Any) -> Finding:
    """Convert a raw risk record to a Finding, filling documented defaults."""
    if not isinstance(record, dict):
        raise MalformedPayload(f"risk entry is {type(record).__name__}, not an object")
    return Finding(
        file_path=_text_field(record, "filePath", ""),
        rule_id=_text_field(record, "ruleId", AI_DEFAULT_RULE_ID),
        title=_text_field(record, "title", AI_DEFAULT_TITLE),
        severity=_coerce_severity(
            _text_field(record, "severity", AI_DEFAULT_SEVERITY)
        ),
        message=_text_field(record, "message", ""),
        line=_line_field(record),
    )


def _test_from_dict(record: Any) -> SuggestedTest:
    if not isinstance(record, dict):
        raise MalformedPayload(f"test entry is {type(record).__name__}, not an object")
    # Older prompts asked for "exampleXunit".
    example = record.get("exampleCode")
    if example is None:
        example = record.get("exampleXunit")
    return SuggestedTest(
        title=_text_field(record, "title", ""),
        rationale=_text_field(record, "rationale", ""),
        example_code=_as_text(example, ""),
    )


def decode_payload(span: str) -> AiPayload:
    """Parse the extracted span into an AiPayload.

    Raises:
        ValueError: If the span is not valid JSON (``json.JSONDecodeError``)
            or does not have the expected shape (``MalformedPayload``)
        RecursionError: If the JSON nests too deeply to decode
    """
    root = json.loads(span)
    if not isinstance(root, dict):
        raise MalformedPayload("payload root is not an object")

    risks = None
    if isinstance(root.get("risks"), list):
        risks = [_risk_from_dict(r) for r in root["risks"]]

    tests = None
    if isinstance(root.get("tests"), list):
        tests = [_test_from_dict(t) for t in root["tests"]]

    summary = None
    if root.get("summaryMarkdown") is not None:
        summary = _text_field(root, "summaryMarkdown", "")

    return AiPayload(risks=risks, tests=tests, summary_markdown=summary)


# ── Normalization ────────────────────────────────────────────────────────────


def normalize_ai_response(
    raw_response: Optional[str],
    local_findings: Sequence[Finding],
    ai_enabled: bool,
) -> NormalizedReview:
    """Turn the reasoning service's raw text into findings, tests and a summary.

    Never raises. Outcomes:
      - ai_enabled False: deterministic summary and tests from local findings
      - structured JSON found: AI risks (or local ones if none), AI tests,
        summaryMarkdown (or the raw text)
      - empty/unparseable response: local findings, no tests, raw text
    """
    local = list(local_findings)

    if not ai_enabled:
        return NormalizedReview(local, synthesize_tests(local), build_fallback_summary(local))

    if raw_response is None or not raw_response.strip():
        logger.warning("Empty AI response; keeping %d local finding(s)", len(local))
        return NormalizedReview(local, [], EMPTY_AI_RESPONSE)

    span = extract_json_span(raw_response)
    if span is None:
        logger.info("AI response contains no JSON object; using it as summary")
        return NormalizedReview(local, [], raw_response)

    try:
        payload = decode_payload(span)
    except (ValueError, RecursionError) as e:
        logger.warning("Failed to parse AI response as JSON: %s", e)
        return NormalizedReview(local, [], raw_response)

    findings = payload.risks if payload.risks else local
    tests = payload.tests or []
    summary = (
        payload.summary_markdown
        if payload.summary_markdown is not None
        else raw_response
    )
    return NormalizedReview(findings, tests, summary)
