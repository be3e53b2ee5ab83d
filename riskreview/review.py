"""Review orchestration: static analysis, AI pass, normalization."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

from riskreview import llm
from riskreview.analyzer import analyze_changes, tally_changes
from riskreview.llm import ProgressCallback
from riskreview.llm_parsing import normalize_ai_response
from riskreview.models import ChangedFile, ReviewResult
from riskreview.prompts import REVIEW_SYSTEM, build_review_message

logger = logging.getLogger(__name__)


def review_changes(
    files: Sequence[ChangedFile],
    pr_title: str = "",
    pr_url: str = "",
    ai_enabled: Optional[bool] = None,
    on_progress: ProgressCallback | None = None,
) -> ReviewResult:
    """
    Review a change set: static pass first, then the reasoning service.

    Args:
        files: Changed files with their content at the head revision
        pr_title: Pull request title, used in the prompt
        pr_url: Pull request URL, used in the prompt
        ai_enabled: Force AI on/off; None asks the Bedrock client
        on_progress: Optional callback for streaming progress updates
    """
    local_findings = analyze_changes(files)
    tally = tally_changes(files)

    enabled = llm.is_configured() if ai_enabled is None else ai_enabled

    raw_response: Optional[str] = None
    if enabled:
        prompt = build_review_message(pr_title, pr_url, files, local_findings)
        try:
            raw_response, stop_reason = llm.invoke(
                system_prompt=REVIEW_SYSTEM,
                user_message=prompt,
                tool="review_changes",
                on_progress=on_progress,
            )
            if stop_reason == "max_tokens":
                logger.warning("AI response was truncated; JSON may be incomplete")
        except RuntimeError as e:
            logger.error("AI pass failed, continuing with static findings: %s", e)
            raw_response = ""
    else:
        logger.info("AI review disabled; using fallback summary")

    risks, tests, summary = normalize_ai_response(raw_response, local_findings, enabled)

    return ReviewResult(
        pr_title=pr_title,
        pr_url=pr_url,
        files_changed=tally.files_changed,
        additions=tally.additions,
        deletions=tally.deletions,
        risks=risks,
        suggested_tests=tests,
        summary_markdown=summary,
    )


def render_comment_markdown(result: ReviewResult) -> str:
    """Render a review as a pull-request comment body."""
    risk_lines = []
    for r in result.risks:
        location = f"`{r.file_path}`" + (f":{r.line}" if r.line is not None else "")
        risk_lines.append(
            f"- **{r.severity}** {location}: **{r.title}** ({r.rule_id}): {r.message}"
        )

    test_blocks = [
        f"- **{t.title}**\n  - {t.rationale}\n  ```csharp\n{t.example_code}\n```"
        for t in result.suggested_tests
    ]

    return (
        f"## AI Code Review\n\n{result.summary_markdown}\n\n"
        "### Risks\n"
        + ("\n".join(risk_lines) or "- None")
        + "\n\n### Suggested Tests\n"
        + ("\n\n".join(test_blocks) or "- None")
        + "\n"
    )
