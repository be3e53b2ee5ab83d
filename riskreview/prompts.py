"""System prompt and user message builder for the review call."""

from __future__ import annotations

from collections.abc import Sequence

from riskreview.models import ChangedFile, Finding


# ── review_changes ───────────────────────────────────────────────────────────

REVIEW_SYSTEM = "You are a precise senior .NET code reviewer."

_OUTPUT_FORMAT = """## Output format
Return a JSON object with:
  risks: [{filePath, ruleId, title, severity, message, line?}],
  tests: [{title, rationale, exampleCode}],
  summaryMarkdown: string
severity is one of Info, Warning, Error."""

_GUIDANCE = """## Additional guidance
- Prefer precise, actionable tests tied to changed methods and edge cases.
- If risks are missing, infer likely ones from context (e.g., null/arg validation, DI usage)."""


def build_review_message(
    pr_title: str,
    pr_url: str,
    files: Sequence[ChangedFile],
    findings: Sequence[Finding],
) -> str:
    """Build the user message for review_changes."""
    parts = [
        "You are a senior .NET code reviewer.",
        "Task: Summarize risky changes in this PR and propose concrete unit test cases (xUnit).",
        "Respond in concise Markdown. Use bullet points. Include file paths where relevant.",
        "",
        f"PR: {pr_title}",
        f"URL: {pr_url}",
        "",
        "## Changes",
    ]
    for f in files:
        parts.append(f"- `{f.file_path}` ({f.status}) +{f.additions}/-{f.deletions}")
    parts.append("")

    parts.append("## Detected Risks (static analysis)")
    if not findings:
        parts.append("- No obvious risks found by heuristics.")
    for r in findings:
        location = f"`{r.file_path}`" + (f":{r.line}" if r.line is not None else "")
        parts.append(
            f"- [{r.severity}] {location} **{r.title} ({r.rule_id})**: {r.message}"
        )
    parts.append("")

    parts.append(_OUTPUT_FORMAT)
    parts.append("")
    parts.append(_GUIDANCE)
    return "\n".join(parts) + "\n"
