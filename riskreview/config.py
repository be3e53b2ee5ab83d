"""Configuration for the change-set risk reviewer."""

from __future__ import annotations

import os

# ── Source Files ─────────────────────────────────────────────────────────────
# Only files with these extensions go through lexical/structural analysis.
SOURCE_EXTENSIONS = (".cs",)

# ── Structural Checks ────────────────────────────────────────────────────────
# A call inside a catch block whose callee text contains one of these
# (case-insensitive) counts as logging the exception.
LOGGING_CALL_MARKERS = ("log", "logger")

# Member names that block on a Task inside an async method.
BLOCKING_TASK_MEMBERS = frozenset({"Result", "Wait"})

# ── Fallback Texts ───────────────────────────────────────────────────────────
FALLBACK_SUMMARY_HEADER = "### Summary (fallback)"
FALLBACK_NOT_CONFIGURED = (
    "- Reasoning service API key not configured; showing static analysis results only."
)
FALLBACK_NO_RISKS = "- No major risks detected by heuristics."
FALLBACK_RISKS_HEADER = "- Risks detected:"
EMPTY_AI_RESPONSE = "Empty AI response."

FALLBACK_TEST_TEMPLATE = """[Fact]
public async Task Should_Handle_Risk_Scenario()
{
    // Arrange

    // Act

    // Assert
}"""

# ── AI Payload Defaults ──────────────────────────────────────────────────────
AI_DEFAULT_RULE_ID = "AI"
AI_DEFAULT_TITLE = "Risk"
AI_DEFAULT_SEVERITY = "Info"

# ── Server Config ────────────────────────────────────────────────────────────
SERVER_NAME = "risk-reviewer-mcp"
SERVER_VERSION = "0.1.0"
SERVER_HOST = "127.0.0.1"
SERVER_PORT = 8089

# ── Bedrock Config ───────────────────────────────────────────────────────────
BEDROCK_PROFILE = os.environ.get("RISKREVIEW_BEDROCK_PROFILE", "bedrock")
BEDROCK_REGION = os.environ.get("RISKREVIEW_BEDROCK_REGION", "eu-west-1")
BEDROCK_MODEL_ID = os.environ.get(
    "RISKREVIEW_BEDROCK_MODEL_ID", "eu.anthropic.claude-sonnet-4-6"
)
BEDROCK_MAX_TOKENS = 4096
BEDROCK_TEMPERATURE = 0.2

# ── Usage Logging ────────────────────────────────────────────────────────────
USAGE_LOG_PATH = "usage.log"
