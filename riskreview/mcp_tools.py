"""MCP tool definitions for the change-set risk reviewer."""

from __future__ import annotations

import asyncio
import json
import logging
import traceback

from fastmcp import Context, FastMCP

from riskreview.analyzer import analyze_file as _analyze_file
from riskreview.models import parse_changed_files
from riskreview.patterns import LEXICAL_RULES
from riskreview.review import render_comment_markdown, review_changes as _review_changes
from riskreview.structural import STRUCTURAL_RULES

logger = logging.getLogger(__name__)


def _error_response(tool_name: str, error: Exception) -> str:
    """Build a structured JSON error response for MCP tool failures."""
    logger.error("Tool %s failed: %s\n%s", tool_name, error, traceback.format_exc())
    return json.dumps(
        {
            "summary_markdown": f"Tool '{tool_name}' failed: {error}",
            "risks": [],
            "suggested_tests": [],
            "error": str(error),
        },
        indent=2,
    )


def _make_progress_bridge(ctx: Context, loop: asyncio.AbstractEventLoop):
    """Create a sync callback that forwards streaming progress as MCP log notifications."""

    def on_progress(chars_so_far: int, elapsed: float, message: str) -> None:
        try:
            future = asyncio.run_coroutine_threadsafe(
                ctx.log(
                    message=f"[review] {message}",
                    level="info",
                    logger_name="riskreview.llm",
                ),
                loop,
            )
            future.result(timeout=2.0)
        except Exception as e:
            logger.warning("Log notification failed: %s", e)

    return on_progress


def rules_catalog() -> list[dict]:
    """Describe every rule, lexical first, in application order."""
    catalog = [
        {
            "rule_id": r.rule_id,
            "kind": "lexical",
            "title": r.title,
            "severity": str(r.severity),
            "pattern": r.pattern,
            "message": r.message,
        }
        for r in LEXICAL_RULES
    ]
    catalog.extend(
        {
            "rule_id": r.rule_id,
            "kind": "structural",
            "title": r.title,
            "severity": str(r.severity),
            "description": (r.check.__doc__ or "").strip(),
        }
        for r in STRUCTURAL_RULES
    )
    return catalog


def register_tools(mcp: FastMCP) -> None:
    """Register all review tools on the given FastMCP server instance."""

    @mcp.tool()
    async def review_changes(
        files: str,
        ctx: Context,
        pr_title: str = "",
        pr_url: str = "",
        include_comment: bool = False,
    ) -> str:
        """Review a change set and report risk findings plus suggested tests.

        Args:
            files: JSON array of changed files, each with file_path, status
                   (added|modified|removed|renamed), additions, deletions and
                   optional patch and content (file text at the head revision)
            pr_title: Optional pull request title for context
            pr_url: Optional pull request URL for context
            include_comment: Also return the rendered PR-comment Markdown
        """
        try:
            changed = parse_changed_files(files)

            loop = asyncio.get_running_loop()
            on_progress = _make_progress_bridge(ctx, loop)

            result = await asyncio.to_thread(
                _review_changes,
                changed,
                pr_title=pr_title,
                pr_url=pr_url,
                on_progress=on_progress,
            )
            payload = result.to_dict()
            if include_comment:
                payload["comment_markdown"] = render_comment_markdown(result)
            return json.dumps(payload, indent=2)
        except Exception as e:
            return _error_response("review_changes", e)

    @mcp.tool()
    def analyze_file(file_path: str, content: str) -> str:
        """Run the lexical and structural rules over a single C# file.

        Args:
            file_path: Path of the file, reported back on every finding
            content: Full file text
        """
        try:
            findings = _analyze_file(file_path, content)
            return json.dumps({"findings": [f.to_dict() for f in findings]}, indent=2)
        except Exception as e:
            return _error_response("analyze_file", e)

    @mcp.tool()
    def list_rules() -> str:
        """List every rule the static pass applies, in application order."""
        return json.dumps(rules_catalog(), indent=2)
