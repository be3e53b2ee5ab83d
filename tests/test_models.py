"""Tests for data models and tool-input decoding."""

from __future__ import annotations

import dataclasses
import json

import pytest

from riskreview.mcp_tools import rules_catalog
from riskreview.models import (
    ChangedFile,
    ChangeStatus,
    Finding,
    Severity,
    parse_changed_files,
)
from riskreview.prompts import build_review_message


class TestChangedFile:
    def test_from_dict(self):
        f = ChangedFile.from_dict(
            {
                "file_path": "src/A.cs",
                "status": "Added",
                "additions": 4,
                "deletions": 0,
                "patch": "@@",
                "content": "class A {}",
            }
        )
        assert f == ChangedFile("src/A.cs", ChangeStatus.ADDED, 4, 0, "@@", "class A {}")

    def test_defaults(self):
        f = ChangedFile.from_dict({"file_path": "a.cs"})
        assert f.status == ChangeStatus.MODIFIED
        assert (f.additions, f.deletions, f.patch, f.content) == (0, 0, None, None)

    def test_removed_file_drops_content(self):
        f = ChangedFile.from_dict({"file_path": "a.cs", "status": "removed", "content": "x"})
        assert f.content is None

    @pytest.mark.parametrize(
        "raw",
        [
            {},
            {"file_path": "  "},
            {"file_path": "a.cs", "status": "copied"},
            {"file_path": "a.cs", "additions": -1},
            {"file_path": "a.cs", "deletions": "3"},
            {"file_path": "a.cs", "additions": True},
            {"file_path": "a.cs", "content": 12},
            ["not", "a", "dict"],
        ],
    )
    def test_invalid_entries(self, raw):
        with pytest.raises(ValueError):
            ChangedFile.from_dict(raw)

    def test_parse_changed_files(self):
        files = parse_changed_files(json.dumps([{"file_path": "a.cs"}, {"file_path": "b.md"}]))
        assert [f.file_path for f in files] == ["a.cs", "b.md"]

    @pytest.mark.parametrize("payload", ["{", '{"file_path": "a.cs"}', "42"])
    def test_parse_changed_files_rejects_non_arrays(self, payload):
        with pytest.raises(ValueError):
            parse_changed_files(payload)


def test_finding_is_immutable():
    f = Finding("a.cs", "R001", "t", Severity.WARNING, "m", 1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        f.line = 2  # type: ignore[misc]
    assert f.to_dict() == {
        "file_path": "a.cs",
        "rule_id": "R001",
        "title": "t",
        "severity": "Warning",
        "message": "m",
        "line": 1,
    }


def test_severity_tokens():
    assert [str(s) for s in Severity] == ["Info", "Warning", "Error"]


def test_rules_catalog_order():
    catalog = rules_catalog()
    assert [r["rule_id"] for r in catalog] == ["R001", "R002", "R003", "R004", "R007", "R005", "R006"]
    assert {r["kind"] for r in catalog[4:]} == {"structural"}
    assert all(r["description"] for r in catalog[4:])


class TestPrompt:
    def test_lists_changes_and_findings(self):
        files = [ChangedFile("src/A.cs", ChangeStatus.RENAMED, 2, 1)]
        findings = [Finding("src/A.cs", "R003", "Clock", Severity.INFO, "Inject it.", 9)]
        prompt = build_review_message("Fix clock", "https://example/pr/7", files, findings)

        assert "PR: Fix clock" in prompt
        assert "URL: https://example/pr/7" in prompt
        assert "- `src/A.cs` (renamed) +2/-1" in prompt
        assert "- [Info] `src/A.cs`:9 **Clock (R003)**: Inject it." in prompt
        assert "summaryMarkdown" in prompt

    def test_no_findings(self):
        prompt = build_review_message("t", "u", [], [])
        assert "- No obvious risks found by heuristics." in prompt
