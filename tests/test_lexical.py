"""Tests for the regex-based lexical scanner."""

from __future__ import annotations

from riskreview.lexical import line_of_offset, scan
from riskreview.models import Severity
from riskreview.patterns import LEXICAL_RULES, LexicalRule


def test_line_of_offset():
    text = "a\nbb\nccc"
    assert line_of_offset(text, 0) == 1
    assert line_of_offset(text, 2) == 2
    assert line_of_offset(text, len(text) - 1) == 3


def test_catalog_ids_are_stable():
    assert [r.rule_id for r in LEXICAL_RULES] == ["R001", "R002", "R003", "R004"]


def test_each_rule_fires_with_expected_severity():
    content = "\n".join(
        [
            "public async void OnClick(object s) { }",
            "Thread.Sleep(500);",
            "var t = DateTime.UtcNow;",
            "var c = new HttpClient();",
        ]
    )
    findings = scan("App.cs", content)
    assert [(f.rule_id, f.line, f.severity) for f in findings] == [
        ("R001", 1, Severity.WARNING),
        ("R002", 2, Severity.WARNING),
        ("R003", 3, Severity.INFO),
        ("R004", 4, Severity.INFO),
    ]
    assert all(f.file_path == "App.cs" for f in findings)
    assert findings[0].title == "async void usage"


def test_catalog_order_then_match_order():
    content = "var a = DateTime.Now;\nThread.Sleep(1);\nvar b = DateTime.Now;\n"
    findings = scan("A.cs", content)
    assert [(f.rule_id, f.line) for f in findings] == [
        ("R002", 2),
        ("R003", 1),
        ("R003", 3),
    ]


def test_repeated_matches_on_one_line_are_not_deduplicated():
    findings = scan("A.cs", "var x = (DateTime.Now, DateTime.UtcNow);")
    assert [(f.rule_id, f.line) for f in findings] == [("R003", 1), ("R003", 1)]


def test_no_match_and_empty_content():
    assert scan("A.cs", "") == []
    assert scan("A.cs", "public Task RunAsync() => Task.CompletedTask;") == []


def test_scans_text_that_is_not_valid_code():
    findings = scan("notes.cs", "}}} Thread.Sleep ( {{{")
    assert [f.rule_id for f in findings] == ["R002"]


def test_custom_rules():
    rule = LexicalRule(
        rule_id="X1",
        title="Goto",
        message="Avoid goto.",
        severity=Severity.ERROR,
        pattern=r"\bgoto\b",
    )
    findings = scan("A.cs", "x\ngoto end;", rules=[rule])
    assert len(findings) == 1
    assert findings[0].rule_id == "X1"
    assert findings[0].line == 2
    assert findings[0].severity == Severity.ERROR
