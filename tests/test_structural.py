"""Tests for the tree-sitter structural checks."""

from __future__ import annotations

import textwrap

from riskreview.models import Severity
from riskreview.structural import Parsed, Unparseable, analyze, parse_source


def cs(source: str) -> str:
    return textwrap.dedent(source).lstrip("\n")


def rule_ids(findings) -> list[str]:
    return [f.rule_id for f in findings]


ASYNC_VOID = cs(
    """
    using System.Threading.Tasks;

    public class Handler
    {
        public async void Handle(int x)
        {
            await Task.Delay(x);
        }

        public async Task HandleAsync(int x)
        {
            await Task.Delay(x);
        }
    }
    """
)


class TestParseSource:
    def test_valid_source_is_parsed(self):
        result = parse_source(ASYNC_VOID)
        assert isinstance(result, Parsed)
        assert result.root.type == "compilation_unit"

    def test_garbage_is_unparseable(self):
        result = parse_source("public class {{{ this is :: not c#")
        assert isinstance(result, Unparseable)
        assert result.reason


class TestAsyncVoid:
    def test_async_void_method_is_confirmed(self):
        findings = analyze("src/Handler.cs", ASYNC_VOID)
        assert rule_ids(findings) == ["R007"]
        f = findings[0]
        assert f.line == 5
        assert f.severity == Severity.WARNING
        assert f.file_path == "src/Handler.cs"
        assert "Handle" in f.message

    def test_sync_void_method_is_ignored(self):
        source = cs(
            """
            public class Handler
            {
                public void Handle(int x)
                {
                }
            }
            """
        )
        assert analyze("Handler.cs", source) == []


class TestSwallowedException:
    @staticmethod
    def wrap(catch_body: str) -> str:
        return cs(
            """
            using System;

            public class Worker
            {
                public void Run()
                {
                    try
                    {
                        DoWork();
                    }
                    catch (Exception e)
                    {
                        %s
                    }
                }
            }
            """
        ) % catch_body

    def test_empty_catch_is_flagged_once(self):
        findings = analyze("Worker.cs", self.wrap(""))
        assert rule_ids(findings) == ["R005"]
        assert findings[0].title == "Swallowed exception"
        assert findings[0].line == 11
        assert "Exception" in findings[0].message

    def test_rethrow_is_compliant(self):
        assert analyze("Worker.cs", self.wrap("throw;")) == []

    def test_logger_call_is_compliant(self):
        assert analyze("Worker.cs", self.wrap("logger.LogError(e);")) == []

    def test_nested_logging_call_is_compliant(self):
        body = "if (e != null) { _log.Warn(e.Message); }"
        assert analyze("Worker.cs", self.wrap(body)) == []

    def test_non_logging_call_is_flagged(self):
        findings = analyze("Worker.cs", self.wrap("Console.WriteLine(e);"))
        assert rule_ids(findings) == ["R005"]

    def test_throw_inside_branch_is_not_a_rethrow(self):
        # Only statements directly in the catch block count as rethrowing.
        findings = analyze("Worker.cs", self.wrap("if (e == null) { throw; }"))
        assert rule_ids(findings) == ["R005"]

    def test_catch_without_declaration(self):
        source = cs(
            """
            public class Worker
            {
                public void Run()
                {
                    try { DoWork(); } catch { }
                }
            }
            """
        )
        findings = analyze("Worker.cs", source)
        assert rule_ids(findings) == ["R005"]
        assert findings[0].line == 5


class TestSyncOverAsync:
    def test_one_finding_per_method(self):
        source = cs(
            """
            using System.Threading.Tasks;

            public class Client
            {
                public async Task<int> LoadAsync()
                {
                    var x = FooAsync().Result;
                    var y = BarAsync().Result;
                    BazAsync().Wait();
                    return x + y;
                }
            }
            """
        )
        findings = analyze("Client.cs", source)
        assert rule_ids(findings) == ["R006"]
        assert findings[0].line == 5
        assert findings[0].title == "Sync over async"
        assert "LoadAsync" in findings[0].message

    def test_blocking_in_sync_method_is_ignored(self):
        source = cs(
            """
            public class Client
            {
                public int Load()
                {
                    return FooAsync().Result;
                }
            }
            """
        )
        assert analyze("Client.cs", source) == []

    def test_each_async_method_reported_separately(self):
        source = cs(
            """
            using System.Threading.Tasks;

            public class Client
            {
                public async Task A()
                {
                    FooAsync().Wait();
                }

                public async Task B()
                {
                    var r = FooAsync().Result;
                }
            }
            """
        )
        findings = analyze("Client.cs", source)
        assert [(f.rule_id, f.line) for f in findings] == [("R006", 5), ("R006", 10)]

    def test_nested_local_function_is_charged_to_itself(self):
        source = cs(
            """
            using System.Threading.Tasks;

            public class Client
            {
                public async Task Outer()
                {
                    async Task Inner()
                    {
                        var r = FooAsync().Result;
                    }
                    await Inner();
                }
            }
            """
        )
        findings = analyze("Client.cs", source)
        assert [(f.rule_id, f.line) for f in findings] == [("R006", 7)]
        assert "Inner" in findings[0].message


class TestCatalogOrder:
    def test_rules_run_in_catalog_order_not_line_order(self):
        source = cs(
            """
            using System;
            using System.Threading.Tasks;

            public class Mixed
            {
                public async Task Load()
                {
                    try { var r = FooAsync().Result; } catch (Exception) { }
                }

                public async void Fire()
                {
                    await Task.Yield();
                }
            }
            """
        )
        findings = analyze("Mixed.cs", source)
        assert [(f.rule_id, f.line) for f in findings] == [
            ("R007", 11),
            ("R005", 8),
            ("R006", 6),
        ]


class TestUnparseable:
    def test_broken_source_yields_no_structural_findings(self):
        source = "class Broken { async void M( { try { } catch { "
        assert analyze("Broken.cs", source) == []

    def test_empty_source(self):
        assert analyze("Empty.cs", "") == []
