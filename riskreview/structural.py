"""Structural analysis: tree-sitter checks over C# syntax trees."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Optional, Union

import tree_sitter_c_sharp as ts_c_sharp
from tree_sitter import Language, Node, Parser, Tree

from riskreview.config import BLOCKING_TASK_MEMBERS, LOGGING_CALL_MARKERS
from riskreview.models import Finding, Severity
from riskreview.patterns import StructuralRule

logger = logging.getLogger(__name__)

C_SHARP = Language(ts_c_sharp.language())

# Top-level methods parse as local functions, so both count as methods.
METHOD_NODE_TYPES = frozenset({"method_declaration", "local_function_statement"})


# ── Parsing ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Parsed:
    """A syntax tree free of parse errors."""

    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node


@dataclass(frozen=True)
class Unparseable:
    """Source that could not be turned into a clean syntax tree."""

    reason: str


ParseResult = Union[Parsed, Unparseable]


def parse_source(content: str) -> ParseResult:
    """Parse C# source. Syntax errors yield ``Unparseable``, never an exception."""
    try:
        # Parser instances are not shared between threads.
        tree = Parser(C_SHARP).parse(content.encode("utf-8"))
    except (TypeError, ValueError) as e:
        return Unparseable(f"parser rejected input: {e}")

    if tree.root_node.has_error:
        return Unparseable("source contains syntax errors")
    return Parsed(tree)


# ── Tree Helpers ─────────────────────────────────────────────────────────────


def _walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal in document order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def _text(node: Optional[Node]) -> str:
    if node is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _is_async(method: Node) -> bool:
    return any(
        child.type in ("modifier", "async") and _text(child) == "async"
        for child in method.children
    )


def _return_type(method: Node) -> Optional[Node]:
    # Method declarations label it "returns", local functions "type".
    return method.child_by_field_name("returns") or method.child_by_field_name(
        "type"
    )


def _method_name(method: Node) -> str:
    return _text(method.child_by_field_name("name")) or "<anonymous>"


def _async_methods(root: Node) -> Iterator[Node]:
    for node in _walk(root):
        if node.type in METHOD_NODE_TYPES and _is_async(node):
            yield node


def _catch_body(catch: Node) -> Optional[Node]:
    body = catch.child_by_field_name("body")
    if body is not None:
        return body
    for child in reversed(catch.named_children):
        if child.type == "block":
            return child
    return None


def _caught_type(catch: Node) -> str:
    for child in catch.named_children:
        if child.type == "catch_declaration":
            return _text(child.child_by_field_name("type")) or "Exception"
    return "Exception"


def _rethrows(block: Node) -> bool:
    return any(stmt.type == "throw_statement" for stmt in block.named_children)


def _logs(block: Node) -> bool:
    for node in _walk(block):
        if node.type != "invocation_expression":
            continue
        callee = _text(node.child_by_field_name("function")).lower()
        if any(marker in callee for marker in LOGGING_CALL_MARKERS):
            return True
    return False


def _method_scope(method: Node) -> Iterator[Node]:
    """Nodes of ``method`` without descending into nested methods."""
    stack = list(reversed(method.children))
    while stack:
        current = stack.pop()
        if current.type in METHOD_NODE_TYPES:
            continue
        yield current
        stack.extend(reversed(current.children))


def _blocks_on_task(method: Node) -> bool:
    # Each blocking access belongs to its innermost enclosing method.
    return any(
        node.type == "member_access_expression"
        and _text(node.child_by_field_name("name")) in BLOCKING_TASK_MEMBERS
        for node in _method_scope(method)
    )


# ── Checks ───────────────────────────────────────────────────────────────────


def check_async_void(root: Node) -> Iterator[tuple[int, str]]:
    """Async methods whose declared return type is literally ``void``."""
    for method in _async_methods(root):
        if _text(_return_type(method)) == "void":
            yield _line(method), f"Method '{_method_name(method)}' is async void."


def check_swallowed_exceptions(root: Node) -> Iterator[tuple[int, str]]:
    """Catch clauses that neither rethrow nor call anything log-like."""
    for node in _walk(root):
        if node.type != "catch_clause":
            continue
        body = _catch_body(node)
        if body is None or _rethrows(body) or _logs(body):
            continue
        yield (
            _line(node),
            f"Catches {_caught_type(node)} without rethrowing or logging.",
        )


def check_sync_over_async(root: Node) -> Iterator[tuple[int, str]]:
    """One hit per async method touching ``.Result`` or ``.Wait``."""
    for method in _async_methods(root):
        if _blocks_on_task(method):
            yield (
                _line(method),
                f"Method '{_method_name(method)}' blocks on async calls (.Result/.Wait).",
            )


STRUCTURAL_RULES: tuple[StructuralRule, ...] = (
    StructuralRule("R007", "async void usage", Severity.WARNING, check_async_void),
    StructuralRule(
        "R005", "Swallowed exception", Severity.WARNING, check_swallowed_exceptions
    ),
    StructuralRule("R006", "Sync over async", Severity.WARNING, check_sync_over_async),
)


# ── Entry Point ──────────────────────────────────────────────────────────────


def analyze(
    file_path: str,
    content: str,
    rules: Sequence[StructuralRule] = STRUCTURAL_RULES,
) -> list[Finding]:
    """Run structural rules in catalogue order; unparseable files yield nothing."""
    parsed = parse_source(content)
    if isinstance(parsed, Unparseable):
        logger.debug("Skipping structural checks for %s: %s", file_path, parsed.reason)
        return []

    findings: list[Finding] = []
    for rule in rules:
        for line, message in rule.check(parsed.root):
            findings.append(
                Finding(
                    file_path=file_path,
                    rule_id=rule.rule_id,
                    title=rule.title,
                    severity=rule.severity,
                    message=message,
                    line=line,
                )
            )
    return findings
