"""Lexical scanner: apply regex rules to raw file text."""

from __future__ import annotations

from collections.abc import Sequence

from riskreview.models import Finding
from riskreview.patterns import LEXICAL_RULES, LexicalRule


def line_of_offset(content: str, offset: int) -> int:
    """1-based line number of a character offset."""
    return content.count("\n", 0, offset) + 1


def scan(
    file_path: str,
    content: str,
    rules: Sequence[LexicalRule] = LEXICAL_RULES,
) -> list[Finding]:
    """Run every lexical rule over ``content``, whether or not it parses."""
    findings: list[Finding] = []

    for rule in rules:
        for match in rule.compiled.finditer(content):
            findings.append(
                Finding(
                    file_path=file_path,
                    rule_id=rule.rule_id,
                    title=rule.title,
                    severity=rule.severity,
                    message=rule.message,
                    line=line_of_offset(content, match.start()),
                )
            )

    return findings
