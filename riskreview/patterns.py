"""Rule catalogue: lexical patterns and structural rule metadata."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from riskreview.models import Severity


@dataclass(frozen=True)
class LexicalRule:
    """A pattern matched directly against raw source text."""

    rule_id: str
    title: str
    message: str
    severity: Severity
    pattern: str
    compiled: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "compiled", re.compile(self.pattern))


# A structural check yields (line, message) pairs for one parsed tree.
StructuralCheck = Callable[[object], Iterator[tuple[int, str]]]


@dataclass(frozen=True)
class StructuralRule:
    """A predicate evaluated over a parsed syntax tree."""

    rule_id: str
    title: str
    severity: Severity
    check: StructuralCheck = field(repr=False, compare=False)


# ── Lexical Rules ────────────────────────────────────────────────────────────
# Applied in this order; findings keep catalogue-then-match order.
LEXICAL_RULES: tuple[LexicalRule, ...] = (
    LexicalRule(
        rule_id="R001",
        title="async void usage",
        message="Avoid async void except for event handlers; prefer Task-returning methods.",
        severity=Severity.WARNING,
        pattern=r"async\s+void\s+\w+\s*\(",
    ),
    LexicalRule(
        rule_id="R002",
        title="Thread.Sleep in code",
        message="Avoid blocking threads. Use await Task.Delay or asynchronous alternatives.",
        severity=Severity.WARNING,
        pattern=r"Thread\.Sleep\s*\(",
    ),
    LexicalRule(
        rule_id="R003",
        title="Non-injectable time source",
        message="Use an injectable clock/time provider for deterministic tests.",
        severity=Severity.INFO,
        pattern=r"DateTime\.(?:Now|UtcNow)",
    ),
    LexicalRule(
        rule_id="R004",
        title="HttpClient lifecycle",
        message="Use IHttpClientFactory to avoid socket exhaustion.",
        severity=Severity.INFO,
        pattern=r"new\s+HttpClient\s*\(",
    ),
)
