"""Data models for the change-set risk reviewer."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import NamedTuple, Optional, Union


class Severity(str, Enum):
    """Severity levels for risk findings."""

    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"

    def __str__(self) -> str:
        return self.value


class ChangeStatus(str, Enum):
    """How a file was touched by the change set."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"

    def __str__(self) -> str:
        return self.value


# AI payloads may carry severities outside the closed set; those stay raw strings.
SeverityValue = Union[Severity, str]


@dataclass(frozen=True)
class Finding:
    """A single detected risk."""

    file_path: str
    rule_id: str
    title: str
    severity: SeverityValue
    message: str
    line: Optional[int] = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["severity"] = str(self.severity)
        return d


@dataclass(frozen=True)
class SuggestedTest:
    """A test idea attached to a review. ``example_code`` is never executed."""

    title: str
    rationale: str
    example_code: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ChangedFile:
    """One file of the change set, as handed over by the hosting provider."""

    file_path: str
    status: ChangeStatus = ChangeStatus.MODIFIED
    additions: int = 0
    deletions: int = 0
    patch: Optional[str] = None
    content: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: dict) -> "ChangedFile":
        """Build a ChangedFile from a tool payload, validating every field."""
        if not isinstance(raw, dict):
            raise ValueError("Each changed file must be a JSON object")

        file_path = raw.get("file_path")
        if not isinstance(file_path, str) or not file_path.strip():
            raise ValueError("Changed file is missing 'file_path'")

        status_raw = raw.get("status") or "modified"
        try:
            status = ChangeStatus(str(status_raw).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unsupported status {status_raw!r} for {file_path}"
            ) from None

        counts = {}
        for key in ("additions", "deletions"):
            value = raw.get(key, 0)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"'{key}' must be a non-negative integer for {file_path}")
            counts[key] = value

        for key in ("patch", "content"):
            if raw.get(key) is not None and not isinstance(raw[key], str):
                raise ValueError(f"'{key}' must be a string for {file_path}")

        content = raw.get("content")
        if status == ChangeStatus.REMOVED:
            content = None

        return cls(
            file_path=file_path,
            status=status,
            additions=counts["additions"],
            deletions=counts["deletions"],
            patch=raw.get("patch"),
            content=content,
        )


def parse_changed_files(files_json: str) -> list[ChangedFile]:
    """Decode a JSON array of changed-file objects."""
    try:
        raw = json.loads(files_json)
    except json.JSONDecodeError as e:
        raise ValueError(f"files must be a valid JSON array: {e}") from e
    if not isinstance(raw, list):
        raise ValueError("files must be a JSON array")
    return [ChangedFile.from_dict(item) for item in raw]


class DiffTally(NamedTuple):
    files_changed: int
    additions: int
    deletions: int


@dataclass
class ReviewResult:
    """Complete result of reviewing one change set."""

    pr_title: str
    pr_url: str
    files_changed: int
    additions: int
    deletions: int
    risks: list[Finding] = field(default_factory=list)
    suggested_tests: list[SuggestedTest] = field(default_factory=list)
    summary_markdown: str = ""

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.risks if r.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for r in self.risks if r.severity == Severity.WARNING)

    @property
    def info_count(self) -> int:
        return sum(1 for r in self.risks if r.severity == Severity.INFO)

    def to_dict(self) -> dict:
        return {
            "pr_title": self.pr_title,
            "pr_url": self.pr_url,
            "files_changed": self.files_changed,
            "additions": self.additions,
            "deletions": self.deletions,
            "stats": {
                "errors": self.error_count,
                "warnings": self.warning_count,
                "info": self.info_count,
                "total": len(self.risks),
            },
            "risks": [r.to_dict() for r in self.risks],
            "suggested_tests": [t.to_dict() for t in self.suggested_tests],
            "summary_markdown": self.summary_markdown,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
