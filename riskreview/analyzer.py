"""Finding aggregation: lexical plus structural findings per changed file."""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Sequence

from riskreview import lexical, structural
from riskreview.config import SOURCE_EXTENSIONS
from riskreview.models import ChangedFile, ChangeStatus, DiffTally, Finding

logger = logging.getLogger(__name__)


def analyze_file(file_path: str, content: str) -> list[Finding]:
    """Lexical findings followed by structural findings. No sorting, no dedup.

    The same condition may be reported twice on one line (R001 from the regex
    pass and R007 from the syntax tree); both are kept.
    """
    return lexical.scan(file_path, content) + structural.analyze(file_path, content)


def is_analyzable(changed: ChangedFile) -> bool:
    """Check if a changed file should go through the analyzers."""
    return (
        changed.status != ChangeStatus.REMOVED
        and changed.content is not None
        and changed.file_path.lower().endswith(SOURCE_EXTENSIONS)
    )


def analyze_changes(
    files: Sequence[ChangedFile], max_workers: int = 1
) -> list[Finding]:
    """Analyze every eligible file, concatenating findings in input file order.

    Files are independent of each other, so ``max_workers > 1`` fans them out
    to a thread pool; per-file ordering is unaffected.
    """
    targets = [f for f in files if is_analyzable(f)]
    skipped = len(files) - len(targets)
    if skipped:
        logger.debug("Skipping %d file(s) that are removed, empty or not C#", skipped)

    if max_workers > 1 and len(targets) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as pool:
            per_file = list(
                pool.map(lambda f: analyze_file(f.file_path, f.content), targets)
            )
    else:
        per_file = [analyze_file(f.file_path, f.content) for f in targets]

    findings = [finding for file_findings in per_file for finding in file_findings]
    logger.info(
        "Static analysis: %d finding(s) across %d file(s)", len(findings), len(targets)
    )
    return findings


def tally_changes(files: Sequence[ChangedFile]) -> DiffTally:
    """Count files and sum line changes over the whole change set."""
    return DiffTally(
        files_changed=len(files),
        additions=sum(f.additions for f in files),
        deletions=sum(f.deletions for f in files),
    )
