"""Case runner - compiles snippets and orchestrates case execution."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from typesnap.adapters.base import CaseResult, Frontend, ResultStatus
from typesnap.compiler.ir import CaseDocument, CompileResult

if TYPE_CHECKING:
    from typesnap.files import FileProvider
    from typesnap.snapshot import SnapshotStore

logger = logging.getLogger(__name__)

CASE_SUFFIX = ".typecase"


def compile_code(
    source_text: str,
    file_provider: FileProvider,
    frontend: Frontend | None = None,
) -> CompileResult:
    """Compile ``source_text`` against ``file_provider`` and return its diagnostics.

    Args:
        source_text: Python source of the entry module.
        file_provider: Resolves every import the snippet makes.
        frontend: Type checker to use. Defaults to mypy.

    Returns:
        The ordered diagnostics; an empty list means a clean compile.
    """
    if frontend is None:
        from typesnap.adapters.mypy import MypyFrontend

        frontend = MypyFrontend()
    return frontend.compile(source_text, file_provider)


def load_cases(path: Path) -> CaseDocument:
    """Load a case document from a case file or a JSON dump."""
    if path.suffix == ".json":
        with open(path) as f:
            data = json.load(f)
        return CaseDocument.model_validate(data)

    from typesnap.compiler.parser import parse_file

    return parse_file(path)


def discover_cases(paths: list[str]) -> list[Path]:
    """Find case files under the given directories, sorted by path."""
    found: list[Path] = []
    for p in paths:
        root = Path(p)
        if root.is_file():
            found.append(root)
        elif root.is_dir():
            found.extend(sorted(root.rglob(f"*{CASE_SUFFIX}")))
    return found


def run_cases(
    document: CaseDocument,
    frontend: Frontend,
    file_provider: FileProvider,
    snapshots: SnapshotStore | None = None,
) -> list[CaseResult]:
    """Run all cases in a document.

    Args:
        document: The parsed case document.
        frontend: The type checker to compile with.
        file_provider: Shared provider; per-case files go into a fork of it.
        snapshots: Store used for cases without an [out] section.

    Returns:
        List of case results, in document order.
    """
    results: list[CaseResult] = []

    for case in document.cases:
        logger.debug("Running case %r", case.name)
        results.append(frontend.run_case(case, file_provider, snapshots=snapshots))

    return results


def format_results(results: list[CaseResult], verbose: bool = False) -> str:
    """Format case results for display.

    Args:
        results: List of case results.
        verbose: If True, show diagnostics for passing cases too.

    Returns:
        Formatted string for display.
    """
    lines = []
    passed = 0
    failed = 0
    errors = 0

    for result in results:
        status_icon = {
            ResultStatus.PASSED: "✓",  # checkmark
            ResultStatus.FAILED: "✗",  # x mark
            ResultStatus.ERROR: "!",
        }[result.status]

        line = f"  {status_icon} {result.case.name}"

        if result.status == ResultStatus.PASSED:
            passed += 1
            if verbose and result.lines:
                line += _indent(result.lines)
        elif result.status == ResultStatus.FAILED:
            failed += 1
            if result.message:
                line += _indent(result.message.split("\n"))
        else:
            errors += 1
            if result.message:
                line += _indent(result.message.split("\n"))

        lines.append(line)

    total = len(results)
    summary = f"\n{passed} passed, {failed} failed, {errors} errors ({total} total)"

    return "\n".join(lines) + summary


def _indent(text_lines: list[str]) -> str:
    return "\n" + "\n".join(f"      {line}" for line in text_lines)
