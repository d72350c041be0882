"""Base frontend interface for typesnap.

A frontend compiles one in-memory snippet against a FileProvider and returns
the diagnostics the type checker produced.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from typesnap.compiler.ir import CaseSpec, CompileResult
from typesnap.diagnostics import ConstructionError, ResolutionError, format_lines_diff

if TYPE_CHECKING:
    from typesnap.files import FileProvider
    from typesnap.snapshot import SnapshotStore

logger = logging.getLogger(__name__)


class ResultStatus(str, Enum):
    """Case result status."""

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"  # Case couldn't compile (harness misconfiguration)


@dataclass
class CaseResult:
    """Result of running a single case."""

    case: CaseSpec
    status: ResultStatus
    message: str | None = None
    result: CompileResult | None = None
    exception: Exception | None = None
    duration_ms: float = 0.0
    lines: list[str] = field(default_factory=list)


class Frontend(ABC):
    """Base class for type-checking frontends."""

    name = "frontend"

    @abstractmethod
    def compile(self, source_text: str, file_provider: FileProvider) -> CompileResult:
        """Compile ``source_text`` as the entry module of an isolated program.

        Every import is resolved through ``file_provider``. Unresolvable
        imports and type errors come back as diagnostics.

        Raises:
            ConstructionError: If a provider file cannot be read.
        """
        ...

    def run_case(
        self,
        case: CaseSpec,
        file_provider: FileProvider,
        snapshots: SnapshotStore | None = None,
    ) -> CaseResult:
        """Compile a case and compare its diagnostics against the expectation."""
        start = time.perf_counter()

        provider = file_provider
        if case.files:
            provider = file_provider.fork()
            for name, contents in case.files.items():
                provider.manually_add_file(name, contents)

        try:
            result = self.compile(case.source, provider)
        except (ConstructionError, ResolutionError) as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.debug("Case %r errored: %s", case.name, e)
            return CaseResult(
                case=case,
                status=ResultStatus.ERROR,
                message=f"{type(e).__name__}: {e}",
                exception=e,
                duration_ms=duration_ms,
            )

        duration_ms = (time.perf_counter() - start) * 1000
        lines = result.lines()

        if case.expected is not None:
            passed = lines == case.expected
            message = None if passed else "Output mismatch:\n" + format_lines_diff(case.expected, lines)
        elif snapshots is not None:
            passed, message = snapshots.check(case.name, lines)
        else:
            passed, message = True, None

        logger.debug("Case %r %s in %.1fms", case.name, "passed" if passed else "failed", duration_ms)
        return CaseResult(
            case=case,
            status=ResultStatus.PASSED if passed else ResultStatus.FAILED,
            message=message,
            result=result,
            duration_ms=duration_ms,
            lines=lines,
        )
