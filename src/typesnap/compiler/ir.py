"""Models shared by the frontend, the case parser and the runner.

Diagnostics are plain data: the harness collects them in the order the type
checker emits them and renders them to a stable text form for comparison.
"""

from enum import Enum

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """Severity reported by the type checker."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


class DiagnosticKind(str, Enum):
    """What phase a diagnostic came from."""

    MODULE_RESOLUTION = "module_resolution"  # An import could not be resolved
    CHECKING = "checking"  # Everything else the checker reports


class Diagnostic(BaseModel):
    """A single diagnostic emitted by the type checker."""

    file: str | None = None
    line: int | None = None
    column: int | None = None
    severity: Severity = Severity.ERROR
    message: str
    code: str | None = None
    kind: DiagnosticKind = DiagnosticKind.CHECKING

    def render(self) -> str:
        """Render as ``file:line:column: severity: message  [code]``."""
        location = ""
        if self.file is not None:
            location = self.file
            if self.line is not None:
                location += f":{self.line}"
                if self.column is not None:
                    location += f":{self.column}"
            location += ": "

        text = f"{location}{self.severity.value}: {self.message}"
        if self.code:
            text += f"  [{self.code}]"
        return text


class CompileResult(BaseModel):
    """Everything a single compilation produced."""

    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def notes(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.NOTE]

    @property
    def module_resolution(self) -> list[Diagnostic]:
        return [d for d in self.errors if d.kind == DiagnosticKind.MODULE_RESOLUTION]

    @property
    def checking(self) -> list[Diagnostic]:
        return [d for d in self.errors if d.kind == DiagnosticKind.CHECKING]

    @property
    def is_clean(self) -> bool:
        """True when no errors were reported."""
        return not self.errors

    def lines(self) -> list[str]:
        return [d.render() for d in self.diagnostics]

    def render(self) -> str:
        return "\n".join(self.lines())


class CaseSpec(BaseModel):
    """A single named snippet to compile."""

    name: str
    source: str
    files: dict[str, str] = Field(default_factory=dict)  # Extra synthetic files for this case
    expected: list[str] | None = None  # [out] lines; None means "use the snapshot"


class CaseDocument(BaseModel):
    """Root document for a case file."""

    version: str = "0.1"
    cases: list[CaseSpec] = Field(default_factory=list)
