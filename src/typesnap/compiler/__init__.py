"""typesnap compiler models and the case file parser."""

from typesnap.compiler.ir import (
    CaseDocument,
    CaseSpec,
    CompileResult,
    Diagnostic,
    DiagnosticKind,
    Severity,
)
from typesnap.compiler.parser import CaseParser, parse, parse_file

__all__ = [
    # Models
    "CaseDocument",
    "CaseSpec",
    "CompileResult",
    "Diagnostic",
    "DiagnosticKind",
    "Severity",
    # Parser
    "CaseParser",
    "parse",
    "parse_file",
]
