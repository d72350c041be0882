"""typesnap - assert on type-checker diagnostics for in-memory Python snippets."""

from typesnap.compiler.ir import CompileResult, Diagnostic, DiagnosticKind, Severity
from typesnap.diagnostics import ConstructionError, ResolutionError
from typesnap.files import FileProvider

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CompileResult",
    "ConstructionError",
    "Diagnostic",
    "DiagnosticKind",
    "FileProvider",
    "ResolutionError",
    "Severity",
]
