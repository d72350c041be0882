"""typesnap frontends - type checkers that compile snippets against a FileProvider."""

from typesnap.adapters.base import CaseResult, Frontend, ResultStatus
from typesnap.adapters.mypy import MypyFrontend, VirtualFileSystemCache

__all__ = [
    "Frontend",
    "CaseResult",
    "ResultStatus",
    "MypyFrontend",
    "VirtualFileSystemCache",
]
