"""Diagnostics and error reporting for typesnap.

Harness faults (a bad search directory, a name nobody registered) are raised
as exceptions carrying a record of what was searched. Type-checker output is
never raised; see ``typesnap.compiler.ir`` for that.
"""

import difflib
from dataclasses import dataclass, field
from typing import Iterable


@dataclass
class SearchAttempt:
    """Record of a single search attempt during resolution."""

    location: str  # What was searched (directory, index, etc.)
    found: bool
    reason: str | None = None  # Why it failed (if not found)


@dataclass
class DiagnosticContext:
    """Accumulated context during a resolution attempt."""

    target: str
    searches: list[SearchAttempt] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def add_search(self, location: str, found: bool, reason: str | None = None) -> None:
        """Record a search attempt."""
        self.searches.append(SearchAttempt(location, found, reason))

    def add_suggestion(self, suggestion: str) -> None:
        """Add a suggested fix."""
        self.suggestions.append(suggestion)

    def format_error(self, summary: str) -> str:
        """Format a detailed error message.

        Args:
            summary: The main error message.

        Returns:
            Formatted error with search history and suggestions.
        """
        lines = [summary, ""]

        if self.searches:
            lines.append("Searched:")
            for attempt in self.searches:
                icon = "✓" if attempt.found else "✗"
                line = f"  {icon} {attempt.location}"
                if attempt.reason:
                    line += f" ({attempt.reason})"
                lines.append(line)
            lines.append("")

        if self.suggestions:
            lines.append("Suggestions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"  {i}. {suggestion}")

        return "\n".join(lines).rstrip()


class ResolutionError(Exception):
    """Raised when a logical file name has no index entry.

    Callers must ask ``is_loadable_file`` before ``load_file``; hitting this
    means the harness itself is wired wrong.
    """

    def __init__(self, message: str, context: DiagnosticContext | None = None):
        self.context = context
        if context:
            message = context.format_error(message)
        super().__init__(message)


class ConstructionError(Exception):
    """Raised when the harness cannot be set up.

    Covers missing search directories, unreadable configured files and
    unknown checker options.
    """

    def __init__(self, message: str, context: DiagnosticContext | None = None):
        self.context = context
        if context:
            message = context.format_error(message)
        super().__init__(message)


class CaseParseError(ValueError):
    """Raised when a case file is malformed."""


def suggest_similar_names(name: str, known: Iterable[str], limit: int = 3) -> list[str]:
    """Return up to ``limit`` known names that look like ``name``."""
    return difflib.get_close_matches(name, list(known), n=limit, cutoff=0.6)


def format_lines_diff(expected: list[str], actual: list[str]) -> str:
    """Format a unified diff between expected and actual output lines."""
    diff = difflib.unified_diff(
        expected,
        actual,
        fromfile="expected",
        tofile="actual",
        lineterm="",
    )
    return "\n".join(diff)
