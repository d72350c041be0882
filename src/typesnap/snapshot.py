"""Snapshot storage for compiled diagnostics.

A snapshot file is YAML mapping case names to the rendered diagnostic lines
of their last accepted run.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from typesnap.diagnostics import format_lines_diff

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Stores and compares diagnostics snapshots."""

    def __init__(self, path: Path | str, update: bool = False):
        """Load snapshots from ``path`` if it exists.

        Args:
            path: YAML file holding the snapshots.
            update: Overwrite mismatching snapshots instead of failing.
        """
        self.path = Path(path)
        self.update = update
        self._dirty = False
        self._snapshots: dict[str, list[str]] = {}

        if self.path.exists():
            with open(self.path) as f:
                data = yaml.safe_load(f) or {}
            self._snapshots = {str(k): list(v or []) for k, v in data.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._snapshots

    def get(self, name: str) -> list[str] | None:
        return self._snapshots.get(name)

    def check(self, name: str, lines: list[str]) -> tuple[bool, str | None]:
        """Compare ``lines`` against the stored snapshot for ``name``.

        Unknown snapshots are recorded and pass.
        """
        stored = self._snapshots.get(name)

        if stored is None:
            logger.debug("Writing new snapshot %r", name)
            self._store(name, lines)
            return True, None

        if stored == lines:
            return True, None

        if self.update:
            logger.debug("Updating snapshot %r", name)
            self._store(name, lines)
            return True, None

        return False, "Snapshot mismatch:\n" + format_lines_diff(stored, lines)

    def _store(self, name: str, lines: list[str]) -> None:
        self._snapshots[name] = list(lines)
        self._dirty = True

    def save(self) -> bool:
        """Write the snapshot file if anything changed. Returns True if written."""
        if not self._dirty:
            return False

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(self._snapshots, f, sort_keys=False, allow_unicode=True, width=4096)
        self._dirty = False
        return True
