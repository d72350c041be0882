"""Virtual file provider for the type checker.

Stub files are indexed eagerly from a set of search directories, but their
contents are read lazily, on first request, and cached for the lifetime of
the provider. Test code can also register synthetic files that have no disk
backing; consumers cannot tell the two apart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Mapping

from typesnap.diagnostics import (
    ConstructionError,
    DiagnosticContext,
    ResolutionError,
    suggest_similar_names,
)

if TYPE_CHECKING:
    from typesnap.config import ProviderConfig

logger = logging.getLogger(__name__)

DECLARATION_SUFFIX = ".pyi"


@dataclass(frozen=True)
class DiskOrigin:
    """The file lives on disk, inside ``directory``."""

    directory: Path


@dataclass(frozen=True)
class SyntheticOrigin:
    """The file was registered by hand and only exists in the cache."""


Origin = DiskOrigin | SyntheticOrigin


class VirtualFileIndex:
    """Maps logical file names to where their contents come from."""

    def __init__(self, entries: Mapping[str, Origin] | None = None):
        self._entries: dict[str, Origin] = dict(entries or {})

    @classmethod
    def build(
        cls,
        directories: Iterable[str | Path],
        suffix: str = DECLARATION_SUFFIX,
    ) -> VirtualFileIndex:
        """Scan ``directories`` (non-recursively) for files ending in ``suffix``.

        Directories are scanned in order. When two of them hold a file with the
        same name, the one listed later wins.

        Raises:
            ConstructionError: If a directory is missing or unreadable.
        """
        entries: dict[str, Origin] = {}

        for directory in directories:
            directory = Path(directory)
            try:
                found = sorted(
                    entry.name
                    for entry in directory.iterdir()
                    if entry.name.endswith(suffix) and entry.is_file()
                )
            except OSError as e:
                ctx = DiagnosticContext(target=str(directory))
                ctx.add_search(str(directory), found=False, reason=e.strerror or str(e))
                ctx.add_suggestion("Check the provider search_paths in your typesnap config")
                raise ConstructionError(
                    f"Cannot index search directory {directory}",
                    context=ctx,
                ) from e

            logger.debug("Indexed %d %s file(s) in %s", len(found), suffix, directory)
            for name in found:
                entries[name] = DiskOrigin(directory)

        return cls(entries)

    def has(self, name: str) -> bool:
        return name in self._entries

    def origin(self, name: str) -> Origin | None:
        return self._entries.get(name)

    def register_synthetic(self, name: str) -> None:
        """Install (or overwrite) ``name`` as a synthetic entry."""
        self._entries[name] = SyntheticOrigin()

    def names(self) -> list[str]:
        return sorted(self._entries)

    def copy(self) -> VirtualFileIndex:
        return VirtualFileIndex(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class ContentCache:
    """Read-through cache from logical file name to text.

    Entries are written once and never invalidated; disk is touched at most
    once per name.
    """

    def __init__(self, index: VirtualFileIndex, encoding: str = "utf-8"):
        self._index = index
        self._encoding = encoding
        self._contents: dict[str, str] = {}

    def get(self, name: str) -> str:
        """Return the contents of ``name``, loading them on first access."""
        if name in self._contents:
            return self._contents[name]
        return self.load_miss(name)

    def put(self, name: str, text: str) -> None:
        self._contents[name] = text

    def load_miss(self, name: str) -> str:
        """Read ``name`` from its origin directory and cache the result.

        Raises:
            ResolutionError: If the index has no disk location for ``name``.
            OSError: If the indexed file can no longer be read.
        """
        origin = self._index.origin(name)

        if not isinstance(origin, DiskOrigin):
            ctx = DiagnosticContext(target=name)
            reason = "not indexed" if origin is None else "synthetic file has no contents"
            ctx.add_search("file index", found=False, reason=reason)
            for candidate in suggest_similar_names(name, self._index.names()):
                ctx.add_suggestion(f"Did you mean {candidate!r}?")
            if origin is None:
                ctx.add_suggestion("Check is_loadable_file() before calling load_file()")
            raise ResolutionError(f"No path to load {name} contents from", context=ctx)

        path = origin.directory / name
        logger.debug("Cache miss for %s, reading %s", name, path)
        text = path.read_bytes().decode(self._encoding)
        self.put(name, text)
        return text

    def copy(self, index: VirtualFileIndex) -> ContentCache:
        cache = ContentCache(index, encoding=self._encoding)
        cache._contents = dict(self._contents)
        return cache

    def __contains__(self, name: object) -> bool:
        return name in self._contents


class FileProvider:
    """Supplies stub file contents to the type checker on demand.

    Both test code and the checker bridge depend on this class. The checker
    must call ``is_loadable_file`` before ``load_file``; loading a name that
    was never registered is a programming error and fails loudly.
    """

    def __init__(
        self,
        paths: Iterable[str | Path] = (),
        files: Mapping[str, str] | None = None,
        suffix: str = DECLARATION_SUFFIX,
    ):
        """Index ``paths`` and register every entry of ``files`` by hand.

        Args:
            paths: Directories whose stub files become loadable.
            files: Synthetic ``name -> contents`` entries.
            suffix: File suffix that marks a declaration file.
        """
        self.suffix = suffix
        self._index = VirtualFileIndex.build(paths, suffix=suffix)
        self._cache = ContentCache(self._index)

        for name, contents in (files or {}).items():
            self.manually_add_file(name, contents)

    @classmethod
    def from_config(cls, config: ProviderConfig) -> FileProvider:
        """Build a provider from configuration.

        Configured synthetic files are read eagerly, since their source paths
        sit outside any search directory.
        """
        files: dict[str, str] = {}
        for name, source in config.files.items():
            try:
                files[name] = Path(source).read_text(encoding="utf-8")
            except OSError as e:
                ctx = DiagnosticContext(target=name)
                ctx.add_search(str(source), found=False, reason=e.strerror or str(e))
                raise ConstructionError(
                    f"Cannot read configured file {name!r}",
                    context=ctx,
                ) from e

        return cls(paths=config.search_paths, files=files, suffix=config.suffix)

    def is_loadable_file(self, name: str) -> bool:
        """Check whether the contents of ``name`` can be loaded."""
        return self._index.has(name)

    def load_file(self, name: str) -> str:
        """Load the contents of ``name``.

        Cached contents are returned straight away. Otherwise the file is read
        from disk, cached, and returned.

        Raises:
            ResolutionError: If ``name`` is unknown to the index.
        """
        return self._cache.get(name)

    def manually_add_file(self, name: str, contents: str) -> None:
        """Register a synthetic file with the given ``contents``.

        Useful for files that no search directory covers, or for content that
        is generated by the test itself.
        """
        if not isinstance(name, str) or not name:
            raise ValueError(f"File name must be a non-empty string, got {name!r}")
        if not isinstance(contents, str):
            raise TypeError(f"Contents of {name!r} must be str, got {type(contents).__name__}")

        self._index.register_synthetic(name)
        self._cache.put(name, contents)
        logger.debug("Registered synthetic file %s (%d chars)", name, len(contents))

    def fork(self) -> FileProvider:
        """Return a provider starting from this one's index and cache.

        Files added to the fork stay out of this provider.
        """
        forked = FileProvider.__new__(FileProvider)
        forked.suffix = self.suffix
        forked._index = self._index.copy()
        forked._cache = self._cache.copy(forked._index)
        return forked

    def names(self) -> list[str]:
        """List every loadable name."""
        return self._index.names()
