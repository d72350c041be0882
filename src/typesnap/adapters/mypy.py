"""mypy frontend for typesnap.

The snippet under test becomes the ``__main__`` module of a fresh mypy build.
Imports are resolved through a FileSystemCache subclass that mounts the
FileProvider at a virtual root: mypy sees the provider's files as if they sat
in a directory at the front of its search path, and asks about existence
(``isfile``/``isdir``/``listdir``) before it ever reads contents. Of the real
filesystem only mypy's bundled typeshed stays visible.
"""

from __future__ import annotations

import errno
import io
import logging
import os
import re
from typing import TYPE_CHECKING, Iterable

from mypy import build
from mypy.errors import CompileError
from mypy.fscache import FileSystemCache
from mypy.modulefinder import BuildSource
from mypy.options import Options
from mypy.util import hash_digest

from typesnap.adapters.base import Frontend
from typesnap.compiler.ir import CompileResult, Diagnostic, DiagnosticKind, Severity
from typesnap.diagnostics import ConstructionError, DiagnosticContext

if TYPE_CHECKING:
    from typesnap.config import CheckerConfig
    from typesnap.files import FileProvider

logger = logging.getLogger(__name__)

VIRTUAL_ROOT = os.path.join(os.path.abspath(os.sep), "__typesnap__")

MODULE_RESOLUTION_CODES = frozenset({"import", "import-not-found", "import-untyped"})

# main:12:5: error: Name "x" is not defined  [name-defined]
_MESSAGE_RE = re.compile(
    r"^(?P<file>.+?)"
    r"(?::(?P<line>\d+)(?::(?P<column>\d+))?)?"
    r": (?P<severity>error|warning|note): "
    r"(?P<message>.*?)"
    r"(?:  \[(?P<code>[a-z0-9-]+)\])?$"
)


class VirtualFileSystemCache(FileSystemCache):
    """FileSystemCache that serves a FileProvider under ``root``.

    Real paths are visible only under ``real_roots`` (mypy's bundled typeshed
    by default). Anything else on disk, including ``$MYPYPATH`` entries,
    reports as missing so every import resolves through the provider.
    """

    def __init__(
        self,
        provider: FileProvider,
        root: str = VIRTUAL_ROOT,
        real_roots: Iterable[str] | None = None,
    ):
        super().__init__()
        self.provider = provider
        self.root = os.path.normpath(root)
        if real_roots is None:
            real_roots = [build.default_data_dir()]
        self.real_roots = tuple(os.path.normpath(os.path.abspath(r)) for r in real_roots)

    def logical_name(self, path: str) -> str | None:
        """Map a path to a provider name; "" is the root, None is a real path."""
        path = os.path.normpath(path)
        if path == self.root:
            return ""
        prefix = self.root + os.sep
        if path.startswith(prefix):
            return path[len(prefix) :].replace(os.sep, "/")
        return None

    def is_visible(self, path: str) -> bool:
        """Whether a real path may be looked up on disk."""
        path = os.path.normpath(os.path.abspath(path))
        return any(path == r or path.startswith(r + os.sep) for r in self.real_roots)

    def isfile(self, path: str) -> bool:
        name = self.logical_name(path)
        if name is None:
            return self.is_visible(path) and super().isfile(path)
        return bool(name) and self.provider.is_loadable_file(name)

    def isdir(self, path: str) -> bool:
        name = self.logical_name(path)
        if name is None:
            return self.is_visible(path) and super().isdir(path)
        if not name:
            return True
        prefix = name + "/"
        return any(n.startswith(prefix) for n in self.provider.names())

    def exists(self, path: str, real_only: bool = False) -> bool:
        # real_only asks whether mypy may read the path from disk itself
        name = self.logical_name(path)
        if name is None:
            return self.is_visible(path) and super().exists(path)
        if real_only:
            return False
        return self.isfile(path) or self.isdir(path)

    def isfile_case(self, path: str, prefix: str) -> bool:
        if self.logical_name(path) is None:
            return self.is_visible(path) and super().isfile_case(path, prefix)
        return self.isfile(path)

    def exists_case(self, path: str, prefix: str) -> bool:
        if self.logical_name(path) is None:
            return self.is_visible(path) and super().exists_case(path, prefix)
        return self.exists(path)

    def listdir(self, path: str) -> list[str]:
        name = self.logical_name(path)
        if name is None:
            if not self.is_visible(path):
                raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
            return super().listdir(path)
        if not self.isdir(path):
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)

        prefix = name + "/" if name else ""
        entries = {n[len(prefix) :].split("/", 1)[0] for n in self.provider.names() if n.startswith(prefix)}
        return sorted(entries)

    def read(self, path: str) -> bytes:
        name = self.logical_name(path)
        if name is None:
            if not self.is_visible(path):
                raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
            return super().read(path)
        if not self.provider.is_loadable_file(name):
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)

        try:
            text = self.provider.load_file(name)
        except OSError as e:
            ctx = DiagnosticContext(target=name)
            ctx.add_search(str(e.filename or name), found=False, reason=e.strerror or str(e))
            ctx.add_suggestion("The file was indexed but is no longer readable; rebuild the provider")
            raise ConstructionError(f"Cannot read {name}", context=ctx) from e
        except UnicodeDecodeError as e:
            ctx = DiagnosticContext(target=name)
            ctx.add_search(name, found=True, reason=f"{e.encoding} decode failed at byte {e.start}")
            ctx.add_suggestion("Save the file as UTF-8 or set the provider encoding")
            raise ConstructionError(f"Cannot decode {name}", context=ctx) from e
        return text.encode("utf-8")

    def hash_digest(self, path: str) -> str:
        if self.logical_name(path) is None:
            return super().hash_digest(path)
        return hash_digest(self.read(path))


def parse_messages(
    messages: list[str],
    fscache: VirtualFileSystemCache,
) -> list[Diagnostic]:
    """Turn mypy's rendered output lines into Diagnostic models, in order."""
    diagnostics: list[Diagnostic] = []
    last_error: Diagnostic | None = None

    for raw in messages:
        match = _MESSAGE_RE.match(raw)
        if match is None:
            diagnostics.append(Diagnostic(message=raw))
            continue

        file = match["file"]
        absolute = file if os.path.isabs(file) else os.path.join(os.getcwd(), file)
        logical = fscache.logical_name(absolute)
        if logical:
            file = logical

        severity = Severity(match["severity"])
        code = match["code"]
        line = int(match["line"]) if match["line"] else None

        if code in MODULE_RESOLUTION_CODES:
            kind = DiagnosticKind.MODULE_RESOLUTION
        elif (
            severity == Severity.NOTE
            and code is None
            and last_error is not None
            and (last_error.file, last_error.line) == (file, line)
        ):
            kind = last_error.kind
        else:
            kind = DiagnosticKind.CHECKING

        diagnostic = Diagnostic(
            file=file,
            line=line,
            column=int(match["column"]) if match["column"] else None,
            severity=severity,
            message=match["message"],
            code=code,
            kind=kind,
        )
        if severity == Severity.ERROR:
            last_error = diagnostic
        diagnostics.append(diagnostic)

    return diagnostics


class MypyFrontend(Frontend):
    """Compiles snippets with mypy."""

    name = "mypy"

    def __init__(self, config: CheckerConfig | None = None, root: str = VIRTUAL_ROOT):
        """Initialize the frontend.

        Args:
            config: Checker configuration. If None, uses defaults.
            root: Directory path the provider is mounted at. It never touches disk.

        Raises:
            ConstructionError: If ``config.options`` names an unknown mypy option.
        """
        from typesnap.config import CheckerConfig

        self.config = config or CheckerConfig()
        self.root = root
        # Fail on bad options now rather than on first compile
        self.build_options()

    def build_options(self) -> Options:
        """Build a fresh mypy Options for one compilation."""
        options = Options()
        options.incremental = False
        options.cache_dir = os.devnull
        options.python_executable = None
        options.show_column_numbers = True
        options.raise_exceptions = True
        options.mypy_path = []

        if self.config.python_version:
            major, minor = self.config.python_version.split(".")
            options.python_version = (int(major), int(minor))

        for key, value in self.config.options.items():
            if key.startswith("_") or not hasattr(options, key):
                ctx = DiagnosticContext(target=key)
                ctx.add_search("mypy Options attributes", found=False)
                raise ConstructionError(f"Unknown mypy option {key!r}", context=ctx)
            setattr(options, key, value)

        return options

    def compile(self, source_text: str, file_provider: FileProvider) -> CompileResult:
        """Compile ``source_text`` against ``file_provider`` and collect diagnostics."""
        messages: list[str] = []

        def flush_errors(filename: str | None, new_messages: list[str], is_serious: bool) -> None:
            messages.extend(new_messages)

        options = self.build_options()
        real_roots = [build.default_data_dir()]
        if options.custom_typeshed_dir:
            real_roots.append(options.custom_typeshed_dir)
        fscache = VirtualFileSystemCache(file_provider, self.root, real_roots)
        sources = [BuildSource(self.config.entry_name, "__main__", text=source_text)]

        logger.debug("Compiling %d chars as %s", len(source_text), self.config.entry_name)
        try:
            build.build(
                sources=sources,
                options=options,
                alt_lib_path=fscache.root,
                flush_errors=flush_errors,
                fscache=fscache,
                stdout=io.StringIO(),
                stderr=io.StringIO(),
            )
        except CompileError:
            # Blocking errors (e.g. syntax errors) were flushed before the raise
            logger.debug("Compilation stopped at a blocking error")

        diagnostics = parse_messages(messages, fscache)
        if not self.config.include_notes:
            diagnostics = [d for d in diagnostics if d.severity != Severity.NOTE]

        logger.debug("Compilation produced %d diagnostic(s)", len(diagnostics))
        return CompileResult(diagnostics=diagnostics)
