"""Case file parser - transforms case files into CaseDocument models.

Uses lark for parsing and transforms the parse tree into pydantic models.
"""

from pathlib import Path
from typing import Any

from lark import Lark, Token, Transformer
from lark.exceptions import LarkError, VisitError

from typesnap.compiler.ir import CaseDocument, CaseSpec
from typesnap.diagnostics import CaseParseError

# Load grammar from file adjacent to this module
GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"


def _header_argument(token: Token, keyword: str) -> str:
    """``[case  Some name ]\\n`` -> ``Some name``."""
    text = str(token).strip()
    return text[len(keyword) + 1 : -1].strip()


class CaseTransformer(Transformer[Any, Any]):
    """Transform the lark parse tree into case models."""

    def start(self, items: list[Any]) -> CaseDocument:
        """Root document - ignore the preamble, collect cases."""
        cases: list[CaseSpec] = []
        seen: set[str] = set()

        for item in items:
            if not isinstance(item, CaseSpec):
                continue  # Preamble line
            if item.name in seen:
                raise CaseParseError(f"Duplicate case name: {item.name!r}")
            seen.add(item.name)
            cases.append(item)

        return CaseDocument(cases=cases)

    def case(self, items: list[Any]) -> CaseSpec:
        """[case name] followed by the entry source and any sections."""
        name = _header_argument(items[0], "[case")
        source = items[1]
        files: dict[str, str] = {}
        expected: list[str] | None = None

        for kind, *rest in items[2:]:
            if kind == "file":
                file_name, contents = rest
                if file_name in files:
                    raise CaseParseError(f"Case {name!r}: duplicate [file {file_name}]")
                files[file_name] = contents
            else:
                if expected is not None:
                    raise CaseParseError(f"Case {name!r}: more than one [out] section")
                expected = rest[0]

        return CaseSpec(name=name, source=source, files=files, expected=expected)

    def file_section(self, items: list[Any]) -> tuple[str, str, str]:
        """[file name.pyi] followed by its contents."""
        return ("file", _header_argument(items[0], "[file"), items[1])

    def out_section(self, items: list[Any]) -> tuple[str, list[str]]:
        """[out] followed by expected diagnostics, one per line."""
        lines = [line.rstrip() for line in items[1].splitlines()]
        return ("out", [line for line in lines if line])

    def body(self, items: list[Any]) -> str:
        return "".join(str(token) for token in items)


class CaseParser:
    """Parser for case files."""

    def __init__(self) -> None:
        """Initialize the parser with the grammar."""
        self._parser = Lark(
            GRAMMAR_PATH.read_text(),
            parser="lalr",
            transformer=CaseTransformer(),
        )

    def parse(self, text: str) -> CaseDocument:
        """Parse case file text into a CaseDocument.

        Raises:
            CaseParseError: If the text is not a valid case file.
        """
        if text and not text.endswith("\n"):
            text += "\n"

        try:
            return self._parser.parse(text)  # type: ignore[return-value]
        except VisitError as e:
            if isinstance(e.orig_exc, CaseParseError):
                raise e.orig_exc from None
            raise
        except LarkError as e:
            raise CaseParseError(f"Invalid case file: {e}") from e

    def parse_file(self, path: Path | str) -> CaseDocument:
        """Parse a case file into a CaseDocument."""
        path = Path(path)
        return self.parse(path.read_text(encoding="utf-8"))


# Module-level parser instance for convenience
_parser: CaseParser | None = None


def get_parser() -> CaseParser:
    """Get or create the module-level parser instance."""
    global _parser
    if _parser is None:
        _parser = CaseParser()
    return _parser


def parse(text: str) -> CaseDocument:
    """Parse case file text into a CaseDocument."""
    return get_parser().parse(text)


def parse_file(path: Path | str) -> CaseDocument:
    """Parse a case file into a CaseDocument."""
    return get_parser().parse_file(path)
