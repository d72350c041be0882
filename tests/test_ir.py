"""Tests for diagnostic models."""

from typesnap.compiler.ir import CompileResult, Diagnostic, DiagnosticKind, Severity


def make_result() -> CompileResult:
    return CompileResult(
        diagnostics=[
            Diagnostic(
                file="main",
                line=1,
                column=1,
                message='Cannot find implementation or library stub for module named "nope"',
                code="import-not-found",
                kind=DiagnosticKind.MODULE_RESOLUTION,
            ),
            Diagnostic(
                file="main",
                line=1,
                column=1,
                severity=Severity.NOTE,
                message="See https://mypy.readthedocs.io/en/stable/running_mypy.html#missing-imports",
                kind=DiagnosticKind.MODULE_RESOLUTION,
            ),
            Diagnostic(file="main", line=3, column=5, message='Name "y" is not defined', code="name-defined"),
        ]
    )


def test_render_full_location():
    diagnostic = Diagnostic(file="main", line=3, column=5, message='Name "y" is not defined', code="name-defined")

    assert diagnostic.render() == 'main:3:5: error: Name "y" is not defined  [name-defined]'


def test_render_partial_location():
    assert Diagnostic(file="main", line=3, message="m", severity=Severity.NOTE).render() == "main:3: note: m"
    assert Diagnostic(file="main", message="m").render() == "main: error: m"
    assert Diagnostic(message="m", code="misc").render() == "error: m  [misc]"


def test_result_views():
    result = make_result()

    assert len(result.errors) == 2
    assert len(result.notes) == 1
    assert [d.code for d in result.module_resolution] == ["import-not-found"]
    assert [d.code for d in result.checking] == ["name-defined"]
    assert not result.is_clean


def test_result_render_preserves_order():
    result = make_result()

    assert result.lines() == [d.render() for d in result.diagnostics]
    assert result.render().splitlines() == result.lines()
    assert result.lines()[1].startswith("main:1:1: note: See")


def test_empty_result_is_clean():
    result = CompileResult()

    assert result.is_clean
    assert result.render() == ""


def test_notes_alone_are_clean():
    result = CompileResult(diagnostics=[Diagnostic(file="main", line=1, severity=Severity.NOTE, message="hint")])

    assert result.is_clean
