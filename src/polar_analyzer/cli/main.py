from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Literal

import typer

from polar_analyzer.analyzer import PolarAnalyzer
from polar_analyzer.config import AnalyzerConfig, AnalyzerConfigError, load_analyzer_config
from polar_analyzer.diagnostics import Diagnostic, Severity, position_at, sort_diagnostics
from polar_analyzer.inspect import RuleInfo

app = typer.Typer(help="Polar policy analyzer CLI")

_CHECK_OUTPUT_SCHEMA_VERSION: Final[int] = 1
_FORMAT_OPTION = typer.Option(
    "text",
    "--format",
    help="Output format: text|json",
    show_default=True,
)
_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="Analyzer settings YAML file",
)
_VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Log analyzer events to stderr")


@dataclass(frozen=True, slots=True)
class FileReport:
    filename: str
    text: str
    diagnostics: tuple[tuple[Severity, Diagnostic], ...]


@app.command()
def check(
    files: list[Path],
    format: Literal["text", "json"] = _FORMAT_OPTION,
    config: Path | None = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """Report parse errors and calls that match no rule."""
    _configure_logging(verbose)
    analyzer = PolarAnalyzer(_resolve_config(config))
    reports = tuple(_check_file(analyzer, path) for path in files)

    if format == "json":
        typer.echo(_build_check_json_output(reports))
    else:
        for report in reports:
            _print_file_diagnostics(report)
    raise typer.Exit(code=_derive_check_exit_code(reports))


@app.command()
def rules(
    files: list[Path],
    format: Literal["text", "json"] = _FORMAT_OPTION,
    config: Path | None = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """List the rules loaded from the given files."""
    _configure_logging(verbose)
    analyzer = PolarAnalyzer(_resolve_config(config))
    failed = False
    for path in files:
        report = _check_file(analyzer, path)
        if _has_errors(report):
            _print_file_diagnostics(report)
            failed = True

    infos = analyzer.list_rule_info()
    if format == "json":
        typer.echo(
            json.dumps(
                [info.model_dump(mode="json") for info in infos],
                ensure_ascii=True,
                separators=(",", ":"),
            )
        )
    else:
        for info in infos:
            _print_rule_info(info)
    raise typer.Exit(code=2 if failed else 0)


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s %(message)s")


def _resolve_config(path: Path | None) -> AnalyzerConfig:
    try:
        return load_analyzer_config(path)
    except AnalyzerConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _check_file(analyzer: PolarAnalyzer, path: Path) -> FileReport:
    filename = str(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        diagnostic = Diagnostic.unlocated(f"unable to read policy file: {_exception_message(exc)}")
        return FileReport(filename, "", ((Severity.ERROR, diagnostic),))

    result = analyzer.load(text, filename)
    diagnostics = [(Severity.ERROR, item) for item in sort_diagnostics(result.errors)]
    diagnostics.extend(
        (Severity.WARNING, item) for item in sort_diagnostics(result.unused_rules)
    )
    return FileReport(filename, text, tuple(diagnostics))


def _has_errors(report: FileReport) -> bool:
    return any(severity is Severity.ERROR for severity, _ in report.diagnostics)


def _derive_check_exit_code(reports: Sequence[FileReport]) -> int:
    if any(_has_errors(report) for report in reports):
        return 2
    if any(report.diagnostics for report in reports):
        return 1
    return 0


def _print_file_diagnostics(report: FileReport) -> None:
    for severity, diagnostic in report.diagnostics:
        position = position_at(report.text, diagnostic.start)
        message = " ".join(diagnostic.message.split())
        typer.echo(
            "DIAG"
            f" file={report.filename}"
            f" severity={severity}"
            f" line={position.line + 1}"
            f" column={position.character + 1}"
            f" message={message}"
        )


def _print_rule_info(info: RuleInfo) -> None:
    signature = " ".join(info.signature.split())
    typer.echo(
        "RULE"
        f" symbol={info.symbol}"
        f" file={info.location.filename}"
        f" start={info.location.start}"
        f" end={info.location.end}"
        f" signature={signature}"
    )


def _build_check_json_output(reports: Sequence[FileReport]) -> str:
    payload: dict[str, object] = {
        "schema_version": _CHECK_OUTPUT_SCHEMA_VERSION,
        "status": "fail" if any(_has_errors(report) for report in reports) else "pass",
        "exit_code": _derive_check_exit_code(reports),
        "files": [
            {
                "file": report.filename,
                "diagnostics": [
                    {"severity": str(severity), **diagnostic.model_dump(mode="json")}
                    for severity, diagnostic in report.diagnostics
                ],
            }
            for report in reports
        ],
    }
    return json.dumps(payload, ensure_ascii=True, separators=(",", ":"))


def _exception_message(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return type(exc).__name__


def main() -> None:
    app()
