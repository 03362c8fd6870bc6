"""
Symver CLI -- ELF Symbol-Versioning Inspector
===============================================

Click-based command-line interface for decoding the GNU symbol-versioning
sections (``.gnu.version``, ``.gnu.version_d``, ``.gnu.version_r``) of an
ELF file.

Usage::

    # Decode and display
    symver /usr/lib/libc.so.6

    # JSON document on stdout
    symver /usr/bin/ls --json

    # Save a JSON report
    symver /usr/bin/ls --output report.json

    # Fail (exit 2) when the metadata is structurally invalid
    symver broken.so --strict

Exit status:
    0  analysis completed
    1  the file could not be analysed (including a missing PATH)
    2  ``--strict`` and the versioning metadata is structurally invalid

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from shared.config import ToolkitConfig
from shared.console import ToolConsole
from shared.logger import ToolLogger

from symver import __version__
from symver.core.engine import SymverEngine
from symver.core.models import VersioningReport
from symver.output.console import SymverConsoleOutput
from symver.output.report import SymverReportGenerator


EXIT_FAILURE = 1
EXIT_STRUCTURE = 2


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------

@click.command("symver")
@click.argument("path", type=click.Path())
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Output results as JSON to stdout.",
)
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write a JSON report to this path.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose/debug output.",
)
@click.option(
    "--symbols/--no-symbols",
    default=True,
    help="Show or hide the per-symbol version table.",
)
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a TOML configuration file.",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit with status 2 if any versioning section is malformed.",
)
@click.version_option(__version__, prog_name="symver")
def symver_cli(
    path: str,
    json_output: bool,
    output_path: str | None,
    verbose: bool,
    symbols: bool,
    config_path: str | None,
    strict: bool,
) -> None:
    """Symver -- ELF symbol-versioning inspector.

    Decode the version definitions, version requirements and per-symbol
    version indices of an ELF file, and report structural problems.

    PATH is the ELF file to inspect.

    Examples:

    \b
        symver /usr/lib/x86_64-linux-gnu/libc.so.6
        symver ./libfoo.so --json
        symver ./libfoo.so --no-symbols --output report.json
    """
    console = ToolConsole()

    try:
        config = ToolkitConfig.load(config_path)
    except (OSError, ValueError) as exc:
        console.error(f"Cannot load configuration: {exc}")
        sys.exit(EXIT_FAILURE)

    settings = config.symver
    json_output = json_output or settings.output_format == "json"
    strict = strict or settings.strict

    if verbose or config.global_settings.debug:
        log_level = "DEBUG"
    elif json_output:
        log_level = "WARNING"
    else:
        log_level = config.global_settings.log_level
    logger = ToolLogger(
        "symver",
        log_level=log_level,
        log_file=config.global_settings.log_file or None,
        json_logs=config.global_settings.log_json,
    )

    engine = SymverEngine(config=config, logger=logger)

    try:
        scan_result = asyncio.run(engine.analyze(path))
    except KeyboardInterrupt:
        console.warning("Analysis interrupted by user.")
        sys.exit(130)

    raw = scan_result.metadata.get("versioning")
    if raw is None:
        console.error(scan_result.summary or "Analysis failed.")
        sys.exit(EXIT_FAILURE)

    report = VersioningReport.model_validate(raw)
    generator = SymverReportGenerator()

    if json_output:
        click.echo(json.dumps(generator.build(report, scan_result), indent=2, default=str))
    else:
        display = SymverConsoleOutput(
            console=console,
            show_symbols=symbols,
            symbol_limit=settings.symbol_display_limit,
        )
        display.display(report)

        if scan_result.findings:
            console.section("Findings")
            console.findings_table(scan_result.findings)

        console.blank()
        console.info(f"Scan Duration: {scan_result.duration_seconds or 0.0:.2f}s")
        console.info(f"Findings: {scan_result.finding_count}")
        if scan_result.critical_count > 0:
            console.critical(f"Critical findings: {scan_result.critical_count}")

    if output_path:
        report_path = generator.generate_json(report, output_path, scan=scan_result)
        if not json_output:
            console.success(f"JSON report saved: {report_path}")

    if strict and report.errors:
        sys.exit(EXIT_STRUCTURE)


# ---------------------------------------------------------------------------
# Module entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Entry point for the ``symver`` console script."""
    symver_cli()


if __name__ == "__main__":
    main()
