"""
Symver Console Output
======================

Rich-powered terminal display for decoded symbol-versioning metadata:
section locations, the version-definition tree, requirements grouped by
file, and the per-symbol version table.
"""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table

from shared.console import ToolConsole

from symver.core.models import (
    DefinitionInfo,
    RequirementInfo,
    SectionSummary,
    SymbolVersionInfo,
    VersioningReport,
)


def _flag_labels(definition: DefinitionInfo) -> str:
    labels: list[str] = []
    if definition.is_base:
        labels.append("BASE")
    if definition.is_weak:
        labels.append("WEAK")
    return " | ".join(labels) if labels else "none"


def _hash_cell(hash_ok: bool | None) -> str:
    if hash_ok is None:
        return "[dim]-[/dim]"
    return "[green]ok[/green]" if hash_ok else "[bold red]mismatch[/bold red]"


class SymverConsoleOutput:
    """Rich terminal display for a :class:`VersioningReport`.

    Usage::

        output = SymverConsoleOutput(symbol_limit=50)
        output.display(report)
    """

    def __init__(
        self,
        console: ToolConsole | None = None,
        *,
        show_symbols: bool = True,
        symbol_limit: int = 100,
    ) -> None:
        self._console: ToolConsole = console or ToolConsole()
        self._show_symbols = show_symbols
        self._symbol_limit = symbol_limit

    def display(self, report: VersioningReport) -> None:
        """Display the complete report."""
        self._console.banner("symver", "ELF symbol-versioning inspector")
        self.display_header(report)

        if not report.has_versioning:
            self._console.info("No symbol versioning sections present.")
            return

        self.display_sections(report.sections)

        if report.definitions:
            self.display_definitions(report.definitions)

        if report.requirements:
            self.display_requirements(report.requirements)

        if report.symbols and self._show_symbols:
            self.display_symbols(report.symbols)

        for error in report.errors:
            self._console.critical(error)

        self._console.divider()

    def display_header(self, report: VersioningReport) -> None:
        lines: list[str] = [
            f"[bold]File:[/bold]      {report.path}",
            f"[bold]Size:[/bold]      {report.size:,} bytes",
            f"[bold]Class:[/bold]     ELF{report.bits} ({report.endian}-endian)",
            f"[bold]Versioned:[/bold] {len(report.symbols)} symbols, "
            f"{report.defined_count} bound to a version, {report.hidden_count} hidden",
        ]
        self._console.rich.print(Panel(
            "\n".join(lines),
            title="[bold bright_cyan]Binary Information[/bold bright_cyan]",
            border_style="bright_cyan",
            padding=(1, 2),
        ))
        self._console.blank()

    def display_sections(self, sections: list[SectionSummary]) -> None:
        self._console.table(
            "Versioning Sections",
            ["Name", "Kind", "Offset", "Size", "EntSize", "Link"],
            [
                (s.name, s.kind, f"0x{s.offset:x}", s.size, s.entsize, s.link)
                for s in sections
            ],
            styles=["bold", "bright_cyan", "", "", "dim", "dim"],
        )
        self._console.blank()

    def display_definitions(self, definitions: list[DefinitionInfo]) -> None:
        tbl = Table(
            title="Version Definitions (.gnu.version_d)",
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            padding=(0, 1),
        )
        tbl.add_column("Ndx", justify="right", style="bold")
        tbl.add_column("Name", style="bright_green")
        tbl.add_column("Flags")
        tbl.add_column("Parents", style="dim")
        tbl.add_column("Hash")

        for d in definitions:
            tbl.add_row(
                str(d.index),
                d.name,
                _flag_labels(d),
                ", ".join(d.parents) or "-",
                _hash_cell(d.hash_ok),
            )

        self._console.rich.print(tbl)
        self._console.blank()

    def display_requirements(self, requirements: list[RequirementInfo]) -> None:
        tbl = Table(
            title="Version Requirements (.gnu.version_r)",
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            padding=(0, 1),
        )
        tbl.add_column("File", style="bold bright_blue")
        tbl.add_column("Ndx", justify="right")
        tbl.add_column("Version", style="bright_green")
        tbl.add_column("Flags", style="dim")
        tbl.add_column("Hash")

        for req in requirements:
            for position, aux in enumerate(req.aux):
                tbl.add_row(
                    req.file if position == 0 else "",
                    str(aux.index) if aux.index is not None else "-",
                    aux.name,
                    f"0x{aux.flags:x}",
                    _hash_cell(aux.hash_ok),
                )

        self._console.rich.print(tbl)
        self._console.blank()

    def display_symbols(self, symbols: list[SymbolVersionInfo]) -> None:
        shown = symbols[: self._symbol_limit]
        caption = None
        if len(symbols) > len(shown):
            caption = f"Showing {len(shown)} of {len(symbols)} entries"

        rows = []
        for s in shown:
            state = "local" if s.local else ("defined" if s.defined else "global")
            name = f"[dim]{s.version_name}[/dim]" if s.hidden else s.version_name
            rows.append((
                s.index,
                f"0x{s.value:04x}",
                state,
                "yes" if s.hidden else "",
                name,
            ))

        self._console.table(
            "Symbol Versions (.gnu.version)",
            ["#", "Value", "State", "Hidden", "Version"],
            rows,
            caption=caption,
            styles=["dim", "", "bright_cyan", "yellow", "bright_green"],
        )
        self._console.blank()
