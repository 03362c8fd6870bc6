"""
Toolkit Console Interface
==========================

Rich-powered console abstraction giving every command the same look:
title panel, section rules, severity-coloured messages and tables.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

# ---------------------------------------------------------------------------
# Theme
# ---------------------------------------------------------------------------
_TOOL_THEME = Theme(
    {
        "tool.banner": "bold bright_cyan",
        "tool.section": "bold bright_magenta",
        "tool.success": "bold green",
        "tool.warning": "bold yellow",
        "tool.error": "bold red",
        "tool.info": "bold bright_blue",
        "tool.dim": "dim white",
        "tool.critical": "bold white on red",
        "tool.high": "bold red",
        "tool.medium": "bold yellow",
        "tool.low": "bold bright_cyan",
        "tool.informational": "bold bright_blue",
    }
)

_SEVERITY_STYLES: dict[str, str] = {
    "CRITICAL": "tool.critical",
    "HIGH": "tool.high",
    "MEDIUM": "tool.medium",
    "LOW": "tool.low",
    "INFO": "tool.informational",
}


class ToolConsole:
    """Unified console interface for the toolkit commands.

    Usage::

        con = ToolConsole()
        con.banner("symver", "ELF symbol-versioning inspector")
        con.section("Version Requirements")
        con.success("Decoded 3 requirements")
    """

    def __init__(self, *, quiet: bool = False, record: bool = False) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (useful in library / test mode).
            record: Enable Rich recording for text / HTML export.
        """
        self._console = Console(
            theme=_TOOL_THEME,
            quiet=quiet,
            record=record,
            highlight=False,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    # ------------------------------------------------------------------ #
    #  Banner / section header
    # ------------------------------------------------------------------ #

    def banner(self, title: str, subtitle: str = "", version: str = "1.0.0") -> None:
        """Display a title panel.

        Args:
            title:    Tool name.
            subtitle: One-line description shown beneath the title.
            version:  Version string.
        """
        body = Text(title.upper(), style="tool.banner", justify="center")
        if subtitle:
            body.append(f"\n{subtitle}", style="tool.dim")
        body.append(f"\nVersion: {version}", style="tool.dim")
        self._console.print(
            Panel(body, border_style="bright_cyan", padding=(0, 2))
        )

    def section(self, title: str) -> None:
        """Print a prominent section header."""
        self._console.rule(
            f"  {title}  ",
            style="tool.section",
            characters="─",
        )
        self._console.print()

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(
            f"[tool.success][✔] SUCCESS:[/tool.success] {message}"
        )

    def warning(self, message: str) -> None:
        self._console.print(
            f"[tool.warning][⚠] WARNING:[/tool.warning] {message}"
        )

    def error(self, message: str) -> None:
        self._console.print(
            f"[tool.error][✘] ERROR:[/tool.error] {message}"
        )

    def info(self, message: str) -> None:
        self._console.print(
            f"[tool.info][ℹ] INFO:[/tool.info] {message}"
        )

    def critical(self, message: str) -> None:
        self._console.print(
            f"[tool.critical][☠] CRITICAL: {message}[/tool.critical]"
        )

    # ------------------------------------------------------------------ #
    #  Table display
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Render a styled Rich table.

        Args:
            title:    Table title.
            columns:  Column header labels.
            rows:     Row tuples; each cell is stringified.
            caption:  Optional footer caption.
            styles:   Optional per-column Rich style strings.
        """
        tbl = Table(
            title=title,
            caption=caption,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=False,
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            style = styles[idx] if styles and idx < len(styles) else ""
            tbl.add_column(col_name, style=style)

        for row in rows:
            tbl.add_row(*(str(cell) for cell in row))

        self._console.print(tbl)

    def findings_table(self, findings: Sequence[Any]) -> None:
        """Render findings with severity colouring.

        Expects objects with ``severity``, ``title`` and ``description``
        attributes (e.g. :class:`shared.models.Finding`).
        """
        tbl = Table(
            title="Findings",
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=True,
            padding=(0, 1),
        )
        tbl.add_column("#", style="dim", width=4, justify="right")
        tbl.add_column("Severity", width=10)
        tbl.add_column("Title")
        tbl.add_column("Description", ratio=2)

        for idx, finding in enumerate(findings, start=1):
            sev = getattr(finding, "severity", "INFO")
            sev_name = sev.value if hasattr(sev, "value") else str(sev).upper()
            sev_style = _SEVERITY_STYLES.get(sev_name, "")
            sev_cell = f"[{sev_style}]{sev_name}[/{sev_style}]" if sev_style else sev_name
            tbl.add_row(
                str(idx),
                sev_cell,
                str(getattr(finding, "title", "")),
                str(getattr(finding, "description", "")),
            )

        self._console.print(tbl)

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        for _ in range(count):
            self._console.print()

    def divider(self, style: str = "dim") -> None:
        self._console.rule(style=style)

    def export_text(self) -> str:
        """Export recorded console output as plain text (requires ``record=True``)."""
        return self._console.export_text()
