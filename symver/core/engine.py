"""
Symver Analysis Engine
=======================

Orchestrates the decoding of an ELF file's symbol-versioning metadata.

Analysis Pipeline:
    1. Open the file and locate sections through :class:`ELFImage`
    2. Decode ``.gnu.version_d`` (definitions and their aux chains)
    3. Decode ``.gnu.version_r`` (requirements and their aux chains)
    4. Decode ``.gnu.version`` and name every symbol's version
    5. Generate findings (structural errors, hash mismatches, dangling
       version indices, table size mismatches, hidden symbols)

A structural error in one section stops the decoding of that section
only; nothing decoded from it is kept, and the error is reported as a
CRITICAL finding.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from shared.config import ToolkitConfig
from shared.logger import ToolLogger
from shared.models import Finding, ScanResult, Severity

from symver.core.errors import SymbolVersionError
from symver.core.models import (
    AuxInfo,
    DefinitionInfo,
    RequirementInfo,
    SectionSummary,
    SymbolVersionInfo,
    VersioningReport,
)
from symver.parsers.elf_image import ELFImage
from symver.parsers.section import Section
from symver.parsers.stream import SectionStream
from symver.parsers.structs import (
    SHT_GNU_VERDEF,
    SHT_GNU_VERNEED,
    SHT_GNU_VERSYM,
    VER_NDX_GLOBAL,
    VER_NDX_LOCAL,
    elf_hash,
)
from symver.parsers.verdef import VersionDefinitionSection
from symver.parsers.verneed import VersionRequirementSection
from symver.parsers.versym import VersionSymbolSection

_SECTION_KINDS: dict[int, str] = {
    SHT_GNU_VERDEF: "verdef",
    SHT_GNU_VERNEED: "verneed",
    SHT_GNU_VERSYM: "versym",
}

_RESERVED_NAMES: dict[int, str] = {
    VER_NDX_LOCAL: "*local*",
    VER_NDX_GLOBAL: "*global*",
}


class SymverEngine:
    """Decode and assess the symbol-versioning metadata of ELF files.

    Usage::

        engine = SymverEngine()
        scan = await engine.analyze("/usr/lib/libc.so.6")

    Or synchronously::

        scan = engine.analyze_sync("/usr/lib/libc.so.6")
        report = VersioningReport.model_validate(scan.metadata["versioning"])
    """

    def __init__(
        self,
        config: ToolkitConfig | None = None,
        logger: ToolLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Toolkit configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
        """
        self._config: ToolkitConfig = config or ToolkitConfig()
        self._logger: ToolLogger = logger or ToolLogger("symver.engine")

    # ------------------------------------------------------------------ #
    #  Entry points
    # ------------------------------------------------------------------ #

    async def analyze(self, file_path: str) -> ScanResult:
        """Analyse *file_path* and wrap the report in a :class:`ScanResult`.

        Decoding is blocking I/O and runs in the default executor.

        Returns:
            ScanResult whose ``metadata["versioning"]`` holds the
            serialised :class:`VersioningReport`.
        """
        scan = ScanResult(tool_name="symver", target=file_path)
        self._logger.info("Starting analysis of %s", file_path)

        try:
            path = Path(file_path)
            if not path.exists():
                scan.summary = f"File not found: {file_path}"
                self._logger.error(scan.summary)
                return scan

            file_size = path.stat().st_size
            max_size = self._config.symver.max_file_size
            if file_size > max_size:
                scan.summary = (
                    f"File too large: {file_size:,} bytes "
                    f"(max: {max_size:,} bytes)"
                )
                self._logger.error(scan.summary)
                return scan

            loop = asyncio.get_running_loop()
            report = await loop.run_in_executor(None, self.analyze_file, str(path))

            for finding in self._generate_findings(report):
                scan.add_finding(finding)
            scan.metadata = {"versioning": report.model_dump(mode="json")}
            scan.finalize(self._summarize(report, scan))
            self._logger.info(scan.summary)

        except SymbolVersionError as exc:
            scan.summary = f"Analysis failed: {exc}"
            scan.end_time = datetime.now(timezone.utc)
            self._logger.error(scan.summary)
        except OSError as exc:
            scan.summary = f"Analysis failed: {exc}"
            scan.end_time = datetime.now(timezone.utc)
            self._logger.exception(scan.summary)

        return scan

    def analyze_sync(self, file_path: str) -> ScanResult:
        """Synchronous wrapper around :meth:`analyze`."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            import concurrent.futures
            with concurrent.futures.ThreadPoolExecutor() as pool:
                return pool.submit(asyncio.run, self.analyze(file_path)).result()
        return asyncio.run(self.analyze(file_path))

    def analyze_file(self, file_path: str) -> VersioningReport:
        """Decode the versioning sections of the file at *file_path*."""
        with open(file_path, "rb") as fh:
            report = self.analyze_stream(SectionStream(fh), file_path)
        report.size = Path(file_path).stat().st_size
        return report

    def analyze_data(self, data: bytes, file_path: str = "<memory>") -> VersioningReport:
        """Decode an in-memory ELF image.  Useful for testing."""
        report = self.analyze_stream(SectionStream.from_bytes(data), file_path)
        report.size = len(data)
        return report

    def analyze_stream(self, stream: SectionStream, file_path: str) -> VersioningReport:
        """Run the decoding pipeline over an open stream.

        Raises:
            ELFFormatError: If the section headers cannot be located.
        """
        image = ELFImage(stream)
        report = VersioningReport(path=file_path, bits=image.bits, endian=image.endian)
        settings = self._config.symver

        verdef = image.section_by_type(SHT_GNU_VERDEF)
        verneed = image.section_by_type(SHT_GNU_VERNEED)
        versym = image.section_by_type(SHT_GNU_VERSYM)

        for section in (verdef, verneed, versym):
            if section is not None:
                report.sections.append(self._summarize_section(section))

        if not report.sections:
            self._logger.info("%s carries no symbol versioning sections", file_path)
            return report

        if isinstance(verdef, VersionDefinitionSection) and settings.decode_definitions:
            with self._logger.operation(verdef.header.name or "verdef"):
                self._guarded(report, verdef, self._decode_definitions)

        if isinstance(verneed, VersionRequirementSection) and settings.decode_requirements:
            with self._logger.operation(verneed.header.name or "verneed"):
                self._guarded(report, verneed, self._decode_requirements)

        if isinstance(versym, VersionSymbolSection) and settings.decode_symbols:
            with self._logger.operation(versym.header.name or "versym"):
                self._guarded(report, versym, self._decode_symbols)

        return report

    # ------------------------------------------------------------------ #
    #  Section decoders
    # ------------------------------------------------------------------ #

    def _guarded(
        self,
        report: VersioningReport,
        section: Section,
        decode: Callable[[VersioningReport, Any], None],
    ) -> None:
        """Run *decode*; on a decoding error record it and keep nothing."""
        try:
            with self._logger.timed(f"decode {section.header.name}"):
                decode(report, section)
        except SymbolVersionError as exc:
            message = f"{section.header.name or type(section).__name__}: {exc}"
            report.errors.append(message)
            self._logger.error("Structural error in %s", message)

    def _decode_definitions(
        self, report: VersioningReport, section: VersionDefinitionSection
    ) -> None:
        verify = self._config.symver.verify_hashes
        decoded: list[DefinitionInfo] = []
        for definition in section.iter_definitions():
            aux = [
                AuxInfo(offset=entry.offset, name=entry.name)
                for entry in definition.iter_aux_entries()
            ]
            name = aux[0].name if aux else ""
            header = definition.header
            decoded.append(DefinitionInfo(
                offset=definition.offset,
                index=header.vd_ndx,
                flags=header.vd_flags,
                is_base=definition.is_base,
                is_weak=definition.is_weak,
                hash=header.vd_hash,
                hash_ok=_check_hash(name, header.vd_hash) if verify and aux else None,
                name=name,
                aux_count=header.vd_cnt,
                aux=aux,
            ))
        report.definitions = decoded
        self._logger.debug("Decoded %d version definitions", len(decoded))

    def _decode_requirements(
        self, report: VersioningReport, section: VersionRequirementSection
    ) -> None:
        verify = self._config.symver.verify_hashes
        decoded: list[RequirementInfo] = []
        for requirement in section.iter_requirements():
            aux: list[AuxInfo] = []
            for entry in requirement.iter_aux_entries():
                aux.append(AuxInfo(
                    offset=entry.offset,
                    name=entry.name,
                    index=entry.index,
                    flags=entry.header.vna_flags,
                    hash=entry.header.vna_hash,
                    hash_ok=_check_hash(entry.name, entry.header.vna_hash) if verify else None,
                ))
            decoded.append(RequirementInfo(
                offset=requirement.offset,
                file=requirement.required_file,
                aux_count=requirement.num_aux_entries,
                aux=aux,
            ))
        report.requirements = decoded
        self._logger.debug("Decoded %d version requirements", len(decoded))

    def _decode_symbols(
        self, report: VersioningReport, section: VersionSymbolSection
    ) -> None:
        # Indices 0 and 1 are reserved even when the base definition claims 1
        names = {**report.version_names(), **_RESERVED_NAMES}
        decoded: list[SymbolVersionInfo] = []
        for index in range(section.entry_count()):
            value = section.value_at(index)
            version_index = section.version_index(index)
            assert value is not None and version_index is not None
            decoded.append(SymbolVersionInfo(
                index=index,
                value=value,
                version_index=version_index,
                local=section.is_local(index),
                defined=section.is_version_defined(index),
                hidden=section.is_hidden(index),
                version_name=names.get(version_index, ""),
            ))
        report.symbols = decoded
        report.symbol_table_entries = self._linked_entry_count(section)
        self._logger.debug("Decoded %d version symbol entries", len(decoded))

    def _linked_entry_count(self, section: VersionSymbolSection) -> Optional[int]:
        """Entry count of the symbol table ``.gnu.version`` is linked to."""
        try:
            symtab = section.symbol_table()
        except SymbolVersionError as exc:
            self._logger.warning("Cannot reach linked symbol table: %s", exc)
            return None
        header = symtab.header
        if header.entsize <= 0:
            return None
        return header.size // header.entsize

    # ------------------------------------------------------------------ #
    #  Findings
    # ------------------------------------------------------------------ #

    def _generate_findings(self, report: VersioningReport) -> list[Finding]:
        findings: list[Finding] = []

        for error in report.errors:
            findings.append(Finding(
                severity=Severity.CRITICAL,
                title="Symbol versioning metadata unusable",
                description=error,
                recommendation=(
                    "Treat the file's versioning tables as corrupt; "
                    "rebuild or re-link the object."
                ),
            ))

        if not report.has_versioning:
            findings.append(Finding(
                severity=Severity.INFO,
                title="No symbol versioning",
                description="The file has no .gnu.version, .gnu.version_d or .gnu.version_r section.",
            ))
            return findings

        bad_hashes = [d.name for d in report.definitions if d.hash_ok is False]
        bad_hashes += [
            a.name for r in report.requirements for a in r.aux if a.hash_ok is False
        ]
        if bad_hashes:
            findings.append(Finding(
                severity=Severity.MEDIUM,
                title="Version name hash mismatch",
                description=(
                    f"{len(bad_hashes)} version record(s) carry a hash that does "
                    f"not match the ELF hash of their name."
                ),
                evidence=bad_hashes,
            ))

        if report.symbols:
            known = set(report.version_names()) | set(_RESERVED_NAMES)
            dangling = sorted({
                s.version_index for s in report.symbols if s.version_index not in known
            })
            if dangling and not report.errors:
                findings.append(Finding(
                    severity=Severity.MEDIUM,
                    title="Dangling version index",
                    description=(
                        "Symbols refer to version indices that no definition "
                        "or requirement assigns."
                    ),
                    evidence=dangling,
                ))

            if (
                report.symbol_table_entries is not None
                and report.symbol_table_entries != len(report.symbols)
            ):
                findings.append(Finding(
                    severity=Severity.HIGH,
                    title="Version table size mismatch",
                    description=(
                        f".gnu.version has {len(report.symbols)} entries but the "
                        f"linked symbol table has {report.symbol_table_entries}."
                    ),
                ))

            if report.hidden_count:
                findings.append(Finding(
                    severity=Severity.INFO,
                    title="Hidden symbol versions",
                    description=(
                        f"{report.hidden_count} symbol(s) are hidden from "
                        f"default version resolution."
                    ),
                ))

        return findings

    @staticmethod
    def _summarize(report: VersioningReport, scan: ScanResult) -> str:
        parts = [
            f"Definitions: {len(report.definitions)}",
            f"Requirements: {len(report.requirements)}",
            f"Versioned symbols: {len(report.symbols)}",
            f"Hidden: {report.hidden_count}",
            f"Findings: {scan.finding_count}",
        ]
        if report.errors:
            parts.insert(0, f"Structural errors: {len(report.errors)}")
        return " | ".join(parts)

    @staticmethod
    def _summarize_section(section: Section) -> SectionSummary:
        header = section.header
        return SectionSummary(
            name=header.name,
            kind=_SECTION_KINDS.get(header.type, ""),
            offset=header.offset,
            size=header.size,
            entsize=header.entsize,
            link=header.link,
            endian=header.endian,
        )


def _check_hash(name: str, expected: int) -> bool:
    return elf_hash(name.encode("utf-8")) == expected
