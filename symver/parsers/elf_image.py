"""
ELF Section Locator
====================

Minimal struct-based reader that locates sections in an ELF file so the
version tables can be handed their headers, a stream and a
``section_at`` lookup.

Only the identification bytes, the four section-table fields of the file
header and the section-header entries themselves are read.  Program
headers, symbols, relocations and dynamic entries are never interpreted.
Both ELF32 and ELF64 in either byte order are supported.

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
"""

from __future__ import annotations

import dataclasses
import logging
import struct
from typing import Optional

from symver.core.errors import ELFFormatError, StructureError, TruncatedRecord
from symver.parsers.section import Section, SectionHeader, StringTableSection
from symver.parsers.stream import SectionStream
from symver.parsers.structs import (
    SHT_GNU_VERDEF,
    SHT_GNU_VERNEED,
    SHT_GNU_VERSYM,
    SHT_STRTAB,
    byte_order_prefix,
)
from symver.parsers.verdef import VersionDefinitionSection
from symver.parsers.verneed import VersionRequirementSection
from symver.parsers.versym import VersionSymbolSection

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ELF identification
# ---------------------------------------------------------------------------

ELF_MAGIC: bytes = b"\x7fELF"

ELFCLASS32: int = 1
ELFCLASS64: int = 2

ELFDATA2LSB: int = 1  # Little-endian
ELFDATA2MSB: int = 2  # Big-endian

SHN_UNDEF: int = 0
SHN_XINDEX: int = 0xFFFF

# Offset of e_shoff inside the file header, per class
_SHOFF_OFFSET: dict[int, int] = {ELFCLASS32: 0x20, ELFCLASS64: 0x28}
_SHENTSIZE_OFFSET: dict[int, int] = {ELFCLASS32: 0x2E, ELFCLASS64: 0x3A}

# Elf32_Shdr: 40 bytes, Elf64_Shdr: 64 bytes
_SHDR_FORMAT: dict[int, str] = {ELFCLASS32: "IIIIIIIIII", ELFCLASS64: "IIQQQQIIQQ"}

_SECTION_CLASSES: dict[int, type[Section]] = {
    SHT_STRTAB: StringTableSection,
    SHT_GNU_VERDEF: VersionDefinitionSection,
    SHT_GNU_VERNEED: VersionRequirementSection,
    SHT_GNU_VERSYM: VersionSymbolSection,
}


class ELFImage:
    """Section-header view of an ELF file.

    Usage::

        with open("/usr/lib/libz.so.1", "rb") as fh:
            image = ELFImage(SectionStream(fh))
            verneed = image.section_by_type(SHT_GNU_VERNEED)
            for req in verneed.iter_requirements():
                print(req.required_file)
    """

    def __init__(self, stream: SectionStream) -> None:
        """Read the file header and section-header table.

        Raises:
            ELFFormatError: On bad magic, unknown class / data encoding,
                or a truncated header table.
        """
        self.stream = stream
        self.bits: int = 0
        self.endian: str = "little"
        self._class: int = ELFCLASS32
        self._shstrndx: int = SHN_UNDEF
        self._name_offsets: list[int] = []
        self._headers: list[SectionHeader] = []
        self._sections: dict[int, Section] = {}

        try:
            self._parse_identification()
            self._parse_section_headers()
        except (TruncatedRecord, struct.error) as exc:
            raise ELFFormatError(f"Truncated ELF header: {exc}") from exc

        self._resolve_section_names()

    # ------------------------------------------------------------------ #
    #  Public interface
    # ------------------------------------------------------------------ #

    @property
    def headers(self) -> list[SectionHeader]:
        """All section headers, in table order."""
        return list(self._headers)

    @property
    def num_sections(self) -> int:
        return len(self._headers)

    def section_at(self, index: int) -> Section:
        """Return the section at *index*, typed by ``sh_type``.

        Sections are built once and memoised, so every version table sees
        the same string-table object.

        Raises:
            ELFFormatError: If *index* is outside the section-header table.
        """
        section = self._sections.get(index)
        if section is not None:
            return section
        if not 0 <= index < len(self._headers):
            raise ELFFormatError(
                f"Section index {index} out of range (0..{len(self._headers) - 1})"
            )
        header = self._headers[index]
        cls = _SECTION_CLASSES.get(header.type, Section)
        section = cls(header, self.stream, section_at=self.section_at)
        self._sections[index] = section
        return section

    def section_by_type(self, sh_type: int) -> Optional[Section]:
        """Return the first section with the given ``sh_type``, if any."""
        for header in self._headers:
            if header.type == sh_type:
                return self.section_at(header.index)
        return None

    def section_by_name(self, name: str) -> Optional[Section]:
        """Return the first section with the given name, if any."""
        for header in self._headers:
            if header.name == name:
                return self.section_at(header.index)
        return None

    # ------------------------------------------------------------------ #
    #  Header parsing
    # ------------------------------------------------------------------ #

    def _parse_identification(self) -> None:
        ident = self.stream.read_at(0, 16)
        if ident[:4] != ELF_MAGIC:
            raise ELFFormatError("Not an ELF file (bad magic)")

        ei_class, ei_data = ident[4], ident[5]
        if ei_class not in (ELFCLASS32, ELFCLASS64):
            raise ELFFormatError(f"Unknown ELF class {ei_class}")
        if ei_data not in (ELFDATA2LSB, ELFDATA2MSB):
            raise ELFFormatError(f"Unknown ELF data encoding {ei_data}")

        self._class = ei_class
        self.bits = 64 if ei_class == ELFCLASS64 else 32
        self.endian = "little" if ei_data == ELFDATA2LSB else "big"

    def _parse_section_headers(self) -> None:
        prefix = byte_order_prefix(self.endian)
        addr_fmt = "Q" if self._class == ELFCLASS64 else "I"

        (e_shoff,) = struct.unpack(
            prefix + addr_fmt,
            self.stream.read_at(_SHOFF_OFFSET[self._class], struct.calcsize(addr_fmt)),
        )
        e_shentsize, e_shnum, e_shstrndx = struct.unpack(
            prefix + "HHH",
            self.stream.read_at(_SHENTSIZE_OFFSET[self._class], 6),
        )
        if e_shoff == 0:
            _log.debug("ELF file has no section-header table")
            return

        shdr_fmt = prefix + _SHDR_FORMAT[self._class]
        shdr_size = struct.calcsize(shdr_fmt)
        if e_shentsize < shdr_size:
            raise ELFFormatError(
                f"Section header entry size {e_shentsize} smaller than {shdr_size}"
            )

        def read_entry(i: int) -> tuple[int, ...]:
            return struct.unpack(
                shdr_fmt, self.stream.read_at(e_shoff + i * e_shentsize, shdr_size)
            )

        # Extended numbering: real counts live in section 0
        first = read_entry(0)
        if e_shnum == 0:
            e_shnum = first[5]
        if e_shstrndx == SHN_XINDEX:
            e_shstrndx = first[6]
        self._shstrndx = e_shstrndx

        for i in range(e_shnum):
            (
                sh_name, sh_type, _sh_flags, _sh_addr,
                sh_offset, sh_size, sh_link, _sh_info,
                _sh_addralign, sh_entsize,
            ) = first if i == 0 else read_entry(i)
            self._name_offsets.append(sh_name)
            self._headers.append(SectionHeader(
                offset=sh_offset,
                size=sh_size,
                entsize=sh_entsize,
                link=sh_link,
                endian=self.endian,
                type=sh_type,
                index=i,
            ))
        _log.debug("Read %d section headers at 0x%x", e_shnum, e_shoff)

    def _resolve_section_names(self) -> None:
        """Attach names from the section-header string table."""
        if self._shstrndx == SHN_UNDEF or self._shstrndx >= len(self._headers):
            return

        shstrtab = StringTableSection(self._headers[self._shstrndx], self.stream)
        renamed: list[SectionHeader] = []
        for header, name_offset in zip(self._headers, self._name_offsets):
            try:
                name = shstrtab.name_at(name_offset)
            except StructureError as exc:
                _log.debug("Unnamed section %d: %s", header.index, exc)
                name = ""
            renamed.append(dataclasses.replace(header, name=name))
        self._headers = renamed
