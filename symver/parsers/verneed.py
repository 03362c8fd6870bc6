"""
Version Requirement Section
============================

Decoder for ``.gnu.version_r`` (``SHT_GNU_verneed``), the table of versions
an object file needs from its dependencies.  Each ``Elf_Verneed`` record
names one required file and owns a chain of ``Elf_Vernaux`` entries, one
per version needed from that file.  ``vna_other`` is the version index the
``.gnu.version`` table uses to refer to the entry.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from symver.core.errors import AuxCountMismatch, UnsupportedFormatVersion
from symver.parsers.chain import ChainWalker
from symver.parsers.section import (
    LazyName,
    LinkedStringTable,
    Section,
    SectionHeader,
    SectionLookup,
    StringTableSection,
)
from symver.parsers.stream import SectionStream
from symver.parsers.structs import VER_FLG_WEAK, VER_NEED_CURRENT, Verneed, Vernaux

_log = logging.getLogger(__name__)


class VersionRequirementAux:
    """One ``Elf_Vernaux`` entry with a lazily resolved name."""

    __slots__ = ("header", "offset", "_name")

    def __init__(self, header: Vernaux, offset: int, name: LazyName) -> None:
        self.header = header
        self.offset = offset
        self._name = name

    @property
    def name(self) -> str:
        """Required version name, read from the string table on first access."""
        return self._name.resolve()

    @property
    def index(self) -> int:
        """Version index assigned to this requirement (``vna_other``)."""
        return self.header.vna_other

    @property
    def is_weak(self) -> bool:
        return bool(self.header.vna_flags & VER_FLG_WEAK)

    def __repr__(self) -> str:
        return f"VersionRequirementAux(offset=0x{self.offset:x}, name={self._name!r})"


class VersionRequirement:
    """One ``Elf_Verneed`` record and its auxiliary chain."""

    def __init__(
        self,
        header: Verneed,
        stream: SectionStream,
        offset: int,
        section_end: int,
        strtab: LinkedStringTable,
        endian: str,
    ) -> None:
        self.header = header
        self.stream = stream
        self.offset = offset
        self._section_end = section_end
        self._strtab = strtab
        self._endian = endian
        self._file = LazyName(header.vn_file, strtab)
        self._aux_walker: ChainWalker[VersionRequirementAux] = ChainWalker(
            stream,
            self._decode_aux,
            lambda aux: aux.header.vna_next,
            Vernaux.size,
        )

    @property
    def num_aux_entries(self) -> int:
        """Declared number of auxiliary entries (``vn_cnt``)."""
        return self.header.vn_cnt

    @property
    def required_file(self) -> str:
        """Name of the file this requirement depends on (``vn_file``)."""
        return self._file.resolve()

    def iter_aux_entries(self) -> Iterator[VersionRequirementAux]:
        """Lazily walk the auxiliary chain.

        Raises:
            AuxCountMismatch: Once the walk ends, if the number of entries
                found differs from ``vn_cnt``.
        """
        start = self.offset + self.header.vn_aux
        found = 0
        for aux in self._aux_walker.walk(start, self._section_end - start):
            found += 1
            yield aux
        if found != self.header.vn_cnt:
            raise AuxCountMismatch(self.header.vn_cnt, found, self.offset)

    def aux_entries(self) -> list[VersionRequirementAux]:
        """All auxiliary entries, in chain order."""
        return list(self.iter_aux_entries())

    def _decode_aux(self, stream: SectionStream, offset: int) -> VersionRequirementAux:
        vernaux = Vernaux.unpack(stream.read_at(offset, Vernaux.size), self._endian)
        return VersionRequirementAux(
            vernaux, offset, LazyName(vernaux.vna_name, self._strtab)
        )

    def __repr__(self) -> str:
        return (
            f"VersionRequirement(offset=0x{self.offset:x}, file={self._file!r}, "
            f"cnt={self.header.vn_cnt})"
        )


class VersionRequirementSection(Section):
    """The ``.gnu.version_r`` section.

    Usage::

        verneed = VersionRequirementSection(header, stream, section_at=image.section_at)
        for req in verneed.iter_requirements():
            print(req.required_file, [aux.name for aux in req.aux_entries()])
    """

    def __init__(
        self,
        header: SectionHeader,
        stream: SectionStream,
        section_at: Optional[SectionLookup] = None,
    ) -> None:
        super().__init__(header, stream, section_at)
        self._strtab = LinkedStringTable(self)
        self._walker: ChainWalker[VersionRequirement] = ChainWalker(
            stream,
            self._decode_requirement,
            lambda requirement: requirement.header.vn_next,
            Verneed.size,
        )

    def iter_requirements(self) -> Iterator[VersionRequirement]:
        """Lazily walk every version requirement in the section.

        Raises:
            UnsupportedFormatVersion: If a record's ``vn_version`` is not 1.
            MalformedChain: If the ``vn_next`` chain is corrupt.
        """
        yield from self._walker.walk(self.header.offset, self.header.size)

    def requirements(self) -> list[VersionRequirement]:
        """All version requirements, in chain order."""
        return list(self.iter_requirements())

    def dependencies(self) -> list[str]:
        """Names of the files versions are required from."""
        return [req.required_file for req in self.iter_requirements()]

    def version_names(self) -> dict[int, str]:
        """Map each required version index (``vna_other``) to its name."""
        names: dict[int, str] = {}
        for req in self.iter_requirements():
            for aux in req.iter_aux_entries():
                names[aux.index] = aux.name
        return names

    def string_table(self) -> StringTableSection:
        """The linked string table (fetched once, then memoised)."""
        return self._strtab()

    def _decode_requirement(self, stream: SectionStream, offset: int) -> VersionRequirement:
        verneed = Verneed.unpack(stream.read_at(offset, Verneed.size), self.header.endian)
        if verneed.vn_version != VER_NEED_CURRENT:
            raise UnsupportedFormatVersion("verneed", verneed.vn_version, offset)

        _log.debug(
            "verneed at 0x%x: cnt=%d next=%d",
            offset, verneed.vn_cnt, verneed.vn_next,
        )
        return VersionRequirement(
            verneed,
            stream,
            offset,
            self.header.end,
            self._strtab,
            self.header.endian,
        )
