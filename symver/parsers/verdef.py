"""
Version Definition Section
===========================

Decoder for ``.gnu.version_d`` (``SHT_GNU_verdef``), the table of versions
an object file provides.  The section is a chain of ``Elf_Verdef`` records
linked by ``vd_next``; each definition owns a chain of ``Elf_Verdaux``
records linked by ``vda_next``.  The first auxiliary entry names the
version itself, later ones name its predecessors.
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
from symver.parsers.structs import (
    VER_DEF_CURRENT,
    VER_FLG_BASE,
    VER_FLG_WEAK,
    Verdaux,
    Verdef,
)

_log = logging.getLogger(__name__)


class VersionDefinitionAux:
    """One ``Elf_Verdaux`` entry with a lazily resolved name."""

    __slots__ = ("header", "offset", "_name")

    def __init__(self, header: Verdaux, offset: int, name: LazyName) -> None:
        self.header = header
        self.offset = offset
        self._name = name

    @property
    def name(self) -> str:
        """Version name, read from the string table on first access."""
        return self._name.resolve()

    def __repr__(self) -> str:
        return f"VersionDefinitionAux(offset=0x{self.offset:x}, name={self._name!r})"


class VersionDefinition:
    """One ``Elf_Verdef`` record and its auxiliary chain."""

    def __init__(
        self,
        header: Verdef,
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
        self._aux_walker: ChainWalker[VersionDefinitionAux] = ChainWalker(
            stream,
            self._decode_aux,
            lambda aux: aux.header.vda_next,
            Verdaux.size,
        )

    @property
    def num_aux_entries(self) -> int:
        """Declared number of auxiliary entries (``vd_cnt``)."""
        return self.header.vd_cnt

    @property
    def index(self) -> int:
        """Version index this definition assigns (``vd_ndx``)."""
        return self.header.vd_ndx

    @property
    def flags(self) -> int:
        return self.header.vd_flags

    @property
    def is_base(self) -> bool:
        """Whether this is the file's base version definition."""
        return bool(self.header.vd_flags & VER_FLG_BASE)

    @property
    def is_weak(self) -> bool:
        return bool(self.header.vd_flags & VER_FLG_WEAK)

    @property
    def name(self) -> str:
        """Name of the defined version (first auxiliary entry)."""
        entries = self.aux_entries()
        return entries[0].name if entries else ""

    def iter_aux_entries(self) -> Iterator[VersionDefinitionAux]:
        """Lazily walk the auxiliary chain.

        Raises:
            AuxCountMismatch: Once the walk ends, if the number of entries
                found differs from ``vd_cnt``.
        """
        start = self.offset + self.header.vd_aux
        found = 0
        for aux in self._aux_walker.walk(start, self._section_end - start):
            found += 1
            yield aux
        if found != self.header.vd_cnt:
            raise AuxCountMismatch(self.header.vd_cnt, found, self.offset)

    def aux_entries(self) -> list[VersionDefinitionAux]:
        """All auxiliary entries, in chain order."""
        return list(self.iter_aux_entries())

    def _decode_aux(self, stream: SectionStream, offset: int) -> VersionDefinitionAux:
        verdaux = Verdaux.unpack(stream.read_at(offset, Verdaux.size), self._endian)
        return VersionDefinitionAux(
            verdaux, offset, LazyName(verdaux.vda_name, self._strtab)
        )

    def __repr__(self) -> str:
        return (
            f"VersionDefinition(offset=0x{self.offset:x}, ndx={self.header.vd_ndx}, "
            f"cnt={self.header.vd_cnt})"
        )


class VersionDefinitionSection(Section):
    """The ``.gnu.version_d`` section.

    Usage::

        verdef = VersionDefinitionSection(header, stream, section_at=image.section_at)
        for definition in verdef.iter_definitions():
            print(definition.index, [aux.name for aux in definition.aux_entries()])
    """

    def __init__(
        self,
        header: SectionHeader,
        stream: SectionStream,
        section_at: Optional[SectionLookup] = None,
    ) -> None:
        super().__init__(header, stream, section_at)
        self._strtab = LinkedStringTable(self)
        self._walker: ChainWalker[VersionDefinition] = ChainWalker(
            stream,
            self._decode_definition,
            lambda definition: definition.header.vd_next,
            Verdef.size,
        )

    def iter_definitions(self) -> Iterator[VersionDefinition]:
        """Lazily walk every version definition in the section.

        Raises:
            UnsupportedFormatVersion: If a record's ``vd_version`` is not 1.
            MalformedChain: If the ``vd_next`` chain is corrupt.
        """
        yield from self._walker.walk(self.header.offset, self.header.size)

    def definitions(self) -> list[VersionDefinition]:
        """All version definitions, in chain order."""
        return list(self.iter_definitions())

    def version_names(self) -> dict[int, str]:
        """Map each defined version index to its name."""
        return {d.index: d.name for d in self.iter_definitions()}

    def string_table(self) -> StringTableSection:
        """The linked string table (fetched once, then memoised)."""
        return self._strtab()

    def _decode_definition(self, stream: SectionStream, offset: int) -> VersionDefinition:
        verdef = Verdef.unpack(stream.read_at(offset, Verdef.size), self.header.endian)
        if verdef.vd_version != VER_DEF_CURRENT:
            raise UnsupportedFormatVersion("verdef", verdef.vd_version, offset)

        _log.debug(
            "verdef at 0x%x: ndx=%d cnt=%d next=%d",
            offset, verdef.vd_ndx, verdef.vd_cnt, verdef.vd_next,
        )
        return VersionDefinition(
            verdef,
            stream,
            offset,
            self.header.end,
            self._strtab,
            self.header.endian,
        )
