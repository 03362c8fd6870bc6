"""
Version Symbol Section
=======================

Decoder for ``.gnu.version`` (``SHT_GNU_versym``): one unsigned 16-bit
value per entry of the linked dynamic symbol table.

Value semantics:
    - ``0``               -- symbol is local (``VER_NDX_LOCAL``)
    - ``1``               -- symbol is global, base version
    - ``value & 0x7fff``  -- version index (> 1 means a specific version)
    - ``value & 0x8000``  -- hidden from default version resolution

Values are read lazily and cached per index; symbol tables can be large
and callers usually query a sparse subset.
"""

from __future__ import annotations

from typing import Any, Optional

from symver.parsers.section import Section, SectionHeader, SectionLookup
from symver.parsers.stream import SectionStream
from symver.parsers.structs import VERSYM_HIDDEN, VERSYM_VERSION, unpack_versym


class VersionSymbolSection(Section):
    """The ``.gnu.version`` section.

    Usage::

        versym = VersionSymbolSection(header, stream, section_at=image.section_at)
        versym.entry_count()        # 75
        versym.value_at(3)          # 0x8002
        versym.is_hidden(3)         # True
    """

    def __init__(
        self,
        header: SectionHeader,
        stream: SectionStream,
        section_at: Optional[SectionLookup] = None,
    ) -> None:
        super().__init__(header, stream, section_at)
        self._values: dict[int, int] = {}
        self._symtab: Any = None

    def entry_count(self) -> int:
        """Number of version entries (section size / entry stride)."""
        if self.header.entsize <= 0:
            return 0
        return self.header.size // self.header.entsize

    def value_at(self, index: int) -> Optional[int]:
        """Raw 16-bit value of entry *index*, or ``None`` when out of range."""
        if not 0 <= index < self.entry_count():
            return None
        value = self._values.get(index)
        if value is None:
            offset = self.header.offset + index * self.header.entsize
            value = unpack_versym(self.stream.read_at(offset, 2), self.header.endian)
            self._values[index] = value
        return value

    def version_index(self, index: int) -> Optional[int]:
        """Version index of entry *index* with the hidden bit masked off."""
        value = self.value_at(index)
        if value is None:
            return None
        return value & VERSYM_VERSION

    def is_local(self, index: int) -> bool:
        """Whether the symbol is locally scoped."""
        return self.value_at(index) == 0

    def is_version_defined(self, index: int) -> bool:
        """Whether the symbol is bound to a specific, non-base version."""
        value = self.value_at(index)
        return value is not None and (value & VERSYM_VERSION) > 1

    def is_hidden(self, index: int) -> bool:
        """Whether the symbol is hidden from default version resolution."""
        value = self.value_at(index)
        return value is not None and (value & VERSYM_HIDDEN) != 0

    def symbol_table(self) -> Any:
        """The linked symbol-table section (fetched once, then memoised)."""
        if self._symtab is None:
            self._symtab = self.linked_section()
        return self._symtab
