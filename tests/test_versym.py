"""Tests for the .gnu.version decoder."""

from __future__ import annotations

import pytest

from symver.parsers.section import Section, SectionHeader
from symver.parsers.stream import SectionStream
from symver.parsers.versym import VersionSymbolSection

from builders import CountingLookup, pack_versym


class _CountingStream(SectionStream):
    reads = 0

    def read_at(self, offset: int, size: int) -> bytes:
        self.reads += 1
        return super().read_at(offset, size)


def _section(data: bytes, endian: str = "little", entsize: int = 2, **kwargs) -> VersionSymbolSection:
    header = SectionHeader(offset=0, size=len(data), entsize=entsize, endian=endian)
    return VersionSymbolSection(header, SectionStream.from_bytes(data), **kwargs)


class TestVersionSymbolSection:
    def test_big_endian_values(self) -> None:
        section = _section(bytes([0x00, 0x00, 0x00, 0x02, 0x80, 0x02]), "big")
        assert section.entry_count() == 3
        assert section.value_at(0) == 0
        assert section.value_at(1) == 2
        assert section.value_at(2) == 0x8002
        assert section.value_at(3) is None

        assert section.is_local(0)
        assert section.is_version_defined(1) and not section.is_hidden(1)
        assert section.is_version_defined(2) and section.is_hidden(2)

    def test_little_endian_values(self) -> None:
        section = _section(pack_versym([1, 0x8003]))
        assert section.value_at(0) == 1
        assert section.value_at(1) == 0x8003
        assert section.version_index(1) == 3

    @pytest.mark.parametrize(
        "value, local, defined, hidden",
        [
            (0x0000, True, False, False),
            (0x0001, False, False, False),
            (0x0002, False, True, False),
            (0x8002, False, True, True),
            (0x8000, False, False, True),
            (0x8001, False, False, True),
            (0x7FFF, False, True, False),
        ],
    )
    def test_value_semantics(self, value: int, local: bool, defined: bool, hidden: bool) -> None:
        section = _section(pack_versym([value]))
        assert section.is_local(0) is local
        assert section.is_version_defined(0) is defined
        assert section.is_hidden(0) is hidden

    def test_hidden_local_masks_to_index_zero(self) -> None:
        section = _section(pack_versym([0x8000]))
        assert section.version_index(0) == 0
        assert not section.is_version_defined(0)

    def test_out_of_range_is_soft(self) -> None:
        section = _section(pack_versym([2]))
        assert section.value_at(5) is None
        assert section.value_at(-1) is None
        assert section.version_index(5) is None
        assert not section.is_local(5)
        assert not section.is_version_defined(5)
        assert not section.is_hidden(5)

    def test_zero_entsize_means_no_entries(self) -> None:
        section = _section(pack_versym([2, 3]), entsize=0)
        assert section.entry_count() == 0
        assert section.value_at(0) is None

    def test_wider_stride(self) -> None:
        data = pack_versym([2]) + b"\xff\xff" + pack_versym([3]) + b"\xff\xff"
        section = _section(data, entsize=4)
        assert section.entry_count() == 2
        assert section.value_at(1) == 3

    def test_values_are_cached(self) -> None:
        stream = _CountingStream.from_bytes(pack_versym([2, 3]))
        section = VersionSymbolSection(SectionHeader(offset=0, size=4, entsize=2), stream)
        assert section.value_at(1) == 3
        assert section.value_at(1) == 3
        assert section.is_version_defined(1)
        assert stream.reads == 1

    def test_symbol_table_memoised(self) -> None:
        dynsym = Section(SectionHeader(offset=0, size=48, entsize=24), SectionStream.from_bytes(b""))
        lookup = CountingLookup({7: dynsym})
        header = SectionHeader(offset=0, size=4, entsize=2, link=7)
        section = VersionSymbolSection(header, SectionStream.from_bytes(pack_versym([0, 1])), section_at=lookup)
        assert section.symbol_table() is dynsym
        assert section.symbol_table() is dynsym
        assert lookup.calls == [7]
