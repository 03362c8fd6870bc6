"""Tests for the .gnu.version_d decoder."""

from __future__ import annotations

import pytest

from symver.core.errors import (
    AuxCountMismatch,
    MalformedChain,
    StructureError,
    UnsupportedFormatVersion,
)
from symver.parsers.structs import VER_FLG_BASE, VER_FLG_WEAK
from symver.parsers.verdef import VersionDefinitionSection

from builders import StringTableBuilder, pack_verdaux, pack_verdef, standalone_table


def _strtab() -> StringTableBuilder:
    strtab = StringTableBuilder()
    for name in ("libfoo.so.1", "FOO_1.0", "FOO_1.1"):
        strtab.add(name)
    return strtab


def _two_definitions(endian: str = "little") -> tuple[bytes, StringTableBuilder]:
    """Two definitions back to back, their aux entries after both headers."""
    strtab = _strtab()
    data = (
        pack_verdef(endian, flags=VER_FLG_BASE, ndx=1, cnt=1, aux=40, next=20)
        + pack_verdef(endian, ndx=2, cnt=1, aux=28, next=0)
        + pack_verdaux(endian, name=strtab["libfoo.so.1"])
        + pack_verdaux(endian, name=strtab["FOO_1.0"])
    )
    return data, strtab


class TestVersionDefinitionSection:
    def test_two_chained_definitions(self) -> None:
        data, strtab = _two_definitions()
        section, _ = standalone_table(VersionDefinitionSection, data, strtab)

        definitions = section.definitions()
        assert len(definitions) == 2
        assert [len(d.aux_entries()) for d in definitions] == [1, 1]
        assert [d.index for d in definitions] == [1, 2]
        assert [d.name for d in definitions] == ["libfoo.so.1", "FOO_1.0"]

    def test_big_endian(self) -> None:
        data, strtab = _two_definitions("big")
        section, _ = standalone_table(VersionDefinitionSection, data, strtab, "big")
        assert section.version_names() == {1: "libfoo.so.1", 2: "FOO_1.0"}

    def test_flags(self) -> None:
        strtab = _strtab()
        data = (
            pack_verdef(flags=VER_FLG_BASE, ndx=1, next=28)
            + pack_verdaux(name=strtab["libfoo.so.1"])
            + pack_verdef(flags=VER_FLG_WEAK, ndx=2)
            + pack_verdaux(name=strtab["FOO_1.0"])
        )
        section, _ = standalone_table(VersionDefinitionSection, data, strtab)
        base, weak = section.definitions()
        assert base.is_base and not base.is_weak
        assert weak.is_weak and not weak.is_base
        assert weak.flags == VER_FLG_WEAK

    def test_predecessor_aux_entries(self) -> None:
        strtab = _strtab()
        data = (
            pack_verdef(ndx=3, cnt=2)
            + pack_verdaux(name=strtab["FOO_1.1"], next=8)
            + pack_verdaux(name=strtab["FOO_1.0"])
        )
        section, _ = standalone_table(VersionDefinitionSection, data, strtab)
        (definition,) = section.definitions()
        assert definition.num_aux_entries == 2
        assert [a.name for a in definition.aux_entries()] == ["FOO_1.1", "FOO_1.0"]
        assert definition.name == "FOO_1.1"

    def test_rewalk_is_idempotent(self) -> None:
        data, strtab = _two_definitions()
        section, _ = standalone_table(VersionDefinitionSection, data, strtab)
        first = section.definitions()
        second = section.definitions()
        assert [d.offset for d in first] == [d.offset for d in second]
        assert all(a is b for a, b in zip(first, second))

    def test_unsupported_version(self) -> None:
        strtab = _strtab()
        data = pack_verdef(version=2) + pack_verdaux(name=strtab["FOO_1.0"])
        section, _ = standalone_table(VersionDefinitionSection, data, strtab)
        with pytest.raises(UnsupportedFormatVersion, match="verdef version 2"):
            section.definitions()

    def test_unsupported_version_mid_chain(self) -> None:
        strtab = _strtab()
        data = (
            pack_verdef(ndx=1, next=28)
            + pack_verdaux(name=strtab["libfoo.so.1"])
            + pack_verdef(version=0, ndx=2)
            + pack_verdaux(name=strtab["FOO_1.0"])
        )
        section, _ = standalone_table(VersionDefinitionSection, data, strtab)
        seen = []
        with pytest.raises(UnsupportedFormatVersion):
            for definition in section.iter_definitions():
                seen.append(definition.index)
        assert seen == [1]

    def test_aux_count_mismatch(self) -> None:
        strtab = _strtab()
        data = pack_verdef(cnt=2) + pack_verdaux(name=strtab["FOO_1.0"])
        section, _ = standalone_table(VersionDefinitionSection, data, strtab)
        (definition,) = section.definitions()
        with pytest.raises(AuxCountMismatch) as exc_info:
            definition.aux_entries()
        assert exc_info.value.declared == 2
        assert exc_info.value.parsed == 1

    def test_aux_chain_bounded_by_section(self) -> None:
        strtab = _strtab()
        data = pack_verdef(cnt=1, aux=20) + pack_verdaux(name=strtab["FOO_1.0"])[:4]
        section, _ = standalone_table(VersionDefinitionSection, data, strtab)
        (definition,) = section.definitions()
        with pytest.raises(MalformedChain):
            definition.aux_entries()


class TestNameResolution:
    def test_names_are_lazy(self) -> None:
        data, strtab = _two_definitions()
        section, lookup = standalone_table(VersionDefinitionSection, data, strtab)
        section.definitions()
        assert lookup.calls == []

    def test_string_table_fetched_once(self) -> None:
        data, strtab = _two_definitions()
        section, lookup = standalone_table(VersionDefinitionSection, data, strtab)
        aux = section.definitions()[0].aux_entries()[0]

        first = aux.name
        second = aux.name
        assert first == "libfoo.so.1"
        assert first is second
        assert section.definitions()[1].name == "FOO_1.0"
        assert lookup.calls == [1]

    def test_string_table_accessor(self) -> None:
        data, strtab = _two_definitions()
        section, lookup = standalone_table(VersionDefinitionSection, data, strtab)
        table = section.string_table()
        assert table.name_at(strtab["FOO_1.1"]) == "FOO_1.1"
        assert section.string_table() is table
        assert lookup.calls == [1]

    def test_link_to_non_string_table(self) -> None:
        data, strtab = _two_definitions()
        section, _ = standalone_table(VersionDefinitionSection, data, strtab)
        broken = VersionDefinitionSection(
            section.header, section.stream, section_at=lambda index: object()
        )
        with pytest.raises(StructureError, match="not a string table"):
            broken.definitions()[0].name

    def test_missing_lookup(self) -> None:
        data, strtab = _two_definitions()
        section, _ = standalone_table(VersionDefinitionSection, data, strtab)
        orphan = VersionDefinitionSection(section.header, section.stream)
        assert len(orphan.definitions()) == 2
        with pytest.raises(StructureError, match="no section lookup"):
            orphan.definitions()[0].name
