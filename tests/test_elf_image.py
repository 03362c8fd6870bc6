"""Tests for the ELF section locator."""

from __future__ import annotations

import pytest

from symver.core.errors import ELFFormatError
from symver.parsers.elf_image import ELFImage
from symver.parsers.section import StringTableSection
from symver.parsers.stream import SectionStream
from symver.parsers.structs import SHT_GNU_VERDEF, SHT_GNU_VERNEED, SHT_GNU_VERSYM
from symver.parsers.verdef import VersionDefinitionSection
from symver.parsers.verneed import VersionRequirementSection
from symver.parsers.versym import VersionSymbolSection

from builders import (
    DYNSTR_INDEX,
    VERDEF_INDEX,
    build_plain_elf,
    build_versioned_elf,
)


def _image(data: bytes) -> ELFImage:
    return ELFImage(SectionStream.from_bytes(data))


@pytest.mark.parametrize("bits, endian", [(32, "little"), (64, "big"), (64, "little"), (32, "big")])
def test_locates_version_sections(bits: int, endian: str) -> None:
    image = _image(build_versioned_elf(bits, endian))
    assert image.bits == bits
    assert image.endian == endian

    verdef = image.section_by_type(SHT_GNU_VERDEF)
    verneed = image.section_by_type(SHT_GNU_VERNEED)
    versym = image.section_by_type(SHT_GNU_VERSYM)
    assert isinstance(verdef, VersionDefinitionSection)
    assert isinstance(verneed, VersionRequirementSection)
    assert isinstance(versym, VersionSymbolSection)

    assert verdef.version_names() == {1: "libfoo.so.1", 2: "FOO_1.0", 3: "FOO_1.1"}
    assert verneed.dependencies() == ["libc.so.6"]
    assert verneed.version_names() == {4: "GLIBC_2.2.5"}
    assert [versym.value_at(i) for i in range(versym.entry_count())] == [0, 1, 2, 0x8003, 4]


def test_section_names() -> None:
    image = _image(build_versioned_elf())
    names = [h.name for h in image.headers]
    assert names == [
        "",
        ".dynstr",
        ".dynsym",
        ".gnu.version",
        ".gnu.version_d",
        ".gnu.version_r",
        ".shstrtab",
    ]
    assert image.num_sections == 7
    assert isinstance(image.section_by_name(".gnu.version_d"), VersionDefinitionSection)
    assert image.section_by_name(".missing") is None


def test_section_at_is_memoised() -> None:
    image = _image(build_versioned_elf())
    assert image.section_at(DYNSTR_INDEX) is image.section_at(DYNSTR_INDEX)
    assert isinstance(image.section_at(DYNSTR_INDEX), StringTableSection)

    verdef = image.section_at(VERDEF_INDEX)
    verneed = image.section_by_type(SHT_GNU_VERNEED)
    assert verdef.string_table() is verneed.string_table()


def test_section_index_out_of_range() -> None:
    image = _image(build_versioned_elf())
    with pytest.raises(ELFFormatError, match="out of range"):
        image.section_at(99)


def test_no_version_sections() -> None:
    image = _image(build_plain_elf(32, "big"))
    assert image.section_by_type(SHT_GNU_VERSYM) is None
    assert image.section_by_type(SHT_GNU_VERDEF) is None


def test_rejects_bad_magic() -> None:
    with pytest.raises(ELFFormatError, match="bad magic"):
        _image(b"MZ" + b"\x00" * 62)


def test_rejects_unknown_class() -> None:
    data = bytearray(build_versioned_elf())
    data[4] = 9
    with pytest.raises(ELFFormatError, match="class"):
        _image(bytes(data))


def test_rejects_truncated_file() -> None:
    with pytest.raises(ELFFormatError, match="Truncated"):
        _image(build_versioned_elf()[:40])


def test_rejects_truncated_header_table() -> None:
    data = build_versioned_elf()
    with pytest.raises(ELFFormatError, match="Truncated"):
        _image(data[:-10])
