"""
Symbol Versioning Record Layouts
=================================

Fixed-width record layouts of the GNU symbol-versioning sections, decoded
with :mod:`struct`.  The byte order is never architecture-native: every
decode takes the ``"little"`` / ``"big"`` tag declared by the section.

Layouts (identical for ELF32 and ELF64)::

    Elf_Verdef    vd_version:H  vd_flags:H  vd_ndx:H  vd_cnt:H
                  vd_hash:I     vd_aux:I    vd_next:I              20 bytes
    Elf_Verdaux   vda_name:I    vda_next:I                          8 bytes
    Elf_Verneed   vn_version:H  vn_cnt:H    vn_file:I
                  vn_aux:I      vn_next:I                          16 bytes
    Elf_Vernaux   vna_hash:I    vna_flags:H vna_other:H
                  vna_name:I    vna_next:I                         16 bytes
    Elf_Versym    value:H                                           2 bytes

References:
    - System V ABI, Linux Standard Base Core Specification,
      "Symbol Versioning".
    - Drepper, U. (2011). How To Write Shared Libraries.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

# ---------------------------------------------------------------------------
# Section types
# ---------------------------------------------------------------------------

SHT_STRTAB: int = 3
SHT_DYNSYM: int = 11
SHT_GNU_VERDEF: int = 0x6FFFFFFD
SHT_GNU_VERNEED: int = 0x6FFFFFFE
SHT_GNU_VERSYM: int = 0x6FFFFFFF

# ---------------------------------------------------------------------------
# Version constants
# ---------------------------------------------------------------------------

VER_DEF_CURRENT: int = 1
VER_NEED_CURRENT: int = 1

VER_FLG_BASE: int = 0x1
VER_FLG_WEAK: int = 0x2

VER_NDX_LOCAL: int = 0
VER_NDX_GLOBAL: int = 1

VERSYM_HIDDEN: int = 0x8000
VERSYM_VERSION: int = 0x7FFF

_BYTE_ORDER: dict[str, str] = {
    "little": "<",
    "big": ">",
}


def byte_order_prefix(endian: str) -> str:
    """Return the :mod:`struct` prefix for an endianness tag.

    Raises:
        ValueError: If *endian* is neither ``"little"`` nor ``"big"``.
    """
    try:
        return _BYTE_ORDER[endian]
    except KeyError:
        raise ValueError(f"Unknown endianness {endian!r}") from None


class _Record:
    """Mixin giving a dataclass an endianness-aware ``unpack``."""

    _layout: ClassVar[str]
    size: ClassVar[int]

    @classmethod
    def unpack(cls, data: bytes, endian: str):
        fmt = byte_order_prefix(endian) + cls._layout
        return cls(*struct.unpack(fmt, data))


@dataclass(frozen=True, slots=True)
class Verdef(_Record):
    """Raw ``Elf_Verdef`` header."""

    _layout: ClassVar[str] = "HHHHIII"
    size: ClassVar[int] = 20

    vd_version: int
    vd_flags: int
    vd_ndx: int
    vd_cnt: int
    vd_hash: int
    vd_aux: int
    vd_next: int


@dataclass(frozen=True, slots=True)
class Verdaux(_Record):
    """Raw ``Elf_Verdaux`` entry."""

    _layout: ClassVar[str] = "II"
    size: ClassVar[int] = 8

    vda_name: int
    vda_next: int


@dataclass(frozen=True, slots=True)
class Verneed(_Record):
    """Raw ``Elf_Verneed`` header."""

    _layout: ClassVar[str] = "HHIII"
    size: ClassVar[int] = 16

    vn_version: int
    vn_cnt: int
    vn_file: int
    vn_aux: int
    vn_next: int


@dataclass(frozen=True, slots=True)
class Vernaux(_Record):
    """Raw ``Elf_Vernaux`` entry."""

    _layout: ClassVar[str] = "IHHII"
    size: ClassVar[int] = 16

    vna_hash: int
    vna_flags: int
    vna_other: int
    vna_name: int
    vna_next: int


def unpack_versym(data: bytes, endian: str) -> int:
    """Decode one unsigned 16-bit ``Elf_Versym`` value."""
    return struct.unpack(byte_order_prefix(endian) + "H", data)[0]


def elf_hash(name: bytes) -> int:
    """Classic System V ELF hash, as stored in ``vd_hash`` / ``vna_hash``."""
    h = 0
    for byte in name:
        h = (h << 4) + byte
        g = h & 0xF0000000
        if g:
            h ^= g >> 24
        h &= ~g
    return h & 0xFFFFFFFF
