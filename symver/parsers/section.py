"""
Section Primitives
===================

Section header model, base section class, string-table section and the
lazy name value shared by version definitions and requirements.

A version table never owns its string table.  It holds a ``section_at``
callback (section index -> section object) and resolves the table linked
through ``sh_link`` the first time a name is requested.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from symver.core.errors import StructureError
from symver.parsers.stream import SectionStream


@dataclass(frozen=True, slots=True)
class SectionHeader:
    """The subset of an ELF section header the version tables consume.

    Attributes:
        offset:  File offset of the section data.
        size:    Section size in bytes.
        entsize: Per-entry stride for table sections.
        link:    Index of the linked section (``sh_link``).
        endian:  ``"little"`` or ``"big"``.
        name:    Section name, when known.
        type:    ``sh_type`` value, when known.
        index:   Index in the section-header table, when known.
    """

    offset: int
    size: int
    entsize: int = 0
    link: int = 0
    endian: str = "little"
    name: str = ""
    type: int = 0
    index: int = -1

    @property
    def end(self) -> int:
        """First byte past the section data."""
        return self.offset + self.size


SectionLookup = Callable[[int], Any]


class Section:
    """A section located in a stream by its header."""

    def __init__(
        self,
        header: SectionHeader,
        stream: SectionStream,
        section_at: Optional[SectionLookup] = None,
    ) -> None:
        self.header = header
        self.stream = stream
        self._section_at = section_at

    def linked_section(self) -> Any:
        """Fetch the section named by ``sh_link`` through the lookup callback.

        Raises:
            StructureError: If the table was built without a lookup.
        """
        if self._section_at is None:
            raise StructureError(
                f"Section {self.header.name or self.header.index} has no "
                f"section lookup for link {self.header.link}"
            )
        return self._section_at(self.header.link)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.header.name!r}, "
            f"offset=0x{self.header.offset:x}, size={self.header.size})"
        )


class StringTableSection(Section):
    """A ``SHT_STRTAB`` section of NUL-terminated strings."""

    def __init__(
        self,
        header: SectionHeader,
        stream: SectionStream,
        section_at: Optional[SectionLookup] = None,
    ) -> None:
        super().__init__(header, stream, section_at)
        self._names: dict[int, str] = {}

    def name_at(self, offset: int) -> str:
        """Return the string starting *offset* bytes into the table.

        Raises:
            StructureError: If *offset* lies outside the section, or the
                string runs past the section end.
        """
        cached = self._names.get(offset)
        if cached is not None:
            return cached
        if not 0 <= offset < self.header.size:
            raise StructureError(
                f"String offset {offset} outside string table of "
                f"{self.header.size} bytes"
            )
        raw = self.stream.read_cstring(
            self.header.offset + offset, self.header.size - offset
        )
        name = raw.decode("utf-8", errors="replace")
        self._names[offset] = name
        return name


class LazyName:
    """A string-table reference resolved at most once.

    The value is either *unresolved* (it holds the fetch capability and the
    string offset) or *resolved* (it holds the string).  Resolution is an
    explicit state transition, not a first-access side effect on the record.
    """

    __slots__ = ("_offset", "_fetch", "_value")

    def __init__(self, offset: int, fetch: Callable[[], StringTableSection]) -> None:
        self._offset = offset
        self._fetch: Optional[Callable[[], StringTableSection]] = fetch
        self._value: Optional[str] = None

    @property
    def offset(self) -> int:
        """Offset of the string inside the linked string table."""
        return self._offset

    @property
    def resolved(self) -> bool:
        """Whether the string has been fetched."""
        return self._fetch is None

    def resolve(self) -> str:
        """Return the string, fetching it on the first call only."""
        if self._fetch is not None:
            self._value = self._fetch().name_at(self._offset)
            self._fetch = None
        assert self._value is not None
        return self._value

    def __repr__(self) -> str:
        if self.resolved:
            return f"LazyName({self._value!r})"
        return f"LazyName(<unresolved @{self._offset}>)"


class LinkedStringTable:
    """Memoised ``sh_link`` string-table lookup owned by one version table."""

    __slots__ = ("_owner", "_table")

    def __init__(self, owner: Section) -> None:
        self._owner = owner
        self._table: Optional[StringTableSection] = None

    def __call__(self) -> StringTableSection:
        if self._table is None:
            table = self._owner.linked_section()
            if not hasattr(table, "name_at"):
                raise StructureError(
                    f"Section {self._owner.header.link} linked from "
                    f"{self._owner.header.name or 'version table'} "
                    f"is not a string table"
                )
            self._table = table
        return self._table

    @property
    def fetched(self) -> bool:
        """Whether the string table has been looked up."""
        return self._table is not None
