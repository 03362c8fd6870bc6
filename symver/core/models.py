"""
Symver Data Models
===================

Pydantic models describing the decoded symbol-versioning metadata of one
ELF file.  They are the serialisable view used by the console renderer
and the JSON report; the parser records in :mod:`symver.parsers` remain
the source of truth.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class SectionSummary(BaseModel):
    """Location of one versioning-related section.

    Attributes:
        name: Section name (e.g. ``.gnu.version_r``).
        kind: ``verdef``, ``verneed`` or ``versym``.
        offset: File offset of the section data.
        size: Section size in bytes.
        entsize: Entry stride.
        link: ``sh_link`` index.
        endian: ``"little"`` or ``"big"``.
    """
    name: str = ""
    kind: str = ""
    offset: int = 0
    size: int = 0
    entsize: int = 0
    link: int = 0
    endian: str = "little"


class AuxInfo(BaseModel):
    """An auxiliary entry of a definition or requirement.

    ``index``, ``flags`` and ``hash`` are only meaningful for requirement
    entries; ``hash_ok`` is ``None`` when the hash was not checked.
    """
    offset: int = 0
    name: str = ""
    index: Optional[int] = None
    flags: int = 0
    hash: Optional[int] = None
    hash_ok: Optional[bool] = None


class DefinitionInfo(BaseModel):
    """A decoded ``Elf_Verdef`` record."""
    offset: int = 0
    index: int = 0
    flags: int = 0
    is_base: bool = False
    is_weak: bool = False
    hash: int = 0
    hash_ok: Optional[bool] = None
    name: str = ""
    aux_count: int = 0
    aux: list[AuxInfo] = Field(default_factory=list)

    @property
    def parents(self) -> list[str]:
        """Names of the versions this one inherits from."""
        return [a.name for a in self.aux[1:]]


class RequirementInfo(BaseModel):
    """A decoded ``Elf_Verneed`` record."""
    offset: int = 0
    file: str = ""
    aux_count: int = 0
    aux: list[AuxInfo] = Field(default_factory=list)


class SymbolVersionInfo(BaseModel):
    """One ``.gnu.version`` entry, interpreted."""
    index: int = 0
    value: int = 0
    version_index: int = 0
    local: bool = False
    defined: bool = False
    hidden: bool = False
    version_name: str = ""


class VersioningReport(BaseModel):
    """Everything decoded from one file's versioning sections.

    Attributes:
        path: File that was analysed.
        size: File size in bytes.
        bits: ELF class (32 or 64).
        endian: Byte order of the file.
        sections: Versioning sections found.
        definitions: Version definitions (``.gnu.version_d``).
        requirements: Version requirements (``.gnu.version_r``).
        symbols: Interpreted ``.gnu.version`` entries.
        symbol_table_entries: Entry count of the linked symbol table, when known.
        errors: Structural errors, one per section that failed to decode.
    """
    path: str = ""
    size: int = 0
    bits: int = 0
    endian: str = "little"
    sections: list[SectionSummary] = Field(default_factory=list)
    definitions: list[DefinitionInfo] = Field(default_factory=list)
    requirements: list[RequirementInfo] = Field(default_factory=list)
    symbols: list[SymbolVersionInfo] = Field(default_factory=list)
    symbol_table_entries: Optional[int] = None
    errors: list[str] = Field(default_factory=list)

    @property
    def has_versioning(self) -> bool:
        return bool(self.sections)

    @property
    def hidden_count(self) -> int:
        return sum(1 for s in self.symbols if s.hidden)

    @property
    def defined_count(self) -> int:
        return sum(1 for s in self.symbols if s.defined)

    @property
    def local_count(self) -> int:
        return sum(1 for s in self.symbols if s.local)

    def version_names(self) -> dict[int, str]:
        """Version index to name, across definitions and requirements."""
        names: dict[int, str] = {d.index: d.name for d in self.definitions}
        for req in self.requirements:
            for aux in req.aux:
                if aux.index is not None:
                    names[aux.index] = aux.name
        return names
