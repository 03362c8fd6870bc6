"""
Symver Exception Hierarchy
===========================

All errors raised while decoding symbol-versioning metadata derive from
:class:`SymbolVersionError`.  Structural-integrity violations derive from
:class:`StructureError`; callers are expected to treat any of them as
"this binary's versioning metadata is unusable".
"""

from __future__ import annotations


class SymbolVersionError(Exception):
    """Base class for every error raised by the symver package."""

    pass


class ELFFormatError(SymbolVersionError):
    """The section locator could not make sense of the ELF container."""

    pass


class StructureError(SymbolVersionError):
    """A versioning structure violates its own layout rules."""

    pass


class UnsupportedFormatVersion(StructureError):
    """A definition or requirement carries a format version other than 1."""

    def __init__(self, kind: str, version: int, offset: int) -> None:
        self.kind = kind
        self.version = version
        self.offset = offset
        super().__init__(
            f"Invalid {kind} version {version} at offset 0x{offset:x}"
        )


class AuxCountMismatch(StructureError):
    """Walked auxiliary entries disagree with the declared count."""

    def __init__(self, declared: int, parsed: int, offset: int) -> None:
        self.declared = declared
        self.parsed = parsed
        self.offset = offset
        super().__init__(
            f"Failed to parse all aux entries of record at 0x{offset:x}: "
            f"declared {declared}, found {parsed}"
        )


class MalformedChain(StructureError):
    """A record chain loops back on itself or leaves its section."""

    pass


class TruncatedRecord(StructureError):
    """The stream ended in the middle of a record or string."""

    pass
