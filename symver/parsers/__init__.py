"""
Symver Parsers
===============

Decoders for the GNU symbol-versioning sections and the minimal ELF
section locator that feeds them.
"""

from symver.parsers.chain import ChainWalker
from symver.parsers.elf_image import ELFImage
from symver.parsers.section import (
    LazyName,
    Section,
    SectionHeader,
    StringTableSection,
)
from symver.parsers.stream import SectionStream
from symver.parsers.verdef import (
    VersionDefinition,
    VersionDefinitionAux,
    VersionDefinitionSection,
)
from symver.parsers.verneed import (
    VersionRequirement,
    VersionRequirementAux,
    VersionRequirementSection,
)
from symver.parsers.versym import VersionSymbolSection

__all__ = [
    "ChainWalker",
    "ELFImage",
    "LazyName",
    "Section",
    "SectionHeader",
    "SectionStream",
    "StringTableSection",
    "VersionDefinition",
    "VersionDefinitionAux",
    "VersionDefinitionSection",
    "VersionRequirement",
    "VersionRequirementAux",
    "VersionRequirementSection",
    "VersionSymbolSection",
]
