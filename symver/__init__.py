"""
Symver -- ELF Symbol-Versioning Inspector
==========================================

Symver decodes the GNU symbol-versioning metadata of ELF shared objects
and executables: the version definitions a library exports
(``.gnu.version_d``), the versions it needs from its dependencies
(``.gnu.version_r``) and the version index bound to every dynamic
symbol (``.gnu.version``).

Capabilities:
    - Endian-aware decoding of Verdef/Verdaux/Verneed/Vernaux/Versym records
    - Offset-chained record walking with loop and bounds protection
    - Lazy, memoised string-table name resolution through ``sh_link``
    - Section location from the ELF section header table (32/64-bit)
    - Version-name hash verification and dangling-index detection
    - Rich console output and JSON reports

References:
    - Linux Standard Base Core Specification, Symbol Versioning.
    - Drepper, U. (2011). How To Write Shared Libraries.
    - TIS Committee. (1995). ELF Specification.
"""

__version__ = "1.0.0"
__all__ = [
    "SymverEngine",
    "VersioningReport",
    "SymverConsoleOutput",
    "SymverReportGenerator",
]
