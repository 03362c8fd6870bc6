"""
Toolkit Configuration Management
=================================

Centralized configuration for the symver tooling using Python dataclasses
and TOML-based persistence.

Configuration is kept apart from code: every tunable lives in a slotted
dataclass with a safe default, and a ``config.toml`` next to the project
root (or an explicit path) overrides any subset of the keys.

Example ``config.toml``::

    [global]
    log_level = "DEBUG"
    log_json = true

    [symver]
    strict = true
    symbol_display_limit = 50

References:
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "config.toml"


# ========================== Tool-Specific Configs ==========================


@dataclass(frozen=False, slots=True)
class SymverConfig:
    """Configuration for symver -- ELF symbol-versioning inspector.

    Controls which tables are decoded, how much of the version-symbol
    table is rendered, and how structural errors are reported.
    """

    max_file_size: int = 536_870_912  # 512 MiB
    decode_definitions: bool = True
    decode_requirements: bool = True
    decode_symbols: bool = True
    symbol_display_limit: int = 100
    verify_hashes: bool = True
    strict: bool = False
    output_format: str = "console"


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Global settings shared by every command.

    Controls logging verbosity and log destinations.
    """

    log_level: str = "INFO"
    log_file: str = ""
    log_json: bool = False
    debug: bool = False


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class ToolkitConfig:
    """Master configuration aggregating global and tool settings.

    Usage:
        >>> config = ToolkitConfig.load()                  # from default path
        >>> config = ToolkitConfig.load("custom.toml")     # from custom path
        >>> config.symver.symbol_display_limit
        100
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    symver: SymverConfig = field(default_factory=SymverConfig)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> ToolkitConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``config.toml`` in the
        project root.  Missing keys fall back to dataclass defaults.

        Args:
            path: Filesystem path to a TOML configuration file.

        Returns:
            A fully-populated :class:`ToolkitConfig` instance.

        Raises:
            FileNotFoundError: If the specified path does not exist
                *and* was explicitly provided by the caller.
            tomllib.TOMLDecodeError: If the file is not valid TOML.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            symver=cls._build_section(SymverConfig, raw.get("symver", {})),
        )

    # ------------------------------------------------------------------ #
    #  Serialisation helpers
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """Serialise the entire configuration tree to a plain dictionary."""
        return asdict(self)

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares.

        Unknown keys are ignored so newer config files keep loading.
        """
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)

