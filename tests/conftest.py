"""Shared fixtures for the symver test-suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from shared.config import ToolkitConfig
from shared.logger import ToolLogger

from symver.core.engine import SymverEngine

from builders import build_plain_elf, build_versioned_elf


@pytest.fixture
def config() -> ToolkitConfig:
    return ToolkitConfig()


@pytest.fixture
def engine(config: ToolkitConfig) -> SymverEngine:
    logger = ToolLogger("symver.tests", log_level="WARNING", console_output=False)
    return SymverEngine(config=config, logger=logger)


@pytest.fixture
def elf64_le() -> bytes:
    return build_versioned_elf(64, "little")


@pytest.fixture
def elf32_le() -> bytes:
    return build_versioned_elf(32, "little")


@pytest.fixture
def elf64_be() -> bytes:
    return build_versioned_elf(64, "big")


@pytest.fixture
def versioned_file(tmp_path: Path, elf64_le: bytes) -> Path:
    path = tmp_path / "libfoo.so.1"
    path.write_bytes(elf64_le)
    return path


@pytest.fixture
def broken_file(tmp_path: Path) -> Path:
    path = tmp_path / "libbroken.so"
    path.write_bytes(build_versioned_elf(64, "little", vn_cnt=2))
    return path


@pytest.fixture
def plain_file(tmp_path: Path) -> Path:
    path = tmp_path / "plain"
    path.write_bytes(build_plain_elf())
    return path
