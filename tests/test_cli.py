"""Tests for the symver command line."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from symver.cli import symver_cli


def _run(*args: str):
    return CliRunner().invoke(symver_cli, list(args))


def test_console_output(versioned_file: Path) -> None:
    result = _run(str(versioned_file))
    assert result.exit_code == 0, result.output
    assert "FOO_1.1" in result.output
    assert "GLIBC_2.2.5" in result.output
    assert "libc.so.6" in result.output


def test_no_symbols_hides_symbol_table(versioned_file: Path) -> None:
    result = _run(str(versioned_file), "--no-symbols")
    assert result.exit_code == 0, result.output
    assert "Symbol Versions" not in result.output


def test_json_output(versioned_file: Path) -> None:
    result = _run(str(versioned_file), "--json")
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["report_type"] == "symver_versioning"
    assert data["binary_info"]["bits"] == 64
    assert [d["name"] for d in data["definitions"]] == ["libfoo.so.1", "FOO_1.0", "FOO_1.1"]
    assert data["requirements"][0]["file"] == "libc.so.6"
    assert data["symbols"]["hidden_count"] == 1
    assert data["errors"] == []
    assert [f["title"] for f in data["findings"]] == ["Hidden symbol versions"]


def test_output_file(versioned_file: Path, tmp_path: Path) -> None:
    target = tmp_path / "reports" / "libfoo.json"
    result = _run(str(versioned_file), "--output", str(target))
    assert result.exit_code == 0, result.output
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["symbols"]["total_count"] == 5


def test_broken_file_exit_codes(broken_file: Path) -> None:
    relaxed = _run(str(broken_file))
    assert relaxed.exit_code == 0
    assert "Critical findings: 1" in relaxed.output

    strict = _run(str(broken_file), "--strict")
    assert strict.exit_code == 2


def test_strict_from_config(broken_file: Path, tmp_path: Path) -> None:
    config = tmp_path / "symver.toml"
    config.write_text("[symver]\nstrict = true\n", encoding="utf-8")
    result = _run(str(broken_file), "--config", str(config))
    assert result.exit_code == 2


def test_strict_passes_clean_file(versioned_file: Path) -> None:
    assert _run(str(versioned_file), "--strict").exit_code == 0


def test_missing_path_is_analysis_failure(tmp_path: Path) -> None:
    result = _run(str(tmp_path / "absent.so"), "--strict")
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_not_an_elf_file(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("definitely not an executable image at all", encoding="utf-8")
    result = _run(str(path))
    assert result.exit_code == 1
    assert "Analysis failed" in result.output


def test_missing_config_file(versioned_file: Path, tmp_path: Path) -> None:
    result = _run(str(versioned_file), "--config", str(tmp_path / "absent.toml"))
    assert result.exit_code == 1
    assert "Cannot load configuration" in result.output


def test_plain_elf(plain_file: Path) -> None:
    result = _run(str(plain_file))
    assert result.exit_code == 0
    assert "No symbol versioning" in result.output
