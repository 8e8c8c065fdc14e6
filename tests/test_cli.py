from __future__ import annotations

import json
import logging
from pathlib import Path

from typer.testing import CliRunner

from pe_images import build_pe
from pehead.cli import app
from pehead.logs import setup_logging


def _write(tmp_path: Path, name: str, data: bytes) -> Path:
    p = tmp_path / name
    p.write_bytes(data)
    return p


def test_cli_show_table(tmp_path: Path):
    p = _write(tmp_path, "tiny.exe", build_pe())
    result = CliRunner().invoke(app, ["show", str(p)])

    assert result.exit_code == 0, result.output
    assert "COFF File Header" in result.output
    assert "AMD64" in result.output
    assert "EXECUTABLE_IMAGE" in result.output


def test_cli_show_json_and_out_file(tmp_path: Path):
    p = _write(tmp_path, "tiny.exe", build_pe())
    out = tmp_path / "out" / "headers.json"
    result = CliRunner().invoke(app, ["show", str(p), "--json", "--out", str(out)])

    assert result.exit_code == 0, result.output
    docs = json.loads(result.stdout)
    assert docs[0]["headers"]["coff"]["machine"] == "AMD64"
    assert docs[0]["headers"]["optional"]["magic"] == "P32"
    assert json.loads(out.read_text(encoding="utf-8")) == docs


def test_cli_reports_failure_and_exits_nonzero(tmp_path: Path):
    good = _write(tmp_path, "good.exe", build_pe())
    bad = _write(tmp_path, "notes.txt", b"hello world, not a PE")
    out = tmp_path / "headers.json"
    result = CliRunner().invoke(app, ["show", str(good), str(bad), "--json", "--out", str(out)])

    assert result.exit_code == 1
    assert "E_PE_BAD_DOS_SIGNATURE" in result.output

    docs = json.loads(out.read_text(encoding="utf-8"))
    assert docs[0]["error"] is None
    assert docs[1]["headers"] is None
    assert docs[1]["error"]["code"] == "E_PE_BAD_DOS_SIGNATURE"
    assert docs[1]["error"]["state"] == "START"


def test_cli_skips_files_over_size_limit(tmp_path: Path):
    p = _write(tmp_path, "tiny.exe", build_pe())
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("limits:\n  max_file_size_bytes: 16\n", encoding="utf-8")
    result = CliRunner().invoke(app, ["show", str(p), "--config", str(cfg)])

    assert result.exit_code == 0
    assert "File too large" in result.output


def test_cli_version():
    result = CliRunner().invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "pehead version" in result.output


def test_cli_show_path_with_markup_characters(tmp_path: Path):
    d = tmp_path / "a["
    d.mkdir()
    p = _write(d, "i]c.exe", build_pe())
    result = CliRunner().invoke(app, ["show", str(p)])

    assert result.exit_code == 0, result.output
    assert "a[/i]c.exe" in result.output.replace("\n", "")
    assert "COFF File Header" in result.output


def test_cli_verbose_names_each_file(tmp_path: Path):
    a = _write(tmp_path, "a.exe", build_pe())
    b = _write(tmp_path, "b.exe", build_pe(machine=0xAA64))
    result = CliRunner().invoke(app, ["show", str(a), str(b), "--verbose"])

    assert result.exit_code == 0, result.output
    flat = result.output.replace("\n", "")
    a_path, b_path = str(a.resolve()), str(b.resolve())
    assert a_path in flat
    assert b_path in flat
    assert flat.index(a_path) < flat.index("AMD64") < flat.index(b_path) < flat.index("ARM64")
    assert result.output.count("COFF File Header") == 2


def test_cli_log_level_option(tmp_path: Path):
    p = _write(tmp_path, "tiny.exe", build_pe())
    try:
        result = CliRunner().invoke(app, ["show", str(p), "--log-level", "debug"])
        assert result.exit_code == 0, result.output
        assert logging.getLogger("pehead").level == logging.DEBUG
    finally:
        setup_logging("WARNING")


def test_cli_rejects_unknown_log_level(tmp_path: Path):
    p = _write(tmp_path, "tiny.exe", build_pe())
    try:
        result = CliRunner().invoke(app, ["show", str(p), "--log-level", "chatty"])
        assert result.exit_code == 2
        assert "COFF File Header" not in result.output
    finally:
        setup_logging("WARNING")
