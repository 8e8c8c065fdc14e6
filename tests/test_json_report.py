from __future__ import annotations

import json

from pe_images import build_pe
from pehead.model import HeaderReport
from pehead.pe import read_pe_headers
from pehead.reporters.json_report import build_report, headers_to_dict, write_json


def test_headers_to_dict_uses_names():
    d = headers_to_dict(read_pe_headers(build_pe(characteristics=0x8001)))

    assert d["pe_header_offset"] == 0x80
    assert d["coff"]["machine"] == "AMD64"
    assert d["coff"]["characteristics"] == ["RELOCS_STRIPPED", "BYTES_REVERSED_HI"]
    assert d["optional"]["magic"] == "P32"
    assert d["optional"]["subsystem"] == "WINDOWS_CUI"
    assert d["optional"]["dll_characteristics"] == ["DYNAMIC_BASE", "NX_COMPAT", "TERMINAL_SERVER_AWARE"]
    assert d["optional"]["data_directories"] == [
        {"virtual_address": 0x2000, "size": 0x50},
        {"virtual_address": 0x3000, "size": 0x28},
    ]
    json.dumps(d)


def test_report_round_trip(tmp_path):
    data = build_pe()
    rep = build_report("tiny.exe", len(data), read_pe_headers(data))
    assert rep.timestamp_utc.endswith("Z")

    out = tmp_path / "nested" / "report.json"
    write_json(out, rep.model_dump())
    again = HeaderReport.model_validate_json(out.read_text(encoding="utf-8"))
    assert again.headers["coff"]["section_count"] == 3
    assert again.error is None
