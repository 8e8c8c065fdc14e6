from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from pehead.model import HeaderReport, PeHeaders


def _plain(v: Any) -> Any:
    # Enum members become their names; flag sets become sorted name lists.
    if isinstance(v, Enum):
        return v.name
    if isinstance(v, (set, frozenset)):
        return [_plain(x) for x in sorted(v)]
    if isinstance(v, dict):
        return {k: _plain(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [_plain(x) for x in v]
    return v


def headers_to_dict(headers: PeHeaders) -> Dict[str, Any]:
    return _plain(headers.model_dump())


def build_report(input_path: str, file_size: int, headers: PeHeaders) -> HeaderReport:
    return HeaderReport(input_path=input_path, file_size=file_size, headers=headers_to_dict(headers))


def write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, ensure_ascii=False), encoding="utf-8")


def reports_to_json(reports: List[HeaderReport]) -> List[Dict[str, Any]]:
    return [r.model_dump() for r in reports]
