from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel


class Limits(BaseModel):
    # Inputs above this size are skipped by the CLI without being opened.
    max_file_size_bytes: int = 200_000_000


class AppConfig(BaseModel):
    schema_version: str = "1.0"
    verbose: bool = False
    output_format: Literal["table", "json"] = "table"
    log_level: str = "WARNING"
    limits: Limits = Limits()


def load_config(path: Optional[str]) -> AppConfig:
    if not path:
        return AppConfig()
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    return AppConfig.model_validate(data or {})


def config_to_snapshot(cfg: AppConfig) -> Dict[str, Any]:
    return cfg.model_dump()
