from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from pehead.enums import CoffFlag, DataDirectory, DllFlag, ImageMagic, MachineType, Subsystem
from pehead.errors import MissingDataDirectory


def utc_now_iso() -> str:
    """
    UTC timestamp in ISO-8601 with 'Z' suffix, seconds precision.
    Example: 2026-01-08T17:12:34Z
    """
    return (
        datetime.now(timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z")
    )


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class CoffHeader(_Frozen):
    machine: MachineType
    section_count: int
    timestamp: int
    symbol_table_pointer: int
    symbol_count: int
    optional_header_size: int
    characteristics: FrozenSet[CoffFlag] = frozenset()


class DataDirectoryEntry(_Frozen):
    virtual_address: int
    size: int

    @property
    def is_empty(self) -> bool:
        return self.virtual_address == 0 and self.size == 0


class PeOptionalHeader(_Frozen):
    magic: ImageMagic
    linker_version_major: int
    linker_version_minor: int
    size_of_code: int
    size_of_initialized_data: int
    size_of_uninitialized_data: int
    address_of_entry_point: int
    base_of_code: int
    # Only stored in PE32/ROM images; always 0 for PE32+.
    base_of_data: int = 0
    image_base: int
    section_alignment: int
    file_alignment: int
    os_version_major: int
    os_version_minor: int
    image_version_major: int
    image_version_minor: int
    subsystem_version_major: int
    subsystem_version_minor: int
    size_of_image: int
    size_of_headers: int
    checksum: int
    subsystem: Subsystem
    dll_characteristics: FrozenSet[DllFlag] = frozenset()
    size_of_stack_reserve: int
    size_of_stack_commit: int
    size_of_heap_reserve: int
    size_of_heap_commit: int
    data_directories: Tuple[DataDirectoryEntry, ...] = ()

    @property
    def is_64bit(self) -> bool:
        return self.magic == ImageMagic.P64

    @property
    def number_of_data_directories(self) -> int:
        return len(self.data_directories)

    def get_directory(self, kind: DataDirectory) -> DataDirectoryEntry:
        idx = int(kind)
        if idx >= len(self.data_directories):
            raise MissingDataDirectory(DataDirectory(idx).name, idx, len(self.data_directories))
        return self.data_directories[idx]


class PeHeaders(_Frozen):
    pe_header_offset: int
    coff: CoffHeader
    optional: PeOptionalHeader


class HeaderReport(BaseModel):
    """One decoded (or failed) input, as written by the CLI's JSON output."""

    schema_version: str = "1.0"
    timestamp_utc: str = Field(default_factory=utc_now_iso)

    input_path: str
    file_size: int
    headers: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, Any]] = None
