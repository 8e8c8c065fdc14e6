from __future__ import annotations

import logging
from enum import IntEnum
from typing import Dict, FrozenSet, Tuple, Type, TypeVar

from pehead.errors import (
    UnrecognizedFlag,
    UnrecognizedMachineType,
    UnrecognizedMagic,
    UnrecognizedSubsystem,
)

log = logging.getLogger(__name__)

F = TypeVar("F", bound=IntEnum)


class MachineType(IntEnum):
    UNKNOWN = 0x0  # unmanaged PE files only
    I386 = 0x14C
    R3000 = 0x162  # MIPS little endian
    R4000 = 0x166  # MIPS little endian
    R10000 = 0x168  # MIPS little endian
    WCE_MIPS_V2 = 0x169  # MIPS little endian, Windows CE 2
    ALPHA = 0x184
    SH3 = 0x1A2
    SH3DSP = 0x1A3
    SH3E = 0x1A4
    SH4 = 0x1A6
    SH5 = 0x1A8
    ARM = 0x1C0
    THUMB = 0x1C2
    ARMNT = 0x1C4
    AM33 = 0x1D3
    POWERPC = 0x1F0
    POWERPCFP = 0x1F1
    IA64 = 0x200
    MIPS16 = 0x266
    ALPHA64 = 0x284
    MIPSFPU = 0x366
    MIPSFPU16 = 0x466
    TRICORE = 0x520
    EBC = 0xEBC
    AMD64 = 0x8664
    M32R = 0x9041
    ARM64 = 0xAA64


class CoffFlag(IntEnum):
    RELOCS_STRIPPED = 0x0001
    EXECUTABLE_IMAGE = 0x0002
    LINE_NUMS_STRIPPED = 0x0004
    LOCAL_SYMS_STRIPPED = 0x0008
    AGGRESSIVE_WS_TRIM = 0x0010
    LARGE_ADDRESS_AWARE = 0x0020
    BYTES_REVERSED_LO = 0x0080
    MACHINE_32BIT = 0x0100
    DEBUG_STRIPPED = 0x0200
    REMOVABLE_RUN_FROM_SWAP = 0x0400
    NET_RUN_FROM_SWAP = 0x0800
    SYSTEM = 0x1000
    DLL = 0x2000
    UP_SYSTEM_ONLY = 0x4000
    BYTES_REVERSED_HI = 0x8000


class Subsystem(IntEnum):
    UNKNOWN = 0
    NATIVE = 1
    WINDOWS_GUI = 2
    WINDOWS_CUI = 3
    POSIX_CUI = 7
    WINDOWS_CE_GUI = 9
    EFI_APPLICATION = 10
    EFI_BOOT_SERVICE_DRIVER = 11
    EFI_RUNTIME_DRIVER = 12
    EFI_ROM = 13
    XBOX = 14


class DllFlag(IntEnum):
    DYNAMIC_BASE = 0x0040
    FORCE_INTEGRITY = 0x0080
    NX_COMPAT = 0x0100
    NO_ISOLATION = 0x0200
    NO_SEH = 0x0400
    NO_BIND = 0x0800
    WDM_DRIVER = 0x2000
    TERMINAL_SERVER_AWARE = 0x8000


class ImageMagic(IntEnum):
    PROM = 0x107
    P32 = 0x10B
    P64 = 0x20B


class DataDirectory(IntEnum):
    """Index of each entry in the optional header's data directory table."""

    EXPORT = 0
    IMPORT = 1
    RESOURCE = 2
    EXCEPTION = 3
    SECURITY = 4
    BASE_RELOC = 5
    DEBUG = 6
    ARCHITECTURE = 7
    GLOBAL_PTR = 8
    TLS = 9
    LOAD_CONFIG = 10
    BOUND_IMPORT = 11
    IAT = 12
    DELAY_IMPORT = 13
    CLR_RUNTIME_HEADER = 14
    RESERVED = 15


# Bits are tested in this order; the flag tables below must cover every mask.
COFF_FLAG_MASKS: Tuple[int, ...] = (
    0x1, 0x2, 0x4, 0x8, 0x10, 0x20, 0x80, 0x100,
    0x200, 0x400, 0x800, 0x1000, 0x2000, 0x4000, 0x8000,
)
DLL_FLAG_MASKS: Tuple[int, ...] = (0x40, 0x80, 0x100, 0x200, 0x400, 0x800, 0x2000, 0x8000)

_COFF_FLAG_BY_MASK: Dict[int, CoffFlag] = {int(f): f for f in CoffFlag}
_DLL_FLAG_BY_MASK: Dict[int, DllFlag] = {int(f): f for f in DllFlag}

_MACHINE_BY_CODE: Dict[int, MachineType] = {int(m): m for m in MachineType}
_SUBSYSTEM_BY_CODE: Dict[int, Subsystem] = {int(s): s for s in Subsystem}
_MAGIC_BY_CODE: Dict[int, ImageMagic] = {int(m): m for m in ImageMagic}


def decode_machine_type(code: int) -> MachineType:
    try:
        return _MACHINE_BY_CODE[code]
    except KeyError:
        raise UnrecognizedMachineType(code) from None


def decode_subsystem(code: int) -> Subsystem:
    try:
        return _SUBSYSTEM_BY_CODE[code]
    except KeyError:
        raise UnrecognizedSubsystem(code) from None


def decode_image_magic(code: int) -> ImageMagic:
    try:
        return _MAGIC_BY_CODE[code]
    except KeyError:
        raise UnrecognizedMagic(code) from None


def _decode_flags(
    bits: int,
    masks: Tuple[int, ...],
    table: Dict[int, F],
    kind: Type[F],
) -> FrozenSet[F]:
    out = set()
    known = 0
    for mask in masks:
        known |= mask
        if bits & mask == mask:
            flag = table.get(mask)
            if flag is None:
                raise UnrecognizedFlag(mask)
            out.add(flag)

    ignored = bits & ~known
    if ignored:
        log.debug("Ignoring unknown %s bits 0x%04x in 0x%04x", kind.__name__, ignored, bits)
    return frozenset(out)


def decode_coff_characteristics(bits: int) -> FrozenSet[CoffFlag]:
    return _decode_flags(bits, COFF_FLAG_MASKS, _COFF_FLAG_BY_MASK, CoffFlag)


def decode_dll_characteristics(bits: int) -> FrozenSet[DllFlag]:
    return _decode_flags(bits, DLL_FLAG_MASKS, _DLL_FLAG_BY_MASK, DllFlag)
