from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

from pehead.coff import read_coff_header
from pehead.errors import InvalidDosSignature, InvalidPeSignature, PeHeaderError
from pehead.model import CoffHeader, PeHeaders, PeOptionalHeader
from pehead.optional_header import OPTIONAL_HEADER32_FIXED_SIZE, OPTIONAL_HEADER64_FIXED_SIZE, read_optional_header
from pehead.reader import ByteCursor

log = logging.getLogger(__name__)

IMAGE_DOS_SIGNATURE = b"MZ"
IMAGE_NT_SIGNATURE = b"PE\x00\x00"
E_LFANEW_OFFSET = 0x3C

SectionHook = Callable[[Union[CoffHeader, PeOptionalHeader]], None]


class DecodeState(Enum):
    START = "start"
    DOS_SIGNATURE_CHECKED = "dos_signature_checked"
    SEEKED_TO_PE_OFFSET = "seeked_to_pe_offset"
    PE_SIGNATURE_CHECKED = "pe_signature_checked"
    COFF_HEADER_READ = "coff_header_read"
    OPTIONAL_HEADER_READ = "optional_header_read"


def _default_section_hook() -> SectionHook:
    from pehead.reporters.console import print_section

    return print_section


def _check_optional_header_size(coff: CoffHeader, optional: PeOptionalHeader) -> None:
    fixed = OPTIONAL_HEADER64_FIXED_SIZE if optional.is_64bit else OPTIONAL_HEADER32_FIXED_SIZE
    consumed = fixed + 8 * optional.number_of_data_directories
    if consumed != coff.optional_header_size:
        log.warning(
            "COFF header declares a %d-byte optional header but %d bytes were decoded",
            coff.optional_header_size,
            consumed,
        )


class _HeaderDecode:
    """One pass over one stream. Not reusable."""

    def __init__(self, cursor: ByteCursor, on_section: Optional[SectionHook]):
        self.cursor = cursor
        self.on_section = on_section
        self.state = DecodeState.START

    def _advance(self, state: DecodeState) -> None:
        log.debug("%s -> %s at offset 0x%x", self.state.name, state.name, self.cursor.tell())
        self.state = state

    def run(self) -> PeHeaders:
        cur = self.cursor

        cur.seek(0)
        dos_sig = cur.read_bytes(2)
        if dos_sig != IMAGE_DOS_SIGNATURE:
            raise InvalidDosSignature(dos_sig)
        self._advance(DecodeState.DOS_SIGNATURE_CHECKED)

        cur.seek(E_LFANEW_OFFSET)
        pe_offset = cur.u32()
        cur.seek(pe_offset)
        self._advance(DecodeState.SEEKED_TO_PE_OFFSET)

        nt_sig = cur.read_bytes(4)
        if nt_sig != IMAGE_NT_SIGNATURE:
            raise InvalidPeSignature(nt_sig, pe_header_offset=pe_offset)
        self._advance(DecodeState.PE_SIGNATURE_CHECKED)

        coff = read_coff_header(cur)
        self._advance(DecodeState.COFF_HEADER_READ)
        if self.on_section is not None:
            self.on_section(coff)

        optional = read_optional_header(cur)
        self._advance(DecodeState.OPTIONAL_HEADER_READ)
        _check_optional_header_size(coff, optional)
        if self.on_section is not None:
            self.on_section(optional)

        return PeHeaders(pe_header_offset=pe_offset, coff=coff, optional=optional)


def read_pe_headers(
    source: Union[bytes, bytearray, BinaryIO, ByteCursor],
    *,
    verbose: bool = False,
    on_section: Optional[SectionHook] = None,
) -> PeHeaders:
    """
    Decode the DOS stub marker, COFF header and optional header of a PE image.

    `on_section` is called with each header once it is fully decoded. With
    `verbose=True` and no hook, each header is printed as a table.
    Raises a PeHeaderError subclass on any failure; nothing partial is returned.
    """
    cursor = source if isinstance(source, ByteCursor) else ByteCursor(source)
    if on_section is None and verbose:
        on_section = _default_section_hook()

    decode = _HeaderDecode(cursor, on_section)
    try:
        return decode.run()
    except PeHeaderError as e:
        if e.state is None:
            e.state = decode.state
        log.debug("Decode failed in state %s: %s", decode.state.name, e)
        raise


def read_pe_headers_from_path(path: Union[str, Path], **kwargs) -> PeHeaders:
    with Path(path).open("rb") as f:
        return read_pe_headers(f, **kwargs)
