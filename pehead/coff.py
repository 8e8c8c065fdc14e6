from __future__ import annotations

from pehead.enums import decode_coff_characteristics, decode_machine_type
from pehead.model import CoffHeader
from pehead.reader import ByteCursor

COFF_HEADER_SIZE = 20


def read_coff_header(cursor: ByteCursor) -> CoffHeader:
    """Read the fixed 20-byte COFF file header at the cursor position."""
    machine = decode_machine_type(cursor.u16())
    section_count = cursor.u16()
    timestamp = cursor.u32()
    symbol_table_pointer = cursor.u32()
    symbol_count = cursor.u32()
    optional_header_size = cursor.u16()
    characteristics = decode_coff_characteristics(cursor.u16())

    return CoffHeader(
        machine=machine,
        section_count=section_count,
        timestamp=timestamp,
        symbol_table_pointer=symbol_table_pointer,
        symbol_count=symbol_count,
        optional_header_size=optional_header_size,
        characteristics=characteristics,
    )
