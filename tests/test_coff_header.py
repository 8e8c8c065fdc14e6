from __future__ import annotations

import pytest
from pydantic import ValidationError

from pe_images import build_coff
from pehead.coff import COFF_HEADER_SIZE, read_coff_header
from pehead.enums import CoffFlag, MachineType
from pehead.errors import TruncatedInput, UnrecognizedMachineType
from pehead.reader import ByteCursor


def test_read_coff_header_fields():
    cur = ByteCursor(build_coff(machine=0x8664, section_count=3, characteristics=0x0022, optional_header_size=0xF0))
    coff = read_coff_header(cur)

    assert cur.tell() == COFF_HEADER_SIZE
    assert coff.machine is MachineType.AMD64
    assert coff.section_count == 3
    assert coff.timestamp == 0x5F3759DF
    assert coff.symbol_table_pointer == 0
    assert coff.symbol_count == 0
    assert coff.optional_header_size == 0xF0
    assert coff.characteristics == {CoffFlag.EXECUTABLE_IMAGE, CoffFlag.LARGE_ADDRESS_AWARE}


def test_coff_header_is_immutable():
    coff = read_coff_header(ByteCursor(build_coff()))
    with pytest.raises(ValidationError):
        coff.section_count = 7


def test_unknown_machine_aborts_header():
    with pytest.raises(UnrecognizedMachineType) as exc:
        read_coff_header(ByteCursor(build_coff(machine=0x1234)))
    assert exc.value.raw_value == 0x1234


def test_truncated_coff_header():
    with pytest.raises(TruncatedInput):
        read_coff_header(ByteCursor(build_coff()[:19]))
