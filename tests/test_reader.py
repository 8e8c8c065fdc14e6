from __future__ import annotations

import io
import struct

import pytest

from pehead.errors import TruncatedInput
from pehead.reader import ByteCursor


def test_fixed_width_reads_are_little_endian_and_advance():
    data = struct.pack("<BHIQ", 0xAB, 0x1234, 0xDEADBEEF, 0x0102030405060708)
    cur = ByteCursor(data)

    assert cur.u8() == 0xAB
    assert cur.tell() == 1
    assert cur.u16() == 0x1234
    assert cur.tell() == 3
    assert cur.u32() == 0xDEADBEEF
    assert cur.tell() == 7
    assert cur.u64() == 0x0102030405060708
    assert cur.tell() == 15
    assert cur.remaining() == 0


def test_pointer_width():
    cur = ByteCursor(struct.pack("<IQ", 0xFFFFFFFF, 0x140000000))
    assert cur.pointer(False) == 0xFFFFFFFF
    assert cur.tell() == 4
    assert cur.pointer(True) == 0x140000000
    assert cur.tell() == 12


def test_seek_and_tell():
    cur = ByteCursor(b"\x00" * 0x3C + struct.pack("<I", 0x80))
    cur.seek(0x3C)
    assert cur.tell() == 0x3C
    assert cur.u32() == 0x80
    assert cur.total_size() == 0x40


def test_short_read_raises_truncated():
    cur = ByteCursor(b"\x01\x02\x03")
    with pytest.raises(TruncatedInput) as exc:
        cur.u32()
    assert exc.value.offset == 0
    assert exc.value.wanted == 4
    assert exc.value.available == 3


def test_read_past_end_after_seek():
    cur = ByteCursor(b"MZ")
    cur.seek(0x100)
    assert cur.remaining() == 0
    with pytest.raises(TruncatedInput):
        cur.read_bytes(4)


def test_accepts_file_objects(tmp_path):
    p = tmp_path / "blob.bin"
    p.write_bytes(b"\x00\x00" + struct.pack("<H", 0x20B))
    with p.open("rb") as f:
        cur = ByteCursor(f)
        cur.seek(2)
        assert cur.u16() == 0x20B


def test_rejects_non_seekable_streams():
    class Pipe(io.RawIOBase):
        def readable(self):
            return True

        def seekable(self):
            return False

    with pytest.raises(ValueError):
        ByteCursor(Pipe())
