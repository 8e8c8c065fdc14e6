"""
Positioned little-endian reads over a seekable binary stream.

Every read either returns exactly the requested width or raises
`TruncatedInput`; short reads are never padded.
"""

from __future__ import annotations

import io
import struct
from os import SEEK_END, SEEK_SET
from typing import BinaryIO, Optional, Union

from pehead.errors import TruncatedInput

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class ByteCursor:
    """
    Sequential reader over a seekable stream.

    Accepts raw bytes (wrapped in a BytesIO) or an already opened binary file
    object. The cursor does not close the stream it was given.
    """

    def __init__(self, data_or_fileobj: Union[bytes, bytearray, memoryview, BinaryIO]):
        if isinstance(data_or_fileobj, (bytes, bytearray, memoryview)):
            fileobj: BinaryIO = io.BytesIO(bytes(data_or_fileobj))
        else:
            fileobj = data_or_fileobj
            if isinstance(fileobj, io.TextIOBase):
                raise TypeError("ByteCursor needs a binary stream, not a text stream")
            if not fileobj.seekable():
                raise ValueError("ByteCursor needs a seekable stream")

        self._fileobj = fileobj
        self._position = fileobj.tell()
        self._total_size: Optional[int] = None

    def seek(self, position: int) -> "ByteCursor":
        if position < 0:
            raise ValueError(f"Cannot seek to negative offset {position}")
        self._fileobj.seek(position, SEEK_SET)
        self._position = position
        return self

    def tell(self) -> int:
        return self._position

    def total_size(self) -> int:
        if self._total_size is None:
            self._fileobj.seek(0, SEEK_END)
            self._total_size = self._fileobj.tell()
            self._fileobj.seek(self._position, SEEK_SET)
        return self._total_size

    def remaining(self) -> int:
        return max(0, self.total_size() - self._position)

    def read_bytes(self, n: int) -> bytes:
        """Read exactly `n` bytes, handling short reads from the underlying stream."""
        if n < 0:
            raise ValueError(f"Cannot read a negative number of bytes ({n})")

        start = self._position
        chunks = []
        got = 0
        while got < n:
            chunk = self._fileobj.read(n - got)
            if not chunk:
                break
            chunks.append(chunk)
            got += len(chunk)

        data = b"".join(chunks)
        self._position = start + len(data)
        if len(data) < n:
            raise TruncatedInput(
                f"Stream ended at offset 0x{self._position:x} while reading {n} bytes from 0x{start:x}",
                offset=start,
                wanted=n,
                available=len(data),
            )
        return data

    def u8(self) -> int:
        return self.read_bytes(1)[0]

    def u16(self) -> int:
        return _U16.unpack(self.read_bytes(2))[0]

    def u32(self) -> int:
        return _U32.unpack(self.read_bytes(4))[0]

    def u64(self) -> int:
        return _U64.unpack(self.read_bytes(8))[0]

    def pointer(self, is_64bit: bool) -> int:
        return self.u64() if is_64bit else self.u32()
