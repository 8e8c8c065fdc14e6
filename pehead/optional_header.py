from __future__ import annotations

from dataclasses import dataclass
from typing import List

from pehead.enums import ImageMagic, decode_dll_characteristics, decode_image_magic, decode_subsystem
from pehead.errors import MalformedDataDirectoryCount
from pehead.model import DataDirectoryEntry, PeOptionalHeader
from pehead.reader import ByteCursor

DATA_DIRECTORY_ENTRY_SIZE = 8

# Fixed part of the optional header (magic through NumberOfRvaAndSizes).
OPTIONAL_HEADER32_FIXED_SIZE = 96
OPTIONAL_HEADER64_FIXED_SIZE = 112


@dataclass(frozen=True)
class AddressWidth:
    """Width of the pointer-sized optional header fields, fixed by the magic."""

    is_64bit: bool

    @property
    def size(self) -> int:
        return 8 if self.is_64bit else 4

    @property
    def has_base_of_data(self) -> bool:
        return not self.is_64bit

    def read(self, cursor: ByteCursor) -> int:
        return cursor.pointer(self.is_64bit)


ADDRESS_32 = AddressWidth(is_64bit=False)
ADDRESS_64 = AddressWidth(is_64bit=True)


def address_width_for(magic: ImageMagic) -> AddressWidth:
    return ADDRESS_64 if magic == ImageMagic.P64 else ADDRESS_32


def read_data_directories(cursor: ByteCursor) -> List[DataDirectoryEntry]:
    """Read NumberOfRvaAndSizes followed by that many (rva, size) pairs."""
    count = cursor.u32()
    available = cursor.remaining()
    if count * DATA_DIRECTORY_ENTRY_SIZE > available:
        raise MalformedDataDirectoryCount(count, offset=cursor.tell(), available=available)

    dirs: List[DataDirectoryEntry] = []
    for _ in range(count):
        virtual_address = cursor.u32()
        size = cursor.u32()
        dirs.append(DataDirectoryEntry(virtual_address=virtual_address, size=size))
    return dirs


def read_optional_header(cursor: ByteCursor) -> PeOptionalHeader:
    magic = decode_image_magic(cursor.u16())
    width = address_width_for(magic)

    linker_major = cursor.u8()
    linker_minor = cursor.u8()
    size_of_code = cursor.u32()
    size_of_init = cursor.u32()
    size_of_uninit = cursor.u32()
    entry_point = cursor.u32()
    base_of_code = cursor.u32()
    base_of_data = cursor.u32() if width.has_base_of_data else 0

    # Windows-specific fields
    image_base = width.read(cursor)
    section_alignment = cursor.u32()
    file_alignment = cursor.u32()
    os_major = cursor.u16()
    os_minor = cursor.u16()
    image_major = cursor.u16()
    image_minor = cursor.u16()
    subsys_major = cursor.u16()
    subsys_minor = cursor.u16()
    cursor.u32()  # Win32VersionValue, reserved
    size_of_image = cursor.u32()
    size_of_headers = cursor.u32()
    checksum = cursor.u32()
    subsystem = decode_subsystem(cursor.u16())
    dll_characteristics = decode_dll_characteristics(cursor.u16())
    stack_reserve = width.read(cursor)
    stack_commit = width.read(cursor)
    heap_reserve = width.read(cursor)
    heap_commit = width.read(cursor)
    cursor.u32()  # LoaderFlags, reserved

    data_directories = read_data_directories(cursor)

    return PeOptionalHeader(
        magic=magic,
        linker_version_major=linker_major,
        linker_version_minor=linker_minor,
        size_of_code=size_of_code,
        size_of_initialized_data=size_of_init,
        size_of_uninitialized_data=size_of_uninit,
        address_of_entry_point=entry_point,
        base_of_code=base_of_code,
        base_of_data=base_of_data,
        image_base=image_base,
        section_alignment=section_alignment,
        file_alignment=file_alignment,
        os_version_major=os_major,
        os_version_minor=os_minor,
        image_version_major=image_major,
        image_version_minor=image_minor,
        subsystem_version_major=subsys_major,
        subsystem_version_minor=subsys_minor,
        size_of_image=size_of_image,
        size_of_headers=size_of_headers,
        checksum=checksum,
        subsystem=subsystem,
        dll_characteristics=dll_characteristics,
        size_of_stack_reserve=stack_reserve,
        size_of_stack_commit=stack_commit,
        size_of_heap_reserve=heap_reserve,
        size_of_heap_commit=heap_commit,
        data_directories=tuple(data_directories),
    )
