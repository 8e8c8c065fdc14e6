from __future__ import annotations
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from enum import IntEnum
from typing import Iterable, Optional, Union

from pehead.enums import DataDirectory
from pehead.model import CoffHeader, PeHeaders, PeOptionalHeader

console = Console()


def _hex(v: int) -> str:
    return f"0x{v:x}"


def _flags(flags: Iterable[IntEnum]) -> str:
    names = [f.name for f in sorted(flags)]
    return " | ".join(names) if names else "-"


def _directory_name(idx: int) -> str:
    try:
        return DataDirectory(idx).name
    except ValueError:
        return f"#{idx}"


def coff_table(coff: CoffHeader) -> Table:
    t = Table(title="COFF File Header")
    t.add_column("Field")
    t.add_column("Value", overflow="fold")
    t.add_row("machine", f"{coff.machine.name} ({_hex(coff.machine)})")
    t.add_row("sections", str(coff.section_count))
    t.add_row("timestamp", _hex(coff.timestamp))
    t.add_row("symbol_table_pointer", _hex(coff.symbol_table_pointer))
    t.add_row("symbols", str(coff.symbol_count))
    t.add_row("optional_header_size", str(coff.optional_header_size))
    t.add_row("characteristics", _flags(coff.characteristics))
    return t


def optional_table(opt: PeOptionalHeader) -> Table:
    t = Table(title=f"Optional Header ({opt.magic.name})")
    t.add_column("Field")
    t.add_column("Value", overflow="fold")
    t.add_row("linker_version", f"{opt.linker_version_major}.{opt.linker_version_minor}")
    t.add_row("size_of_code", _hex(opt.size_of_code))
    t.add_row("size_of_initialized_data", _hex(opt.size_of_initialized_data))
    t.add_row("size_of_uninitialized_data", _hex(opt.size_of_uninitialized_data))
    t.add_row("entry_point", _hex(opt.address_of_entry_point))
    t.add_row("base_of_code", _hex(opt.base_of_code))
    if not opt.is_64bit:
        t.add_row("base_of_data", _hex(opt.base_of_data))
    t.add_row("image_base", _hex(opt.image_base))
    t.add_row("section_alignment", _hex(opt.section_alignment))
    t.add_row("file_alignment", _hex(opt.file_alignment))
    t.add_row("os_version", f"{opt.os_version_major}.{opt.os_version_minor}")
    t.add_row("image_version", f"{opt.image_version_major}.{opt.image_version_minor}")
    t.add_row("subsystem_version", f"{opt.subsystem_version_major}.{opt.subsystem_version_minor}")
    t.add_row("size_of_image", _hex(opt.size_of_image))
    t.add_row("size_of_headers", _hex(opt.size_of_headers))
    t.add_row("checksum", _hex(opt.checksum))
    t.add_row("subsystem", opt.subsystem.name)
    t.add_row("dll_characteristics", _flags(opt.dll_characteristics))
    t.add_row("stack_reserve / commit", f"{_hex(opt.size_of_stack_reserve)} / {_hex(opt.size_of_stack_commit)}")
    t.add_row("heap_reserve / commit", f"{_hex(opt.size_of_heap_reserve)} / {_hex(opt.size_of_heap_commit)}")
    t.add_row("data_directories", str(opt.number_of_data_directories))
    return t


def directories_table(opt: PeOptionalHeader) -> Table:
    t = Table(title="Data Directories")
    t.add_column("#", justify="right")
    t.add_column("Directory")
    t.add_column("RVA")
    t.add_column("Size")
    for i, d in enumerate(opt.data_directories):
        t.add_row(str(i), _directory_name(i), _hex(d.virtual_address), _hex(d.size))
    return t


def print_section(section: Union[CoffHeader, PeOptionalHeader]) -> None:
    """Verbose dump of one decoded header."""
    if isinstance(section, CoffHeader):
        console.print(coff_table(section))
    else:
        console.print(optional_table(section))
        if section.data_directories:
            console.print(directories_table(section))


def print_input_heading(input_path: str, pe_header_offset: Optional[int] = None) -> None:
    line = f"[bold]{escape(input_path)}[/bold]"
    if pe_header_offset is not None:
        line += f" (PE header at {_hex(pe_header_offset)})"
    console.print(line)


def render_console(headers: PeHeaders, input_path: str) -> None:
    print_input_heading(input_path, headers.pe_header_offset)
    print_section(headers.coff)
    print_section(headers.optional)
