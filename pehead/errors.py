from __future__ import annotations

from typing import Any, Dict, Optional


class PeHeaderError(Exception):
    """Base class for every header decode failure."""

    code = "E_PE_HEADER"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details
        # Set by the orchestrator to the last DecodeState reached.
        self.state: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"code": self.code, "message": self.message}
        d.update(self.details)
        if self.state is not None:
            d["state"] = getattr(self.state, "name", str(self.state))
        return d


class TruncatedInput(PeHeaderError):
    code = "E_PE_TRUNCATED"

    def __init__(self, message: str, *, offset: int, wanted: int, available: int, **details: Any):
        super().__init__(message, offset=offset, wanted=wanted, available=available, **details)
        self.offset = offset
        self.wanted = wanted
        self.available = available


class MalformedDataDirectoryCount(TruncatedInput):
    """The declared data directory count cannot fit in what is left of the stream."""

    code = "E_PE_DATA_DIR_COUNT"

    def __init__(self, count: int, *, offset: int, available: int):
        super().__init__(
            f"Header declares {count} data directories ({count * 8} bytes) but only {available} bytes remain.",
            offset=offset,
            wanted=count * 8,
            available=available,
            count=count,
        )
        self.count = count


class InvalidDosSignature(PeHeaderError):
    code = "E_PE_BAD_DOS_SIGNATURE"

    def __init__(self, found: bytes):
        super().__init__("MZ magic header not found: is the target file really a PE?", found=found.hex())
        self.found = found


class InvalidPeSignature(PeHeaderError):
    code = "E_PE_BAD_NT_SIGNATURE"

    def __init__(self, found: bytes, *, pe_header_offset: int):
        super().__init__(
            "Invalid PE header signature: PE\\0\\0 expected.",
            found=found.hex(),
            pe_header_offset=pe_header_offset,
        )
        self.found = found
        self.pe_header_offset = pe_header_offset


class UnrecognizedCode(PeHeaderError):
    """An integer code with no entry in a closed enumeration."""

    what = "code"

    def __init__(self, raw_value: int):
        super().__init__(f"Unknown {self.what} 0x{raw_value:x}", raw_value=raw_value)
        self.raw_value = raw_value


class UnrecognizedMachineType(UnrecognizedCode):
    code = "E_PE_UNKNOWN_MACHINE"
    what = "machine type"


class UnrecognizedSubsystem(UnrecognizedCode):
    code = "E_PE_UNKNOWN_SUBSYSTEM"
    what = "subsystem"


class UnrecognizedMagic(UnrecognizedCode):
    code = "E_PE_UNKNOWN_MAGIC"
    what = "PE magic number"


class UnrecognizedFlag(UnrecognizedCode):
    code = "E_PE_UNKNOWN_FLAG"
    what = "flag mask"


class MissingDataDirectory(PeHeaderError):
    code = "E_PE_DATA_DIR_MISSING"

    def __init__(self, name: str, index: int, declared: int):
        super().__init__(
            f"The directory '{name}' of index {index} is required but is missing on this file",
            directory=name,
            index=index,
            declared=declared,
        )
        self.index = index
