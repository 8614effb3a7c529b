"""Global descriptor tables for protected and long mode."""

from __future__ import annotations

import struct
from dataclasses import dataclass

_DESCRIPTOR_COUNT = 3
_DESCRIPTOR_SIZE = 8

_PRESENT = 1 << 47
_USER_SEGMENT = 1 << 44
_EXECUTABLE = 1 << 43
_READ_WRITE = 1 << 41
_ACCESSED = 1 << 40
_LONG_MODE = 1 << 53
_PROTECTED_MODE = 1 << 54
_GRANULARITY = 1 << 55


@dataclass(frozen=True)
class Gdt:
    """A three-entry GDT: null, code and data descriptors."""

    zero: int
    code: int
    data: int

    def to_bytes(self) -> bytes:
        return b"".join(
            d.to_bytes(_DESCRIPTOR_SIZE, "little") for d in (self.zero, self.code, self.data)
        )

    def pointer(self, base: int) -> bytes:
        """The 6-byte operand of ``lgdt`` for a table stored at ``base``."""
        if not 0 <= base <= 0xFFFFFFFF:
            raise ValueError(f"GDT base does not fit in 32 bits: {base:#x}")
        limit = _DESCRIPTOR_COUNT * _DESCRIPTOR_SIZE - 1
        return struct.pack("<HI", limit, base)


def protected_mode_gdt() -> Gdt:
    """Flat 4 GiB code and data segments for 32-bit protected mode."""
    limit = (0xF << 48) | 0xFFFF
    access_common = _PRESENT | _USER_SEGMENT | _READ_WRITE
    base_flags = _PROTECTED_MODE | _GRANULARITY | access_common | limit
    return Gdt(zero=0, code=base_flags | _EXECUTABLE, data=base_flags)


def long_mode_gdt() -> Gdt:
    """Code and data segments for 64-bit long mode."""
    common = _USER_SEGMENT | _PRESENT | _READ_WRITE | _ACCESSED
    return Gdt(zero=0, code=common | _EXECUTABLE | _LONG_MODE, data=common)