"""Decoding the memory map returned by the E820 BIOS call."""

from __future__ import annotations

from typing import Iterable, Optional

from x86boot.bios_common import E820MemoryRegion

MAX_ENTRIES = 100
_BASE_ENTRY_LEN = 20
_EXTENDED_ENTRY_LEN = 24


def parse_e820_entry(buf: bytes) -> Optional[E820MemoryRegion]:
    """Decode the bytes one E820 call wrote.

    Returns None for an empty buffer or a region of length zero. The ACPI
    extended attributes are read only when exactly four follow the type.
    """
    if not buf:
        return None
    if len(buf) < _BASE_ENTRY_LEN:
        raise ValueError(f"E820 entry too short: {len(buf)} bytes")
    start_addr = int.from_bytes(buf[0:8], "little")
    length = int.from_bytes(buf[8:16], "little")
    region_type = int.from_bytes(buf[16:20], "little")
    rest = buf[20:]
    acpi = int.from_bytes(rest, "little") if len(rest) == 4 else 0
    if length == 0:
        return None
    return E820MemoryRegion(
        start_addr=start_addr,
        length=length,
        region_type=region_type,
        acpi_extended_attributes=acpi,
    )


def collect_memory_map(entries: Iterable[bytes]) -> list[E820MemoryRegion]:
    """Decode successive E820 results, dropping empty ones."""
    regions: list[E820MemoryRegion] = []
    for buf in entries:
        region = parse_e820_entry(buf)
        if region is None:
            continue
        if len(regions) == MAX_ENTRIES:
            raise ValueError(f"memory map has more than {MAX_ENTRIES} regions")
        regions.append(region)
    return regions