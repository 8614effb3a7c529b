"""Memory regions reported by the BIOS, seen as bootloader memory regions."""

from __future__ import annotations

from dataclasses import dataclass

from x86boot.bios_common import E820MemoryRegion
from x86boot.info import MemoryRegionKind

_E820_USABLE = 1


@dataclass(frozen=True)
class BiosMemoryRegion:
    """A physical memory region returned by an E820 BIOS call."""

    region: E820MemoryRegion

    def start(self) -> int:
        return self.region.start_addr

    def length(self) -> int:
        return self.region.length

    def kind(self) -> MemoryRegionKind:
        if self.region.region_type == _E820_USABLE:
            return MemoryRegionKind.USABLE
        return MemoryRegionKind("unknown_bios", self.region.region_type)

    def usable_after_bootloader_exit(self) -> bool:
        return self.kind() == MemoryRegionKind.USABLE