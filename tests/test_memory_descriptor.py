import pytest

from x86boot.bios_common import E820MemoryRegion
from x86boot.info import MemoryRegionKind
from x86boot.memory_descriptor import BiosMemoryRegion


def test_start_and_length_come_from_e820_entry():
    entry = E820MemoryRegion(start_addr=0x100000, length=0x7EE0000, region_type=1)
    region = BiosMemoryRegion(entry)
    assert region.start() == entry.start_addr
    assert region.length() == entry.length


def test_type_one_is_usable():
    region = BiosMemoryRegion(E820MemoryRegion(0, 0x9FC00, 1))
    assert region.kind() == MemoryRegionKind.USABLE
    assert region.usable_after_bootloader_exit() is True


@pytest.mark.parametrize("region_type", [2, 3, 4, 5])
def test_other_types_are_unknown_bios(region_type):
    region = BiosMemoryRegion(E820MemoryRegion(0x9FC00, 0x400, region_type))
    assert region.kind() == MemoryRegionKind("unknown_bios", region_type)
    assert region.usable_after_bootloader_exit() is False