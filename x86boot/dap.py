"""Disk address packets for the extended BIOS disk read call."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar, Iterator

SECTOR_SIZE = 512
MAX_SECTORS_PER_LOAD = 32

_PACKET_FORMAT = "<BBHHHQ"
_SEGMENT_LIMIT = 0xFFFF


@dataclass(frozen=True)
class DiskAddressPacket:
    """The 16-byte structure describing one sector transfer."""

    number_of_sectors: int
    offset: int
    segment: int
    start_lba: int
    packet_size: int = 0x10
    zero: int = 0

    SIZE: ClassVar[int] = struct.calcsize(_PACKET_FORMAT)

    @classmethod
    def from_lba(
        cls,
        start_lba: int,
        number_of_sectors: int,
        target_offset: int,
        target_segment: int,
    ) -> "DiskAddressPacket":
        return cls(
            number_of_sectors=number_of_sectors,
            offset=target_offset,
            segment=target_segment,
            start_lba=start_lba,
        )

    def to_bytes(self) -> bytes:
        """The packed little-endian layout the BIOS expects."""
        try:
            return struct.pack(
                _PACKET_FORMAT,
                self.packet_size,
                self.zero,
                self.number_of_sectors,
                self.offset,
                self.segment,
                self.start_lba,
            )
        except struct.error as exc:
            raise ValueError(f"disk address packet field out of range: {exc}") from exc


def sector_loads(
    start_lba: int, number_of_sectors: int, target_addr: int
) -> Iterator[DiskAddressPacket]:
    """Split a sector read into packets of at most 32 sectors each.

    ``target_addr`` is the linear address the first sector goes to; every
    packet addresses its buffer as segment and offset.
    """
    if number_of_sectors < 0:
        raise ValueError(f"negative sector count: {number_of_sectors}")
    while True:
        sectors = min(number_of_sectors, MAX_SECTORS_PER_LOAD)
        segment = target_addr >> 4
        if not 0 <= segment <= _SEGMENT_LIMIT:
            raise ValueError(f"target address {target_addr:#x} is not reachable in real mode")
        yield DiskAddressPacket.from_lba(start_lba, sectors, target_addr & 0b1111, segment)

        start_lba += sectors
        number_of_sectors -= sectors
        target_addr += sectors * SECTOR_SIZE

        if number_of_sectors == 0:
            return