"""Reading entries of an MBR partition table."""

from __future__ import annotations

from dataclasses import dataclass

_ENTRY_SIZE = 16
_MAX_ENTRIES = 4
_BOOTABLE_FLAG = 0x80


class PartitionError(ValueError):
    """Raised when a partition table entry cannot be read.

    ``code`` is the one-character failure code the boot sector reports.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{message} (code {code!r})")
        self.code = code


@dataclass(frozen=True)
class PartitionTableEntry:
    """An entry in a partition table."""

    bootable: bool
    partition_type: int
    logical_block_address: int
    sector_count: int


def get_partition(partitions_raw: bytes, index: int) -> PartitionTableEntry:
    """Decode entry ``index`` of a raw partition table."""
    offset = index * _ENTRY_SIZE
    if index < 0 or offset > len(partitions_raw):
        raise PartitionError("c", "partition index out of range")
    buffer = bytes(partitions_raw[offset:])

    if not buffer:
        raise PartitionError("d", "missing bootable flag")
    bootable = buffer[0] == _BOOTABLE_FLAG

    if len(buffer) <= 4:
        raise PartitionError("e", "missing partition type")
    partition_type = buffer[4]

    lba_raw = buffer[8:12]
    if len(lba_raw) != 4:
        raise PartitionError("f", "missing logical block address")
    count_raw = buffer[12:16]
    if len(count_raw) != 4:
        raise PartitionError("g", "missing sector count")

    return PartitionTableEntry(
        bootable=bootable,
        partition_type=partition_type,
        logical_block_address=int.from_bytes(lba_raw, "little"),
        sector_count=int.from_bytes(count_raw, "little"),
    )


def parse_partition_table(raw: bytes) -> list[PartitionTableEntry]:
    """Decode all four entries of a raw partition table."""
    return [get_partition(raw, index) for index in range(_MAX_ENTRIES)]