"""Identity-mapping page tables built before entering long mode."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

ENTRY_COUNT = 512
PAGE_SIZE = 4096
HUGE_PAGE_SIZE = 2 * 1024 * 1024
GIGABYTE = 1024 * 1024 * 1024

PRESENT_WRITABLE = 0b11
HUGE_PAGE = 1 << 7


@dataclass
class PageTable:
    """One 4 KiB page table of 512 64-bit entries."""

    entries: list[int] = field(default_factory=lambda: [0] * ENTRY_COUNT)

    def __post_init__(self) -> None:
        if len(self.entries) != ENTRY_COUNT:
            raise ValueError(f"a page table holds {ENTRY_COUNT} entries, not {len(self.entries)}")

    def to_bytes(self) -> bytes:
        return b"".join(e.to_bytes(8, "little") for e in self.entries)


def _check_aligned(addr: int, what: str) -> None:
    if addr < 0 or addr % PAGE_SIZE:
        raise ValueError(f"{what} address {addr:#x} is not page aligned")


def identity_map_tables(
    level_4_addr: int, level_3_addr: int, level_2_addrs: Sequence[int]
) -> tuple[PageTable, PageTable, list[PageTable]]:
    """Build tables that identity-map one gigabyte per level 2 table.

    The addresses are the physical locations of the tables; the level 4
    table points at the level 3 table, which points at each level 2 table
    in turn. Level 2 entries map 2 MiB huge pages.
    """
    _check_aligned(level_4_addr, "level 4 table")
    _check_aligned(level_3_addr, "level 3 table")
    if len(level_2_addrs) > ENTRY_COUNT:
        raise ValueError(f"at most {ENTRY_COUNT} level 2 tables fit in one level 3 table")

    level_4 = PageTable()
    level_3 = PageTable()
    level_4.entries[0] = level_3_addr | PRESENT_WRITABLE

    level_2s = []
    for i, addr in enumerate(level_2_addrs):
        _check_aligned(addr, "level 2 table")
        level_3.entries[i] = addr | PRESENT_WRITABLE
        offset = i * GIGABYTE
        level_2s.append(
            PageTable(
                [
                    (offset + j * HUGE_PAGE_SIZE) | PRESENT_WRITABLE | HUGE_PAGE
                    for j in range(ENTRY_COUNT)
                ]
            )
        )
    return level_4, level_3, level_2s