"""Sector-based access to a disk image, as the BIOS exposes it."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

SECTOR_SIZE = 512
_SCRATCH_LEN = 2 * SECTOR_SIZE


@dataclass
class DiskAccess:
    """Reads whole sectors of a disk image relative to ``base_offset``.

    ``current_offset`` is the read position relative to ``base_offset``.
    Sectors lying beyond the end of the image read as zeros.
    """

    image: bytes = field(repr=False)
    disk_number: int = 0x80
    base_offset: int = 0
    current_offset: int = 0

    def seek(self, offset: int) -> int:
        """Move the read position to ``offset`` and return it."""
        if offset < 0:
            raise ValueError(f"cannot seek to a negative offset: {offset}")
        self.current_offset = offset
        return self.current_offset

    def read_exact(self, length: int) -> bytes:
        """Read ``length`` bytes at the current position.

        The bytes must lie within the two sectors starting at the sector
        that holds the current position.
        """
        sector_offset = self.current_offset % SECTOR_SIZE
        if length < 0 or sector_offset + length > _SCRATCH_LEN:
            raise ValueError(
                f"cannot read {length} bytes at sector offset {sector_offset}"
            )
        data = self.read_exact_into(_SCRATCH_LEN)
        return data[sector_offset:sector_offset + length]

    def read_exact_into(self, length: int) -> bytes:
        """Load ``length`` bytes of whole sectors, starting at the sector
        that holds the current position, and advance the position."""
        if length < 0 or length % SECTOR_SIZE:
            raise ValueError(f"length must be a multiple of {SECTOR_SIZE}: {length}")
        start = self.base_offset + self.current_offset
        first_sector_address = start - start % SECTOR_SIZE
        data = self._load(first_sector_address, length)
        self.current_offset += length
        return data

    def clone(self) -> "DiskAccess":
        """An independent reader over the same image."""
        return replace(self)

    def _load(self, address: int, length: int) -> bytes:
        chunk = bytes(self.image[address:address + length])
        return chunk + bytes(length - len(chunk))