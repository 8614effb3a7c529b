"""Minimal read-only access to FAT12/FAT16 file systems."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from x86boot.disk import DiskAccess

DIRECTORY_ENTRY_BYTES = 32
UNUSED_ENTRY_PREFIX = 0xE5
END_OF_DIRECTORY_PREFIX = 0

ATTR_READ_ONLY = 0x01
ATTR_HIDDEN = 0x02
ATTR_SYSTEM = 0x04
ATTR_VOLUME_ID = 0x08
ATTR_DIRECTORY = 0x10
ATTR_LONG_NAME = ATTR_READ_ONLY | ATTR_HIDDEN | ATTR_SYSTEM | ATTR_VOLUME_ID


class FatFormatError(ValueError):
    """Raised when a file system has a layout that cannot be read."""


class FatLookupError(LookupError):
    """Raised when a cluster chain hits an entry that is not part of a file."""

    FREE_CLUSTER = "free cluster"
    DEFECTIVE_CLUSTER = "defective cluster"
    UNSPECIFIED_ENTRY_ONE = "unspecified entry one"
    RESERVED_ENTRY = "reserved entry"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class FatType(enum.Enum):
    FAT12 = 12
    FAT16 = 16
    FAT32 = 32

    @property
    def fat_entry_defective(self) -> int:
        return _DEFECTIVE[self]


_DEFECTIVE = {
    FatType.FAT12: 0xFF7,
    FatType.FAT16: 0xFFF7,
    FatType.FAT32: 0x0FFFFFF7,
}


def _u16(raw: bytes, offset: int) -> int:
    return int.from_bytes(raw[offset:offset + 2], "little")


def _u32(raw: bytes, offset: int) -> int:
    return int.from_bytes(raw[offset:offset + 4], "little")


@dataclass(frozen=True)
class File:
    first_cluster: int
    file_size: int


@dataclass(frozen=True)
class Cluster:
    index: int
    start_offset: int
    len_bytes: int


@dataclass(frozen=True)
class Bpb:
    """The BIOS parameter block at the start of a FAT volume."""

    bytes_per_sector: int
    sectors_per_cluster: int
    reserved_sector_count: int
    num_fats: int
    root_entry_count: int
    total_sectors_16: int
    fat_size_16: int
    total_sectors_32: int
    fat_size_32: int
    root_cluster: int

    def __post_init__(self) -> None:
        if self.bytes_per_sector == 0 or self.sectors_per_cluster == 0:
            raise FatFormatError("sector and cluster sizes must not be zero")

    @classmethod
    def parse(cls, disk: DiskAccess) -> "Bpb":
        disk.seek(0)
        raw = disk.read_exact(512)

        total_sectors_16 = _u16(raw, 19)
        total_sectors_32 = _u32(raw, 32)
        if total_sectors_16 == 0 and total_sectors_32 != 0:
            fat_size_32 = _u32(raw, 36)
            root_cluster = _u32(raw, 44)
        elif total_sectors_16 != 0 and total_sectors_32 == 0:
            fat_size_32 = 0
            root_cluster = 0
        else:
            raise FatFormatError("ExactlyOneTotalSectorsFieldMustBeZero")

        return cls(
            bytes_per_sector=_u16(raw, 11),
            sectors_per_cluster=raw[13],
            reserved_sector_count=_u16(raw, 14),
            num_fats=raw[16],
            root_entry_count=_u16(raw, 17),
            total_sectors_16=total_sectors_16,
            fat_size_16=_u16(raw, 22),
            total_sectors_32=total_sectors_32,
            fat_size_32=fat_size_32,
            root_cluster=root_cluster,
        )

    def fat_size_in_sectors(self) -> int:
        if self.fat_size_16 != 0 and self.fat_size_32 == 0:
            return self.fat_size_16
        return self.fat_size_32

    def count_of_clusters(self) -> int:
        root_dir_sectors = (
            self.root_entry_count * 32 + self.bytes_per_sector - 1
        ) // self.bytes_per_sector
        total_sectors = self.total_sectors_16 or self.total_sectors_32
        data_sectors = total_sectors - (
            self.reserved_sector_count
            + self.num_fats * self.fat_size_in_sectors()
            + root_dir_sectors
        )
        if data_sectors < 0:
            raise FatFormatError("volume is smaller than its metadata")
        return data_sectors // self.sectors_per_cluster

    def fat_type(self) -> FatType:
        count = self.count_of_clusters()
        if count < 4085:
            return FatType.FAT12
        if count < 65525:
            return FatType.FAT16
        return FatType.FAT32

    def root_directory_size(self) -> int:
        return self.root_entry_count * DIRECTORY_ENTRY_BYTES

    def root_directory_offset(self) -> int:
        return (
            self.reserved_sector_count + self.num_fats * self.fat_size_16
        ) * self.bytes_per_sector

    def maximum_valid_cluster(self) -> int:
        return self.count_of_clusters() + 1

    def fat_offset(self) -> int:
        return self.reserved_sector_count * self.bytes_per_sector

    def data_offset(self) -> int:
        return self.root_directory_size() + (
            self.reserved_sector_count + self.fat_size_in_sectors() * self.num_fats
        ) * self.bytes_per_sector

    def bytes_per_cluster(self) -> int:
        return self.bytes_per_sector * self.sectors_per_cluster


@dataclass(frozen=True)
class DirectoryEntry:
    short_name: str
    short_name_extension: str
    long_name: str
    file_size: int
    first_cluster: int
    attributes: int

    def is_directory(self) -> bool:
        return bool(self.attributes & ATTR_DIRECTORY)


@dataclass(frozen=True)
class _ShortEntry:
    main: str
    extension: str
    attributes: int
    first_cluster: int
    file_size: int

    def eq_name(self, name: str) -> bool:
        return self.main + self.extension == name


@dataclass(frozen=True)
class _LongNameEntry:
    order: int
    name_units: bytes
    attributes: int
    checksum: int

    def name(self) -> Optional[str]:
        units = bytearray()
        for pos in range(0, len(self.name_units), 2):
            pair = self.name_units[pos:pos + 2]
            if pair == b"\x00\x00":
                break
            units += pair
        try:
            return units.decode("utf-16-le")
        except UnicodeDecodeError:
            return None

    def eq_name(self, name: str) -> bool:
        decoded = self.name()
        return decoded is not None and decoded == name


_RawEntry = Union[_ShortEntry, _LongNameEntry]


def _slice_to_string(raw: bytes) -> Optional[str]:
    text = raw.lstrip(b" ").split(b" ", 1)[0]
    try:
        return text.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _parse_entry(raw: bytes) -> Optional[_RawEntry]:
    attributes = raw[11]
    if attributes == ATTR_LONG_NAME:
        return _LongNameEntry(
            order=raw[0],
            name_units=bytes(raw[1:11] + raw[14:26] + raw[28:32]),
            attributes=attributes,
            checksum=raw[13],
        )
    main = _slice_to_string(raw[0:8])
    extension = _slice_to_string(raw[8:11])
    if main is None or extension is None:
        return None
    first_cluster = (_u16(raw, 20) << 16) | _u16(raw, 26)
    return _ShortEntry(
        main=main,
        extension=extension,
        attributes=attributes,
        first_cluster=first_cluster,
        file_size=_u32(raw, 28),
    )


def classify_fat_entry(
    fat_type: FatType, entry: int, maximum_valid_cluster: int
) -> Optional[int]:
    """Return the cluster an entry points to, or None at end of file."""
    if entry == 0:
        raise FatLookupError(FatLookupError.FREE_CLUSTER)
    if entry == 1:
        raise FatLookupError(FatLookupError.UNSPECIFIED_ENTRY_ONE)
    if entry <= maximum_valid_cluster:
        return entry
    defective = fat_type.fat_entry_defective
    if entry < defective:
        raise FatLookupError(FatLookupError.RESERVED_ENTRY)
    if entry == defective:
        raise FatLookupError(FatLookupError.DEFECTIVE_CLUSTER)
    return None


def _fat_entry_of_nth_cluster(
    disk: DiskAccess, fat_type: FatType, fat_start: int, n: int
) -> int:
    if fat_type is FatType.FAT32:
        disk.seek(fat_start + n * 4)
        return int.from_bytes(disk.read_exact(4), "little") & 0x0FFFFFFF
    if fat_type is FatType.FAT16:
        disk.seek(fat_start + n * 2)
        return int.from_bytes(disk.read_exact(2), "little")
    disk.seek(fat_start + n + n // 2)
    entry16 = int.from_bytes(disk.read_exact(2), "little")
    return entry16 & 0xFFF if n % 2 == 0 else entry16 >> 4


class FileSystem:
    """A FAT volume read through a :class:`DiskAccess`."""

    def __init__(self, disk: DiskAccess, bpb: Bpb) -> None:
        self.disk = disk
        self.bpb = bpb

    @classmethod
    def parse(cls, disk: DiskAccess) -> "FileSystem":
        return cls(disk, Bpb.parse(disk))

    def _root_entries(self) -> Iterator[_RawEntry]:
        if self.bpb.fat_type() is FatType.FAT32:
            raise FatFormatError("FAT32 root directories are not supported")
        self.disk.seek(self.bpb.root_directory_offset())
        data = self.disk.read_exact_into(self.bpb.root_directory_size())
        chunks = (
            data[pos:pos + DIRECTORY_ENTRY_BYTES]
            for pos in range(0, len(data), DIRECTORY_ENTRY_BYTES)
        )
        for raw in chunks:
            if raw[0] == END_OF_DIRECTORY_PREFIX:
                return
            if raw[0] == UNUSED_ENTRY_PREFIX:
                continue
            entry = _parse_entry(raw)
            if entry is not None:
                yield entry

    def find_file_in_root_dir(self, name: str) -> Optional[File]:
        """Look up a regular file by name in the root directory."""
        entries = self._root_entries()
        found = next((e for e in entries if e.eq_name(name)), None)
        if found is None:
            return None

        if isinstance(found, _LongNameEntry):
            following = next(entries, None)
            if following is None:
                raise FatFormatError("long name entry is not followed by a short entry")
            if isinstance(following, _LongNameEntry):
                raise FatFormatError("long names spanning several entries are not supported")
            short, long_name = following, found.name() or ""
        else:
            short, long_name = found, ""

        entry = DirectoryEntry(
            short_name=short.main,
            short_name_extension=short.extension,
            long_name=long_name,
            file_size=short.file_size,
            first_cluster=short.first_cluster,
            attributes=short.attributes,
        )
        if entry.is_directory():
            return None
        return File(first_cluster=entry.first_cluster, file_size=entry.file_size)

    def file_clusters(self, file: File) -> Iterator[Cluster]:
        """Yield the clusters of ``file`` in chain order."""
        bpb = self.bpb
        fat_type = bpb.fat_type()
        current = file.first_cluster
        while True:
            cluster = classify_fat_entry(fat_type, current, bpb.maximum_valid_cluster())
            if cluster is None:
                return
            start = bpb.data_offset() + (cluster - 2) * bpb.bytes_per_cluster()
            next_entry = _fat_entry_of_nth_cluster(
                self.disk, fat_type, bpb.fat_offset(), cluster
            )
            yield Cluster(
                index=current, start_offset=start, len_bytes=bpb.bytes_per_cluster()
            )
            current = next_entry