"""Loading the later boot stages, the kernel and its companions from a disk image."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from x86boot.disk import SECTOR_SIZE, DiskAccess
from x86boot.fat import FatFormatError, FatLookupError, FileSystem
from x86boot.mbr import PartitionError, PartitionTableEntry, get_partition, parse_partition_table

BOOTLOADER_SECOND_STAGE_PARTITION_TYPE = 0x20
FAT_PARTITION_TYPES = frozenset({0x01, 0x04, 0x06, 0x0B, 0x0C, 0x0E})

STAGE_3_DST = 0x0010_0000
STAGE_4_DST = 0x0013_0000
KERNEL_DST = 0x0100_0000
PAGE_SIZE = 4096
DISK_BUFFER_SIZE = 0x4000

PARTITION_TABLE_OFFSET = 446
_PARTITION_TABLE_LEN = 16 * 4

STAGE_3_NAME = "boot-stage-3"
STAGE_4_NAME = "boot-stage-4"
KERNEL_NAME = "kernel-x86_64"
RAMDISK_NAME = "ramdisk"
CONFIG_FILE_NAME = "boot.json"


class LoadError(RuntimeError):
    """Raised when the boot files cannot be located or loaded."""


@dataclass(frozen=True)
class LoadedImage:
    """Everything the BIOS stages load from disk, with its memory layout."""

    second_stage: bytes
    stage_3: bytes
    stage_4: bytes
    kernel: bytes
    ramdisk: bytes = b""
    config_file: bytes = b""

    @property
    def stage_3_addr(self) -> int:
        return STAGE_3_DST

    @property
    def stage_4_addr(self) -> int:
        return STAGE_4_DST

    @property
    def kernel_addr(self) -> int:
        return KERNEL_DST

    @property
    def ramdisk_addr(self) -> int:
        """The first page boundary after the kernel."""
        kernel_pages = (len(self.kernel) - 1) // PAGE_SIZE + 1
        return KERNEL_DST + kernel_pages * PAGE_SIZE

    @property
    def config_file_addr(self) -> int:
        return self.ramdisk_addr + len(self.ramdisk)

    @property
    def last_used_addr(self) -> int:
        return self.config_file_addr + len(self.config_file) - 1


def screen_text(text: str) -> bytes:
    """The bytes the BIOS teletype output receives for ``text``.

    Non-ASCII characters become ``X`` and every newline is followed by a
    carriage return.
    """
    out = bytearray()
    for char in text:
        if char.isascii():
            out.append(ord(char))
            if char == "\n":
                out.append(ord("\r"))
        else:
            out.append(ord("X"))
    return bytes(out)


def find_second_stage_partition(
    partitions: Sequence[PartitionTableEntry],
) -> PartitionTableEntry:
    """Return the FAT partition that follows the second stage partition."""
    index = next(
        (
            i
            for i, entry in enumerate(partitions)
            if entry.partition_type == BOOTLOADER_SECOND_STAGE_PARTITION_TYPE
        ),
        None,
    )
    if index is None:
        raise LoadError("no second stage partition found")
    if index + 1 >= len(partitions):
        raise LoadError("no partition follows the second stage partition")
    fat_partition = partitions[index + 1]
    if fat_partition.partition_type not in FAT_PARTITION_TYPES:
        raise LoadError(
            f"partition after the second stage is not FAT: "
            f"type {fat_partition.partition_type:#04x}"
        )
    return fat_partition


def try_load_file(fs: FileSystem, disk: DiskAccess, name: str) -> Optional[bytes]:
    """Read the root-directory file ``name``, or return None if it is absent."""
    file = fs.find_file_in_root_dir(name)
    if file is None:
        return None

    content = bytearray()
    for cluster in fs.file_clusters(file):
        cluster_end = cluster.start_offset + cluster.len_bytes
        range_start = cluster.start_offset
        while range_start < cluster_end:
            range_end = min(range_start + DISK_BUFFER_SIZE, cluster_end)
            disk.seek(range_start)
            data = disk.read_exact_into(DISK_BUFFER_SIZE)
            content += data[:range_end - range_start]
            range_start = range_end
    return bytes(content[:file.file_size])


def load_file(fs: FileSystem, disk: DiskAccess, name: str) -> bytes:
    """Read the root-directory file ``name``, which must exist."""
    content = try_load_file(fs, disk, name)
    if content is None:
        raise LoadError(f"file not found: {name}")
    return content


def _load_second_stage(image: bytes, table: bytes) -> bytes:
    entry = get_partition(table, 0)
    reader = DiskAccess(image)
    reader.seek(entry.logical_block_address * SECTOR_SIZE)
    return reader.read_exact_into(entry.sector_count * SECTOR_SIZE)


def load_image(path) -> LoadedImage:
    """Load the boot stages, kernel, ramdisk and config from a disk image."""
    image = Path(path).read_bytes()
    table = image[PARTITION_TABLE_OFFSET:PARTITION_TABLE_OFFSET + _PARTITION_TABLE_LEN]
    try:
        second_stage = _load_second_stage(image, table)
        fat_partition = find_second_stage_partition(parse_partition_table(table))

        disk = DiskAccess(
            image, base_offset=fat_partition.logical_block_address * SECTOR_SIZE
        )
        fs = FileSystem.parse(disk.clone())

        stage_3 = load_file(fs, disk, STAGE_3_NAME)
        if STAGE_4_DST <= STAGE_3_DST + len(stage_3):
            raise LoadError("stage 3 overlaps the load address of stage 4")
        stage_4 = load_file(fs, disk, STAGE_4_NAME)
        kernel = load_file(fs, disk, KERNEL_NAME)
        if not kernel:
            raise LoadError("kernel file is empty")
        ramdisk = try_load_file(fs, disk, RAMDISK_NAME) or b""
        config_file = try_load_file(fs, disk, CONFIG_FILE_NAME) or b""
    except (PartitionError, FatFormatError, FatLookupError) as exc:
        raise LoadError(str(exc)) from exc

    return LoadedImage(
        second_stage=second_stage,
        stage_3=stage_3,
        stage_4=stage_4,
        kernel=kernel,
        ramdisk=ramdisk,
        config_file=config_file,
    )


def _write(text: str) -> None:
    sys.stdout.write(screen_text(text).decode("ascii"))


def main(argv=None) -> int:
    """Load a BIOS disk image and report where each part would be placed."""
    parser = argparse.ArgumentParser(
        prog="x86boot", description="Load the boot files from a BIOS disk image."
    )
    parser.add_argument("image", help="path of the disk image")
    args = parser.parse_args(argv)

    try:
        loaded = load_image(args.image)
    except (LoadError, OSError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 1

    _write(" -> SECOND STAGE\n")
    _write(f"stage 3 loaded at {loaded.stage_3_addr:#x}\n")
    _write(f"stage 4 loaded at {loaded.stage_4_addr:#x}\n")
    _write("loading kernel...\n")
    _write(f"kernel loaded at {loaded.kernel_addr:#x}\n")
    _write("Loading ramdisk...\n")
    if loaded.ramdisk:
        _write(f"Loaded ramdisk at {loaded.ramdisk_addr:#x}\n")
    else:
        _write("No ramdisk found, skipping.\n")
    return 0