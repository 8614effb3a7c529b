# x86boot

`x86boot` models the data structures and disk-loading steps of an x86_64
BIOS bootloader in plain Python.

- **Kernel configuration** (`x86boot.config`): `BootloaderConfig`,
  `Mappings`, `Mapping`, `FrameBuffer` and `ApiVersion`, with the fixed
  124-byte binary format. `BootloaderConfig.serialize()` produces the bytes,
  `BootloaderConfig.deserialize(data)` reads them back and raises
  `ConfigError` on malformed input. `Mapping.dynamic()` means "choose an
  address at runtime", `Mapping.fixed(address)` a fixed virtual address.
- **Boot information** (`x86boot.info`): `BootInfo`, `MemoryRegion`,
  `MemoryRegionKind`, `PixelFormat`, `FrameBufferInfo`, `FrameBuffer` and
  `TlsTemplate`. A `FrameBuffer` exposes its bytes through `buffer()`, either
  from its own zeroed storage or from a given `bytearray` standing for memory.
- **BIOS stage data** (`x86boot.bios_common`, `x86boot.memory_descriptor`,
  `x86boot.e820`): `BiosInfo`, `Region`, `BiosFramebufferInfo` (with
  `to_frame_buffer_info()`), `E820MemoryRegion`; `BiosMemoryRegion`
  classifies E820 entries as usable or firmware-reserved; `parse_e820_entry`
  and `collect_memory_map` decode raw E820 results (at most 100 regions).
- **Disk access** (`x86boot.mbr`, `x86boot.dap`, `x86boot.disk`,
  `x86boot.fat`): `get_partition` and `parse_partition_table` read MBR
  entries (raising `PartitionError`); `DiskAddressPacket` and
  `sector_loads` split a read into packets of at most 32 sectors;
  `DiskAccess` does sector-aligned reads over an in-memory image;
  `FileSystem` finds files in a FAT12/FAT16 root directory
  (`find_file_in_root_dir`) and walks their cluster chains
  (`file_clusters`), raising `FatFormatError` or `FatLookupError`.
- **CPU setup tables** (`x86boot.gdt`, `x86boot.paging`):
  `protected_mode_gdt()` and `long_mode_gdt()` return a `Gdt` that encodes
  itself with `to_bytes()` and its `lgdt` operand with `pointer(base)`;
  `identity_map_tables` builds level 4, 3 and 2 `PageTable`s mapping one
  gigabyte per level 2 table with 2 MiB huge pages.
- **Video modes** (`x86boot.vesa`): `VesaModeInfo.parse` decodes a 256-byte
  VBE mode information block, `read_mode_list` reads a mode list from
  memory, and `select_best_mode` picks the widest, then tallest,
  linear-framebuffer graphics mode within a size limit.
- **Loading** (`x86boot.loader`): `load_image(path)` reads a BIOS disk
  image, loads the second stage from the first partition, finds the FAT
  partition that follows the second-stage partition (type `0x20`), and loads
  `boot-stage-3`, `boot-stage-4`, `kernel-x86_64`, and the optional
  `ramdisk` and `boot.json`. It returns a `LoadedImage`, which also reports
  the memory address each part is placed at, and raises `LoadError` when a
  partition or required file is missing.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
x86boot path/to/disk.img
```

Loads the files from the image and prints, as the second stage would, where
stage 3, stage 4, the kernel and the ramdisk are placed. It exits with status
1 and an error message if the image cannot be read or loaded.

## Library use

```python
from x86boot.config import BootloaderConfig, Mapping

config = BootloaderConfig()
config.mappings.physical_memory = Mapping.fixed(0x0000_4000_0000_0000)
raw = config.serialize()
assert len(raw) == 124
assert BootloaderConfig.deserialize(raw) == config
```

```python
from x86boot.loader import load_image

image = load_image("disk.img")
print(hex(image.kernel_addr), len(image.kernel))
```

## What it does not do

The package does not boot anything: it does not execute the stages or the
kernel, does not parse kernel ELF files, set up a kernel's page tables or run
a virtual machine. It does not build disk images; it only reads them. Only
BIOS/MBR images are loaded, and FAT32 root directories are not supported.