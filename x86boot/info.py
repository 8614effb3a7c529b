"""Boot information handed from the bootloader to the kernel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Optional

from x86boot.config import ApiVersion

_U32_LIMIT = 1 << 32
_U8_LIMIT = 1 << 8


@dataclass(frozen=True)
class MemoryRegionKind:
    """The type of a physical memory region.

    ``category`` is one of ``"usable"``, ``"bootloader"``, ``"unknown_uefi"``
    or ``"unknown_bios"``; the two unknown categories carry the firmware's
    memory type tag in ``code``.
    """

    category: str
    code: Optional[int] = None

    USABLE: ClassVar["MemoryRegionKind"]
    BOOTLOADER: ClassVar["MemoryRegionKind"]

    _PLAIN: ClassVar[frozenset] = frozenset({"usable", "bootloader"})
    _TAGGED: ClassVar[frozenset] = frozenset({"unknown_uefi", "unknown_bios"})

    def __post_init__(self) -> None:
        if self.category in self._PLAIN:
            if self.code is not None:
                raise ValueError(f"{self.category} memory carries no type tag")
        elif self.category in self._TAGGED:
            if self.code is None or not 0 <= self.code < _U32_LIMIT:
                raise ValueError(f"invalid memory type tag: {self.code!r}")
        else:
            raise ValueError(f"unknown memory region category: {self.category!r}")


MemoryRegionKind.USABLE = MemoryRegionKind("usable")
MemoryRegionKind.BOOTLOADER = MemoryRegionKind("bootloader")


@dataclass
class MemoryRegion:
    """A physical memory region; ``end`` is exclusive."""

    start: int
    end: int
    kind: MemoryRegionKind

    @classmethod
    def empty(cls) -> "MemoryRegion":
        """A zero-length region marked as used by the bootloader."""
        return cls(0, 0, MemoryRegionKind.BOOTLOADER)


@dataclass(frozen=True)
class PixelFormat:
    """Colour format of framebuffer pixels.

    ``layout`` is ``"rgb"``, ``"bgr"``, ``"u8"`` or ``"unknown"``; an unknown
    layout records the bit offset of each colour channel.
    """

    layout: str
    red_position: Optional[int] = None
    green_position: Optional[int] = None
    blue_position: Optional[int] = None

    RGB: ClassVar["PixelFormat"]
    BGR: ClassVar["PixelFormat"]
    U8: ClassVar["PixelFormat"]

    _KNOWN: ClassVar[frozenset] = frozenset({"rgb", "bgr", "u8"})

    def __post_init__(self) -> None:
        positions = (self.red_position, self.green_position, self.blue_position)
        if self.layout in self._KNOWN:
            if any(p is not None for p in positions):
                raise ValueError(f"{self.layout} pixels have fixed channel positions")
        elif self.layout == "unknown":
            if any(p is None or not 0 <= p < _U8_LIMIT for p in positions):
                raise ValueError(f"invalid channel positions: {positions!r}")
        else:
            raise ValueError(f"unknown pixel layout: {self.layout!r}")

    def is_unknown(self) -> bool:
        return self.layout == "unknown"


PixelFormat.RGB = PixelFormat("rgb")
PixelFormat.BGR = PixelFormat("bgr")
PixelFormat.U8 = PixelFormat("u8")


@dataclass(frozen=True)
class FrameBufferInfo:
    """Layout and pixel format of a framebuffer."""

    byte_len: int
    width: int
    height: int
    pixel_format: PixelFormat
    bytes_per_pixel: int
    stride: int


class FrameBuffer:
    """A pixel framebuffer located at ``buffer_start`` in ``memory``.

    ``memory`` stands for the address space, indexed by address. Without it
    the framebuffer gets its own zeroed storage and ``buffer_start`` only
    records the address.
    """

    def __init__(
        self,
        buffer_start: int,
        info: FrameBufferInfo,
        memory: Optional[bytearray] = None,
    ) -> None:
        self.buffer_start = buffer_start
        self._info = info
        if memory is None:
            self._memory = bytearray(info.byte_len)
            self._offset = 0
        else:
            self._memory = memory
            self._offset = buffer_start

    def info(self) -> FrameBufferInfo:
        return self._info

    def buffer(self) -> memoryview:
        """A writable view of the framebuffer's bytes."""
        end = self._offset + self._info.byte_len
        if self._offset < 0 or end > len(self._memory):
            raise ValueError("framebuffer lies outside the given memory")
        return memoryview(self._memory)[self._offset:end]

    def __repr__(self) -> str:
        return f"FrameBuffer(buffer_start={self.buffer_start:#x}, info={self._info!r})"


@dataclass(frozen=True)
class TlsTemplate:
    """Thread local storage template of the kernel executable."""

    start_addr: int
    file_size: int
    mem_size: int


@dataclass
class BootInfo:
    """Information the bootloader passes to the kernel."""

    memory_regions: list[MemoryRegion]
    api_version: ApiVersion = field(default_factory=ApiVersion)
    framebuffer: Optional[FrameBuffer] = None
    physical_memory_offset: Optional[int] = None
    recursive_index: Optional[int] = None
    rsdp_addr: Optional[int] = None
    tls_template: Optional[TlsTemplate] = None
    ramdisk_addr: Optional[int] = None
    ramdisk_len: int = 0
    kernel_addr: int = 0
    kernel_len: int = 0
    kernel_image_offset: int = 0
    test_sentinel: int = 0