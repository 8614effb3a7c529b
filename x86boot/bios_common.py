"""Structures shared between the BIOS boot stages."""

from __future__ import annotations

from dataclasses import dataclass

from x86boot.info import FrameBufferInfo, PixelFormat


@dataclass(frozen=True)
class Region:
    """A contiguous range of physical memory."""

    start: int
    length: int


@dataclass(frozen=True)
class BiosFramebufferInfo:
    """Framebuffer set up through VESA by the second stage."""

    region: Region
    width: int
    height: int
    bytes_per_pixel: int
    stride: int
    pixel_format: PixelFormat

    def to_frame_buffer_info(self) -> FrameBufferInfo:
        """Describe this framebuffer in the form handed to the kernel."""
        return FrameBufferInfo(
            byte_len=self.region.length,
            width=self.width,
            height=self.height,
            pixel_format=self.pixel_format,
            bytes_per_pixel=self.bytes_per_pixel,
            stride=self.stride,
        )


@dataclass
class BiosInfo:
    """What the second stage passes on to the later stages."""

    stage_4: Region
    kernel: Region
    ramdisk: Region
    config_file: Region
    last_used_addr: int
    framebuffer: BiosFramebufferInfo
    memory_map_addr: int
    memory_map_len: int


@dataclass(frozen=True)
class E820MemoryRegion:
    """One entry of the memory map returned by the E820 BIOS call."""

    start_addr: int
    length: int
    region_type: int
    acpi_extended_attributes: int = 0