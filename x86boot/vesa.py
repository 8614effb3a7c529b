"""VESA video mode information and mode selection."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, Optional

from x86boot.info import PixelFormat

MODE_INFO_LEN = 256
_END_OF_MODE_LIST = 0xFFFF
_REQUIRED_ATTRIBUTES = 0x90
_SUPPORTED_MEMORY_MODELS = (4, 6)


class VesaError(ValueError):
    """Raised when VESA data cannot be read."""


def pixel_format_from_positions(
    red_position: int, green_position: int, blue_position: int
) -> PixelFormat:
    """Classify a pixel format by the bit offsets of its colour channels."""
    positions = (red_position, green_position, blue_position)
    if positions == (0, 8, 16):
        return PixelFormat.RGB
    if positions == (16, 8, 0):
        return PixelFormat.BGR
    return PixelFormat("unknown", red_position, green_position, blue_position)


@dataclass(frozen=True)
class VesaModeInfo:
    """The parts of a VBE mode information block the loader needs."""

    mode: int
    width: int
    height: int
    framebuffer_start: int
    bytes_per_scanline: int
    bytes_per_pixel: int
    pixel_format: PixelFormat
    memory_model: int
    attributes: int

    @classmethod
    def parse(cls, mode: int, raw: bytes) -> "VesaModeInfo":
        """Decode a 256-byte mode information block for ``mode``."""
        if len(raw) < MODE_INFO_LEN:
            raise VesaError(f"mode info block too short: {len(raw)} bytes")
        (attributes,) = struct.unpack_from("<H", raw, 0)
        bytes_per_scanline, width, height = struct.unpack_from("<HHH", raw, 16)
        bits_per_pixel = raw[25]
        memory_model = raw[27]
        red_position, green_position, blue_position = raw[32], raw[34], raw[36]
        (framebuffer,) = struct.unpack_from("<I", raw, 40)
        return cls(
            mode=mode,
            width=width,
            height=height,
            framebuffer_start=framebuffer,
            bytes_per_scanline=bytes_per_scanline,
            bytes_per_pixel=bits_per_pixel // 8,
            pixel_format=pixel_format_from_positions(
                red_position, green_position, blue_position
            ),
            memory_model=memory_model,
            attributes=attributes,
        )


def read_mode_list(memory: bytes, video_mode_ptr: int) -> list[int]:
    """Read the 0xFFFF-terminated mode list at a segment:offset pointer."""
    segment, offset = video_mode_ptr >> 16, video_mode_ptr & 0xFFFF
    address = (segment << 4) + offset
    modes = []
    while True:
        raw = memory[address:address + 2]
        if len(raw) != 2:
            raise VesaError("video mode list runs past the end of memory")
        mode = int.from_bytes(raw, "little")
        if mode == _END_OF_MODE_LIST:
            return modes
        modes.append(mode)
        address += 2


def _better(best: Optional[VesaModeInfo], candidate: VesaModeInfo) -> bool:
    if best is None:
        return True
    return (
        best.pixel_format.is_unknown()
        or best.width < candidate.width
        or (best.width == candidate.width and best.height < candidate.height)
    )


def select_best_mode(
    modes: Iterable[VesaModeInfo], max_width: int, max_height: int
) -> Optional[VesaModeInfo]:
    """Pick the largest linear-framebuffer graphics mode within the limits."""
    best: Optional[VesaModeInfo] = None
    for mode in modes:
        if mode.attributes & _REQUIRED_ATTRIBUTES != _REQUIRED_ATTRIBUTES:
            continue
        if mode.memory_model not in _SUPPORTED_MEMORY_MODELS:
            continue
        if mode.width > max_width or mode.height > max_height:
            continue
        if _better(best, mode):
            best = mode
    return best