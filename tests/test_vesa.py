import struct

import pytest

from x86boot.info import PixelFormat
from x86boot.vesa import (
    VesaError,
    VesaModeInfo,
    pixel_format_from_positions,
    read_mode_list,
    select_best_mode,
)


def mode_block(width, height, bpp, scanline, positions, attributes=0x9B, model=6, fb=0xFD000000):
    raw = bytearray(256)
    struct.pack_into("<H", raw, 0, attributes)
    struct.pack_into("<HHH", raw, 16, scanline, width, height)
    raw[25] = bpp
    raw[27] = model
    raw[32], raw[34], raw[36] = positions
    struct.pack_into("<I", raw, 40, fb)
    return bytes(raw)


def mode(width, height, fmt=PixelFormat.BGR, attributes=0x90, model=6, number=0x100):
    return VesaModeInfo(number, width, height, 0, width * 4, 4, fmt, model, attributes)


def test_known_pixel_formats():
    assert pixel_format_from_positions(0, 8, 16) == PixelFormat.RGB
    assert pixel_format_from_positions(16, 8, 0) == PixelFormat.BGR


def test_unknown_pixel_format_keeps_positions():
    fmt = pixel_format_from_positions(1, 2, 3)
    assert fmt.is_unknown()
    assert (fmt.red_position, fmt.green_position, fmt.blue_position) == (1, 2, 3)


def test_parse_mode_block():
    info = VesaModeInfo.parse(0x118, mode_block(1024, 768, 32, 4096, (16, 8, 0)))
    assert (info.mode, info.width, info.height) == (0x118, 1024, 768)
    assert info.bytes_per_pixel == 4
    assert info.bytes_per_scanline == 4096
    assert info.framebuffer_start == 0xFD000000
    assert info.pixel_format == PixelFormat.BGR
    assert info.attributes == 0x9B


def test_parse_short_block():
    with pytest.raises(VesaError):
        VesaModeInfo.parse(1, bytes(100))


def test_read_mode_list():
    memory = bytearray(0x200)
    modes = [0x101, 0x118, 0x11B]
    struct.pack_into("<4H", memory, 0x104, *modes, 0xFFFF)
    assert read_mode_list(memory, (0x10 << 16) | 0x4) == modes


def test_read_mode_list_unterminated():
    memory = bytearray(b"\x01\x01" * 4)
    with pytest.raises(VesaError):
        read_mode_list(memory, 0)


def test_select_prefers_larger_within_limits():
    small, medium, large = mode(800, 600), mode(1280, 720), mode(1920, 1080)
    assert select_best_mode([small, large, medium], 1280, 720) == medium


def test_select_prefers_taller_at_same_width():
    short, tall = mode(1024, 600), mode(1024, 768)
    assert select_best_mode([tall, short], 1280, 800) == tall


def test_select_skips_unsuitable_modes():
    no_lfb = mode(1024, 768, attributes=0x10)
    text_model = mode(1024, 768, model=0)
    good = mode(640, 480)
    assert select_best_mode([no_lfb, text_model, good], 1280, 720) == good
    assert select_best_mode([no_lfb, text_model], 1280, 720) is None


def test_select_replaces_unknown_format():
    unknown = mode(1024, 768, fmt=PixelFormat("unknown", 1, 2, 3))
    known = mode(800, 600)
    assert select_best_mode([unknown, known], 1280, 720) == known


def test_select_empty():
    assert select_best_mode([], 1280, 720) is None