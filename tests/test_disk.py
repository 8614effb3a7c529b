import pytest

from x86boot.disk import DiskAccess

SECTORS = 8


def make_image():
    return b"".join(bytes([n + 1]) * 512 for n in range(SECTORS))


def test_seek_returns_and_sets_offset():
    disk = DiskAccess(make_image())
    assert disk.seek(700) == 700
    assert disk.current_offset == 700


def test_seek_negative_rejected():
    disk = DiskAccess(make_image())
    with pytest.raises(ValueError):
        disk.seek(-1)


def test_read_exact_inside_sector():
    image = bytes(range(256)) * 16
    disk = DiskAccess(image)
    disk.seek(600)
    assert disk.read_exact(4) == image[600:604]


def test_read_exact_honours_base_offset():
    image = bytes(range(256)) * 16
    disk = DiskAccess(image, base_offset=512)
    disk.seek(10)
    assert disk.read_exact(4) == image[522:526]


def test_read_exact_across_sector_boundary():
    image = make_image()
    disk = DiskAccess(image)
    disk.seek(510)
    assert disk.read_exact(4) == image[510:514]


def test_read_exact_too_long_rejected():
    disk = DiskAccess(make_image())
    disk.seek(600)
    with pytest.raises(ValueError):
        disk.read_exact(1000)


def test_read_exact_into_reads_whole_sectors():
    image = make_image()
    disk = DiskAccess(image, base_offset=1024)
    disk.seek(0)
    assert disk.read_exact_into(1024) == image[1024:2048]
    assert disk.current_offset == 1024


def test_read_exact_into_starts_at_sector_boundary():
    image = make_image()
    disk = DiskAccess(image)
    disk.seek(100)
    assert disk.read_exact_into(512) == image[0:512]


def test_read_exact_into_requires_sector_multiple():
    disk = DiskAccess(make_image())
    with pytest.raises(ValueError):
        disk.read_exact_into(100)


def test_reading_past_end_yields_zeros():
    image = make_image()
    disk = DiskAccess(image)
    disk.seek(len(image) - 512)
    data = disk.read_exact_into(1024)
    assert data[:512] == image[-512:]
    assert data[512:] == bytes(512)


def test_consecutive_reads_continue():
    image = make_image()
    disk = DiskAccess(image)
    first = disk.read_exact_into(512)
    second = disk.read_exact_into(512)
    assert first + second == image[:1024]


def test_clone_is_independent():
    image = make_image()
    disk = DiskAccess(image, base_offset=512)
    copy = disk.clone()
    copy.seek(1000)
    assert disk.current_offset == 0
    assert copy.image is disk.image
    assert copy.base_offset == disk.base_offset