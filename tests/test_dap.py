import pytest

from x86boot.dap import DiskAddressPacket, sector_loads


def test_packet_wire_bytes():
    packet = DiskAddressPacket.from_lba(0x1234, 5, 0x8, 0x7E0)
    assert packet.to_bytes() == bytes.fromhex("10000500 0800e007 34120000 00000000")


def test_packet_header_fields():
    data = DiskAddressPacket.from_lba(7, 1, 0, 0).to_bytes()
    assert len(data) == DiskAddressPacket.SIZE
    assert data[0] == 0x10
    assert data[1] == 0


def test_packet_field_overflow_raises():
    with pytest.raises(ValueError):
        DiskAddressPacket.from_lba(0, 0x10000, 0, 0).to_bytes()


def test_sector_loads_cover_all_sectors():
    packets = list(sector_loads(100, 70, 0x7E00))
    assert sum(p.number_of_sectors for p in packets) == 70
    assert all(p.number_of_sectors <= 32 for p in packets)
    assert packets[0].start_lba == 100


def test_sector_loads_are_contiguous():
    packets = list(sector_loads(5, 100, 0x8000))
    for first, second in zip(packets, packets[1:]):
        assert second.start_lba == first.start_lba + first.number_of_sectors
        first_addr = (first.segment << 4) + first.offset
        second_addr = (second.segment << 4) + second.offset
        assert second_addr == first_addr + first.number_of_sectors * 512


def test_sector_loads_target_address_split():
    packet = next(sector_loads(0, 1, 0x7E05))
    assert (packet.segment << 4) + packet.offset == 0x7E05
    assert packet.offset < 16


def test_sector_loads_unreachable_address():
    with pytest.raises(ValueError):
        list(sector_loads(0, 1, 0x100000))


def test_sector_loads_negative_count():
    with pytest.raises(ValueError):
        list(sector_loads(0, -1, 0x7E00))