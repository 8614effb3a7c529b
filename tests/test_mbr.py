import struct

import pytest

from x86boot.mbr import PartitionError, PartitionTableEntry, get_partition, parse_partition_table


def _entry(flag, partition_type, lba, count):
    return struct.pack("<B3xB3xII", flag, partition_type, lba, count)


def test_get_partition_decodes_fields():
    raw = _entry(0x80, 0x20, 2048, 97)
    entry = get_partition(raw, 0)
    assert entry == PartitionTableEntry(True, 0x20, 2048, 97)


def test_non_bootable_flag():
    raw = _entry(0x00, 0x0C, 10, 20)
    assert get_partition(raw, 0).bootable is False


def test_parse_partition_table_reads_four_entries():
    specs = [(0x80, 0x20, 1, 2), (0, 0x06, 3, 4), (0, 0, 0, 0), (0, 0x0B, 5, 6)]
    raw = b"".join(_entry(*spec) for spec in specs)
    entries = parse_partition_table(raw)
    assert len(entries) == 4
    for entry, (flag, ptype, lba, count) in zip(entries, specs):
        assert entry.bootable == (flag == 0x80)
        assert entry.partition_type == ptype
        assert entry.logical_block_address == lba
        assert entry.sector_count == count


def test_index_selects_entry():
    raw = _entry(0, 1, 11, 12) + _entry(0x80, 2, 21, 22)
    assert get_partition(raw, 1).logical_block_address == 21
    assert get_partition(raw, 1).bootable is True


@pytest.mark.parametrize(
    "raw,index,code",
    [
        (bytes(16), 2, "c"),
        (bytes(16), 1, "d"),
        (bytes(4), 0, "e"),
        (bytes(10), 0, "f"),
        (bytes(14), 0, "g"),
    ],
)
def test_errors_carry_failure_codes(raw, index, code):
    with pytest.raises(PartitionError) as excinfo:
        get_partition(raw, index)
    assert excinfo.value.code == code


def test_short_table_raises():
    with pytest.raises(PartitionError):
        parse_partition_table(bytes(48))