"""Bootloader configuration and its fixed-size binary encoding."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Optional

_PACKAGE_VERSION = "0.1.0"

_U64_LIMIT = 1 << 64
_U16_LIMIT = 1 << 16


class ConfigError(ValueError):
    """Raised when a configuration cannot be encoded or decoded."""


def _parse_version(text: str) -> tuple[int, int, int, bool]:
    core, _, pre = text.partition("-")
    major, minor, patch = (int(part) for part in core.split("."))
    return major, minor, patch, bool(pre)


VERSION_MAJOR, VERSION_MINOR, VERSION_PATCH, VERSION_PRE = _parse_version(_PACKAGE_VERSION)


def _u64_bytes(value: int, what: str) -> bytes:
    if not 0 <= value < _U64_LIMIT:
        raise ConfigError(f"{what} does not fit in 64 bits: {value}")
    return value.to_bytes(8, "little")


def _u16_bytes(value: int, what: str) -> bytes:
    if not 0 <= value < _U16_LIMIT:
        raise ConfigError(f"{what} does not fit in 16 bits: {value}")
    return value.to_bytes(2, "little")


def _optional_u64_bytes(value: Optional[int], what: str) -> bytes:
    if value is None:
        return bytes(9)
    return b"\x01" + _u64_bytes(value, what)


def _optional_u64_from(flag: int, payload: bytes, error: str) -> Optional[int]:
    if flag == 0 and payload == bytes(8):
        return None
    if flag == 1:
        return int.from_bytes(payload, "little")
    raise ConfigError(error)


class _Reader:
    """Consumes a byte string front to back in fixed-size pieces."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, n: int) -> bytes:
        chunk = self._data[self._pos:self._pos + n]
        self._pos += n
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos


@dataclass(frozen=True)
class ApiVersion:
    """A semver-compatible version of the bootloader API."""

    version_major: int = VERSION_MAJOR
    version_minor: int = VERSION_MINOR
    version_patch: int = VERSION_PATCH
    pre_release: bool = VERSION_PRE


@dataclass(frozen=True)
class Mapping:
    """How a memory region is placed in virtual memory.

    ``address`` is None for a dynamic mapping, chosen at runtime, or the
    page-aligned virtual address for a fixed mapping.
    """

    address: Optional[int] = None

    SERIALIZED_LEN: ClassVar[int] = 9

    @classmethod
    def dynamic(cls) -> "Mapping":
        return cls(None)

    @classmethod
    def fixed(cls, address: int) -> "Mapping":
        return cls(address)

    @property
    def is_dynamic(self) -> bool:
        return self.address is None

    def serialize(self) -> bytes:
        if self.address is None:
            return bytes(self.SERIALIZED_LEN)
        return b"\x01" + _u64_bytes(self.address, "mapping address")

    @classmethod
    def deserialize(cls, data: bytes) -> "Mapping":
        if len(data) != cls.SERIALIZED_LEN:
            raise ConfigError("invalid mapping format")
        variant, addr = data[0], bytes(data[1:])
        if variant == 0 and addr == bytes(8):
            return cls.dynamic()
        if variant == 1:
            return cls.fixed(int.from_bytes(addr, "little"))
        raise ConfigError("invalid mapping value")


@dataclass
class Mappings:
    """Virtual memory mappings the bootloader sets up."""

    kernel_stack: Mapping = field(default_factory=Mapping.dynamic)
    boot_info: Mapping = field(default_factory=Mapping.dynamic)
    framebuffer: Mapping = field(default_factory=Mapping.dynamic)
    physical_memory: Optional[Mapping] = None
    page_table_recursive: Optional[Mapping] = None
    aslr: bool = False
    dynamic_range_start: Optional[int] = None
    dynamic_range_end: Optional[int] = None
    ramdisk_memory: Mapping = field(default_factory=Mapping.dynamic)


@dataclass
class FrameBuffer:
    """Minimum frame buffer dimensions requested from the bootloader."""

    minimum_framebuffer_height: Optional[int] = None
    minimum_framebuffer_width: Optional[int] = None


def _optional_mapping_bytes(mapping: Optional[Mapping]) -> bytes:
    if mapping is None:
        return bytes(10)
    return b"\x01" + mapping.serialize()


def _optional_mapping_from(flag: int, payload: bytes, error: str) -> Optional[Mapping]:
    if flag == 0 and payload == bytes(9):
        return None
    if flag == 1:
        return Mapping.deserialize(payload)
    raise ConfigError(error)


@dataclass
class BootloaderConfig:
    """Configuration a kernel hands to the bootloader."""

    version: ApiVersion = field(default_factory=ApiVersion)
    mappings: Mappings = field(default_factory=Mappings)
    kernel_stack_size: int = 80 * 1024
    frame_buffer: FrameBuffer = field(default_factory=FrameBuffer)

    UUID: ClassVar[bytes] = bytes(
        [
            0x74, 0x3C, 0xA9, 0x61, 0x09, 0x36, 0x46, 0xA0,
            0xBB, 0x55, 0x5C, 0x15, 0x89, 0x15, 0x25, 0x3D,
        ]
    )
    SERIALIZED_LEN: ClassVar[int] = 124

    def serialize(self) -> bytes:
        """Encode the configuration as exactly SERIALIZED_LEN bytes."""
        version = self.version
        mappings = self.mappings
        frame_buffer = self.frame_buffer
        parts = [
            self.UUID,
            _u16_bytes(version.version_major, "major version"),
            _u16_bytes(version.version_minor, "minor version"),
            _u16_bytes(version.version_patch, "patch version"),
            bytes([1 if version.pre_release else 0]),
            _u64_bytes(self.kernel_stack_size, "kernel stack size"),
            mappings.kernel_stack.serialize(),
            mappings.boot_info.serialize(),
            mappings.framebuffer.serialize(),
            _optional_mapping_bytes(mappings.physical_memory),
            _optional_mapping_bytes(mappings.page_table_recursive),
            bytes([1 if mappings.aslr else 0]),
            _optional_u64_bytes(mappings.dynamic_range_start, "dynamic range start"),
            _optional_u64_bytes(mappings.dynamic_range_end, "dynamic range end"),
            mappings.ramdisk_memory.serialize(),
            _optional_u64_bytes(
                frame_buffer.minimum_framebuffer_height, "minimum framebuffer height"
            ),
            _optional_u64_bytes(
                frame_buffer.minimum_framebuffer_width, "minimum framebuffer width"
            ),
        ]
        return b"".join(parts)

    @classmethod
    def deserialize(cls, data: bytes) -> "BootloaderConfig":
        """Decode bytes produced by :meth:`serialize`."""
        if len(data) != cls.SERIALIZED_LEN:
            raise ConfigError("invalid len")
        reader = _Reader(data)

        if reader.take(16) != cls.UUID:
            raise ConfigError("invalid UUID")

        major = int.from_bytes(reader.take(2), "little")
        minor = int.from_bytes(reader.take(2), "little")
        patch = int.from_bytes(reader.take(2), "little")
        pre = reader.byte()
        if pre not in (0, 1):
            raise ConfigError("invalid pre version")
        version = ApiVersion(major, minor, patch, pre == 1)

        kernel_stack_size = int.from_bytes(reader.take(8), "little")

        kernel_stack = reader.take(9)
        boot_info = reader.take(9)
        framebuffer = reader.take(9)
        physical_memory_flag, physical_memory = reader.byte(), reader.take(9)
        recursive_flag, recursive = reader.byte(), reader.take(9)
        aslr = reader.byte()
        start_flag, start = reader.byte(), reader.take(8)
        end_flag, end = reader.byte(), reader.take(8)
        ramdisk_memory = reader.take(9)

        kernel_stack_mapping = Mapping.deserialize(kernel_stack)
        boot_info_mapping = Mapping.deserialize(boot_info)
        framebuffer_mapping = Mapping.deserialize(framebuffer)
        physical_memory_mapping = _optional_mapping_from(
            physical_memory_flag, physical_memory, "invalid phys memory value"
        )
        recursive_mapping = _optional_mapping_from(
            recursive_flag, recursive, "invalid page table recursive value"
        )
        if aslr not in (0, 1):
            raise ConfigError("invalid aslr value")
        dynamic_range_start = _optional_u64_from(
            start_flag, start, "invalid dynamic range start value"
        )
        dynamic_range_end = _optional_u64_from(
            end_flag, end, "invalid dynamic range end value"
        )
        mappings = Mappings(
            kernel_stack=kernel_stack_mapping,
            boot_info=boot_info_mapping,
            framebuffer=framebuffer_mapping,
            physical_memory=physical_memory_mapping,
            page_table_recursive=recursive_mapping,
            aslr=aslr == 1,
            dynamic_range_start=dynamic_range_start,
            dynamic_range_end=dynamic_range_end,
            ramdisk_memory=Mapping.deserialize(ramdisk_memory),
        )

        height_flag, height = reader.byte(), reader.take(8)
        width_flag, width = reader.byte(), reader.take(8)
        frame_buffer = FrameBuffer(
            minimum_framebuffer_height=_optional_u64_from(
                height_flag, height, "minimum_framebuffer_height invalid"
            ),
            minimum_framebuffer_width=_optional_u64_from(
                width_flag, width, "minimum_framebuffer_width invalid"
            ),
        )

        if reader.remaining:
            raise ConfigError("unexpected rest")

        return cls(
            version=version,
            mappings=mappings,
            kernel_stack_size=kernel_stack_size,
            frame_buffer=frame_buffer,
        )