"""Data structures and disk-loading steps of an x86_64 BIOS bootloader."""

__version__ = "0.1.0"