[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "x86boot"
version = "0.1.0"
description = "Data structures and disk-loading steps of an x86_64 BIOS bootloader: kernel config format, boot info, MBR, FAT, E820, VESA, GDT and paging"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "bootloader",
    "x86_64",
    "bios",
    "mbr",
    "fat",
    "e820",
    "vesa",
    "gdt",
    "paging",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Boot",
    "Topic :: System :: Filesystems",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
x86boot = "x86boot.loader:main"

[tool.hatch.build.targets.wheel]
packages = ["x86boot"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
