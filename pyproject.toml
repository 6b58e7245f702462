[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vibekernel"
version = "0.1.0"
description = "A small hobby-kernel model: FAT16 volumes, a virtual file system, ELF headers, descriptor tables, a text screen, a keyboard and a command shell"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "fat16",
    "filesystem",
    "vfs",
    "elf",
    "kernel",
    "shell",
    "gdt",
    "idt",
    "vga",
    "scancode",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Topic :: System :: Operating System",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
vibekernel-shell = "vibekernel.shell:main"

[tool.hatch.build.targets.wheel]
packages = ["vibekernel"]

[tool.hatch.build.targets.sdist]
include = ["vibekernel", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
