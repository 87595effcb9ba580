[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kodiak"
version = "0.1.0"
description = "A VT100/Linux-console style terminal emulator core on an in-memory cell grid, with x86-64 descriptor tables, interrupt dispatch and boot protocol constants"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "terminal",
    "emulator",
    "ansi",
    "vt100",
    "escape-sequences",
    "cp437",
    "gdt",
    "idt",
    "framebuffer",
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
    "Topic :: Terminals :: Terminal Emulators/X Terminals",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kodiak"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
