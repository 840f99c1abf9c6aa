[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lootdecomp"
version = "0.1.0"
description = "Decompile x86-64 ELF binaries produced by the Loot compiler back into Racket source"
requires-python = ">=3.10"
dependencies = []
keywords = ["decompiler", "elf", "x86-64", "racket", "loot", "disassembler"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
lootdecomp = "lootdecomp.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["lootdecomp"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
