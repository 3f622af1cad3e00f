[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pocketboy"
version = "0.1.0"
description = "A Game Boy (DMG) emulator with an SM83 CPU, pixel-FIFO PPU, timer, DMA and MBC1 cartridges"
requires-python = ">=3.10"
keywords = ["emulator", "game boy", "gameboy", "dmg", "sm83", "retro"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: System :: Emulators",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
pocketboy = "pocketboy.emulator:main"

[tool.hatch.build.targets.wheel]
packages = ["pocketboy"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
