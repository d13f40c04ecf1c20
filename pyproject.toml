[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gbsengine"
version = "0.1.0"
description = "Game runtime core: script VM, actors, triggers, projectiles, palettes, fades and save slots for tile-based handheld games"
requires-python = ">=3.10"
dependencies = []
keywords = ["game-engine", "virtual-machine", "tile-based", "retro", "scripting", "fixed-point"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gbsengine"]

[tool.pytest.ini_options]
addopts = "-ra"
