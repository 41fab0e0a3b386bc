[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "blobarena"
version = "0.1.0"
description = "A small multiplayer blob-eating arena over UDP with client-side prediction and interpolation"
requires-python = ">=3.10"
keywords = ["game", "multiplayer", "udp", "netcode", "prediction", "interpolation", "pygame"]
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
    "Topic :: Games/Entertainment :: Arcade",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
blobarena = "blobarena.main:main"

[tool.hatch.build.targets.wheel]
packages = ["blobarena"]

[tool.pytest.ini_options]
addopts = "-ra"
