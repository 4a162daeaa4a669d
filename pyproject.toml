[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dovikit"
version = "0.1.0"
description = "Dolby Vision RPU bitstream structures, ST 2094-10 metadata and madVR measurement files"
requires-python = ">=3.10"
dependencies = []
keywords = ["dolby-vision", "rpu", "hdr", "hevc", "madvr", "pq", "st2094"]
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
    "Topic :: Multimedia :: Video",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["dovikit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
