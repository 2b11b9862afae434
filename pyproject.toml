[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "srtlive"
version = "1.4.8"
description = "Building blocks of a live streaming server: MPEG-TS parsing, ring buffers, config parsing, playback pacing and HLS recording"
requires-python = ">=3.10"
dependencies = []
keywords = ["srt", "mpeg-ts", "live-streaming", "hls", "ring-buffer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["srtlive"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
