[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "voxmix"
version = "0.1.0"
description = "Multi-party PCM audio mixing, RTP timestamps, FFT and spectral noise suppression"
requires-python = ">=3.10"
dependencies = []
keywords = ["audio", "mixer", "pcm", "conference", "noise suppression", "fft", "rtp"]
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
    "Topic :: Multimedia :: Sound/Audio",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["voxmix"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
