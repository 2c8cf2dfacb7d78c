[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "blockcodec"
version = "0.1.0"
description = "Block-DCT video encoder with motion-based foreground segmentation, and a decoder and player for its output"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "pygame",
]
keywords = ["video", "dct", "compression", "motion estimation", "codec", "player"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video :: Conversion",
    "Topic :: Multimedia :: Video :: Display",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
blockcodec-encode = "blockcodec.encoder:main"
blockcodec-play = "blockcodec.player:main"

[tool.hatch.build.targets.wheel]
packages = ["blockcodec"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
