[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "disco"
version = "0.1.0"
description = "Multi-disk storage pool: offline file index, Solid rules and best-fit placement planning"
requires-python = ">=3.10"
dependencies = []
keywords = ["disk", "storage", "index", "sqlite", "bin-packing", "backup"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: MacOS",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["disco"]

[tool.pytest.ini_options]
addopts = "-ra"
