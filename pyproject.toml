[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dbft"
version = "0.1.0"
description = "State, message vocabulary and configuration for a dBFT consensus node, with optional anti-MEV extension"
requires-python = ">=3.10"
dependencies = []
keywords = ["consensus", "bft", "dbft", "byzantine", "blockchain", "distributed"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dbft"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
