[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flowstore"
version = "0.1.0"
description = "In-memory and on-disk storage for emulated blockchain state: blocks, collections, transactions, results, events and ledger registers versioned by block height."
requires-python = ">=3.10"
dependencies = [
    "cbor2",
]
keywords = ["blockchain", "emulator", "storage", "ledger", "key-value", "cbor", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["flowstore"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
