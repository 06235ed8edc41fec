[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dexkit"
version = "0.1.0"
description = "Order-book primitives for an on-chain exchange: crit-bit slabs, fee tiers, token instructions and client configuration"
requires-python = ">=3.10"
keywords = ["order book", "crit-bit", "exchange", "fees", "token", "instructions", "base58"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
    "Typing :: Typed",
]
dependencies = [
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "hypothesis>=6.0",
]

[tool.hatch.build.targets.wheel]
packages = ["dexkit"]

[tool.hatch.build.targets.sdist]
include = ["dexkit", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
