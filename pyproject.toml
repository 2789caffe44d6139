[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tokenstate"
version = "0.0.1"
description = "State layout, JSON-RPC request handling and an HTTP client for a token ledger with assets, orders and cross-chain loans"
requires-python = ">=3.10"
keywords = ["token", "ledger", "json-rpc", "orderbook", "state", "balances", "assets", "bech32", "base58"]
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
    "Topic :: Office/Business :: Financial",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["tokenstate"]

[tool.hatch.build.targets.sdist]
include = ["tokenstate", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
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
