[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "godis"
version = "0.1.0"
description = "Building blocks of a Redis-compatible server: RESP replies and parser, pub/sub, client, TCP loop, pools, time wheel and more"
requires-python = ">=3.10"
dependencies = []
keywords = ["redis", "resp", "protocol", "pubsub", "geohash", "consistent-hashing", "snowflake"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["godis"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
