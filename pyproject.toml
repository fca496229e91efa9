[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "markethub"
version = "0.1.0"
description = "Market data hub pieces: timers, scheduled self-restarts, alarm mail, CTP tick conversion and CSV tick storage"
requires-python = ">=3.10"
keywords = ["market data", "futures", "ctp", "ticks", "csv", "scheduler", "restart"]
classifiers = [
    "Development Status :: 4 - Beta",
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
    "filelock",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
markethub = "markethub.scheduler:main"

[tool.hatch.build.targets.wheel]
packages = ["markethub"]

[tool.hatch.build.targets.sdist]
include = ["markethub", "tests", "pyproject.toml"]

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
