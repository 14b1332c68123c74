[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "steamtg"
version = "0.1.0"
description = "HTTP JSON API for dispatching drivers to clients, backed by PostgreSQL with PostGIS"
requires-python = ">=3.10"
keywords = ["dispatch", "drivers", "orders", "geospatial", "postgis", "rest-api", "flask"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Database :: Front-Ends",
]
dependencies = [
    "flask>=2.3",
    "sqlalchemy>=2.0",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[project.scripts]
steamtg = "steamtg.server:main"

[tool.hatch.build.targets.wheel]
packages = ["steamtg"]

[tool.hatch.build.targets.sdist]
include = ["steamtg", "tests", "README.md"]

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
ignore_missing_imports = true
