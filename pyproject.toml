[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "orgchart"
version = "0.1.0"
description = "A small JSON HTTP service for the departments and jobs of an organisation chart, stored in SQLite"
requires-python = ">=3.10"
keywords = ["org-chart", "json", "http", "flask", "sqlite", "departments", "jobs"]
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
]
dependencies = [
    "flask",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
orgchart = "orgchart.app:main"

[tool.hatch.build.targets.wheel]
packages = ["orgchart"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
