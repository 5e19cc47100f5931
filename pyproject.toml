[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "unusedcrates"
version = "0.1.56"
description = "Find unused dependencies in Cargo.toml"
requires-python = ">=3.10"
dependencies = []
keywords = ["cargo", "rust", "dependencies", "unused", "lint"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
unusedcrates = "unusedcrates.cli:main"
unusedcrates-recorder = "unusedcrates.recorder:main"

[tool.hatch.build.targets.wheel]
packages = ["unusedcrates"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
