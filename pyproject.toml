[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cookbuild"
version = "6.0.0"
description = "A small incremental build library driven by recipe files in the HELL6.99MO format"
requires-python = ">=3.10"
dependencies = []
keywords = ["build", "build-system", "incremental", "compiler", "recipe", "h699"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cookbuild"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
