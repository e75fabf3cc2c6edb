[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "device_dsl"
version = "1.0.5"
description = "Parser for a device description language of registers, commands, buffers and blocks"
requires-python = ">=3.10"
dependencies = []
keywords = ["dsl", "parser", "registers", "device", "syntax tree"]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["device_dsl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
