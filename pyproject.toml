[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slsqsf"
version = "0.1.0"
description = "Quasi-static feedback control of a quadrotor carrying a slung load"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["quadrotor", "slung load", "control", "attitude", "multirotor"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["slsqsf"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
