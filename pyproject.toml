[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hprobe"
version = "0.1.0"
description = "Packet probing building blocks: option parsing, APD packet descriptions, port scan bookkeeping, RTT tracking and a small bignum library"
requires-python = ">=3.10"
dependencies = []
keywords = ["networking", "tcp", "icmp", "port-scan", "packet", "bignum", "rc4"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hprobe"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
