[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dufs"
version = "0.45.0"
description = "Building blocks of a utility file server: configuration, listening sockets, access logging and plain HTML listings"
requires-python = ">=3.10"
keywords = ["static", "file", "server", "webdav", "configuration", "logging"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
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
    "pyyaml",
    "psutil",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["dufs"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
