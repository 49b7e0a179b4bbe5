[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sbxgo"
version = "0.1.0"
description = "Building blocks for project-level AI coding agent sandboxes driven by a committed config file"
requires-python = ">=3.11"
dependencies = []
keywords = ["sandbox", "docker", "ai", "agent", "sbx"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sbxgo"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
