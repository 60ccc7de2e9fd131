[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "apigenkit"
version = "0.1.0"
description = "Naming rules, URI template parsing and template substitution tooling for generated API client projects"
requires-python = ">=3.10"
keywords = ["code-generation", "uri-template", "rfc6570", "templating", "jinja2", "api-index"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Code Generators",
]
dependencies = [
    "jinja2",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
apigenkit = "apigenkit.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["apigenkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
