[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "draftkit"
version = "0.1.0"
description = "Helpers for templating, language detection, Azure/GitHub setup and manifest checks for Kubernetes deployments"
requires-python = ">=3.10"
keywords = ["kubernetes", "templates", "scaffolding", "helm", "kustomize", "azure", "github"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "pyyaml",
    "packaging",
    "backoff",
    "termcolor",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["draftkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
