[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "constraintkit"
version = "0.1.0"
description = "Building blocks for policy constraint frameworks: constraint templates, CRD schemas, external data providers and a remote OPA driver."
requires-python = ">=3.10"
dependencies = []
keywords = ["policy", "constraints", "opa", "rego", "admission", "crd"]
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
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["constraintkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
