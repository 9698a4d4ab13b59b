[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sonoscope"
version = "0.1.0"
description = "Conformance image management, run status tracking and cluster snapshot helpers for Kubernetes diagnostics"
requires-python = ">=3.10"
keywords = [
    "kubernetes",
    "conformance",
    "e2e",
    "docker",
    "images",
    "diagnostics",
    "cluster",
]
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
    "Topic :: Software Development :: Testing",
    "Topic :: System :: Clustering",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sonoscope"]

[tool.hatch.build.targets.sdist]
include = [
    "sonoscope",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
