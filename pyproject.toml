[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kperf"
version = "0.1.0"
description = "Building blocks for load-testing a Kubernetes API server: load profiles, response metrics, reports and chart values"
requires-python = ">=3.10"
keywords = ["kubernetes", "benchmark", "load-testing", "apiserver", "traffic"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing :: Traffic Generation",
    "Topic :: System :: Benchmark",
]
dependencies = [
    "pyyaml",
    "httpx",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["kperf"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
