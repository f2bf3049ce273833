[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "logpatterns"
version = "0.1.0"
description = "Group log messages into patterns, guess their severity and join multi-line entries such as stack traces"
requires-python = ">=3.10"
dependencies = []
keywords = ["logs", "log analysis", "patterns", "stack traces", "severity"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Log Analysis",
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
logpatterns = "logpatterns.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["logpatterns"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
