[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "teknumbot"
version = "0.1.0"
description = "Building blocks for a Telegram group bot: Bot API client, join-captcha state, under-attack mode, message analytics and an HTTP analytics API"
requires-python = ">=3.10"
keywords = ["telegram", "bot", "captcha", "moderation", "analytics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]
dependencies = [
    "httpx",
    "cachetools",
    "sqlalchemy",
    "flask",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["teknumbot"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
