[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "certbotmanager"
version = "0.1.0"
description = "Requests Let's Encrypt certificates with certbot and keeps them renewed on a cron schedule."
requires-python = ">=3.11"
dependencies = []
keywords = [
    "certbot",
    "letsencrypt",
    "acme",
    "tls",
    "certificates",
    "cron",
    "renewal",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
certbot-manager = "certbotmanager.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["certbotmanager"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
strict = true
