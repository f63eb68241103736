[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sockshade"
version = "0.1.0"
description = "Shadowsocks stream ciphers, ShadowsocksR ciphers, obfuscators and protocols, plus SOCKS4 and reject dialers"
requires-python = ">=3.10"
keywords = [
    "proxy",
    "shadowsocks",
    "shadowsocksr",
    "ssr",
    "socks4",
    "obfuscation",
    "stream-cipher",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: Security :: Cryptography",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "pycryptodome>=3.18",
    "cryptography>=41",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[tool.hatch.build.targets.wheel]
packages = ["sockshade"]

[tool.hatch.build.targets.sdist]
include = [
    "sockshade",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
ignore_missing_imports = true
