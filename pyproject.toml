[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pixelgate"
version = "3.6.0"
description = "Building blocks for an image-processing HTTP server: URL signing, source checks, resize geometry, BMP/ICO helpers, SVG sanitizing, routing and local file serving."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "image",
    "http",
    "resize",
    "signature",
    "hmac",
    "bmp",
    "ico",
    "svg",
    "router",
    "etag",
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
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Multimedia :: Graphics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pixelgate"]

[tool.hatch.build.targets.sdist]
include = ["pixelgate", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
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
