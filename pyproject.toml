[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uwsgate"
version = "0.1.0"
description = "Building blocks for an event-driven HTTP and WebSocket server: header parser, permessage-deflate streams, event loop state, URL router, response bookkeeping and a pub/sub topic tree."
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "websocket", "router", "pubsub", "permessage-deflate", "event-loop"]
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
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["uwsgate"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
