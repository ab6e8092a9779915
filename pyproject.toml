[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netchat"
version = "0.1.0"
description = "A small TCP chat server and client built on a length-prefixed packet protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "tcp", "udp", "sockets", "packets", "poll", "url"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
netchat-server = "netchat.chat_server:main"
netchat-client = "netchat.chat_client:main"

[tool.hatch.build.targets.wheel]
packages = ["netchat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
