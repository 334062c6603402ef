[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "echonet"
version = "0.1.0"
description = "Echo, news and chat servers and clients over TCP and UDP sockets"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "echo",
    "socket",
    "tcp",
    "udp",
    "multicast",
    "broadcast",
    "select",
    "epoll",
    "chat",
    "networking",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
echonet-client = "echonet.client:main"
echonet-iterative-server = "echonet.iterative_server:main"
echonet-udp = "echonet.udp_echo:main"
echonet-forking-server = "echonet.forking_server:main"
echonet-select-server = "echonet.select_server:main"
echonet-epoll-server = "echonet.epoll_server:main"
echonet-news = "echonet.news:main"
echonet-chat = "echonet.chat:main"

[tool.hatch.build.targets.wheel]
packages = ["echonet"]

[tool.pytest.ini_options]
addopts = "-ra"
