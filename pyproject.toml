[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "portmon"
version = "0.1.0"
description = "Map incoming network packets to the processes that own their destination ports"
requires-python = ">=3.10"
dependencies = []
keywords = ["netlink", "ports", "pid", "monitoring", "procfs", "unix-socket", "daemon"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
portmon-daemon = "portmon.daemon:main"
portmon-hunter = "portmon.packet_hunter:main"

[tool.hatch.build.targets.wheel]
packages = ["portmon"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
