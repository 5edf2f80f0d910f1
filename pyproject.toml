[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ctrack"
version = "0.1.0"
description = "Connection tracking entries: attributes, netlink payload parsing, label maps and text/XML formatting"
requires-python = ">=3.10"
dependencies = []
keywords = ["conntrack", "netfilter", "netlink", "firewall", "nat"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Firewalls",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ctrack"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
