"""Gather a filtered view of a codebase as one delimited document for LLMs."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("code-context")
except PackageNotFoundError:
    __version__ = "unknown"
