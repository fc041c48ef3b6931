from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CodeContextError(Exception):
    """Base exception for errors in the code_context package."""


@dataclass(frozen=True)
class ConfigurationError(CodeContextError):
    """Raised for fatal configuration problems, before any traversal starts."""


@dataclass(frozen=True)
class PresetFileError(ConfigurationError):
    """Raised when the preset store exists but cannot be read or understood."""

    path: Path
    reason: str

    def __str__(self) -> str:
        return f"Invalid preset file {self.path}: {self.reason}"


@dataclass(frozen=True)
class InvalidPatternError(ConfigurationError):
    """Raised when a glob pattern cannot be compiled."""

    pattern: str
    reason: str = "invalid glob syntax"

    def __str__(self) -> str:
        return f"Invalid glob pattern {self.pattern!r}: {self.reason}"


@dataclass(frozen=True)
class TraversalError(CodeContextError):
    """Raised when a single entry cannot be visited during the walk."""

    path: Path
    reason: str

    def __str__(self) -> str:
        return f"Error walking entry {self.path}: {self.reason}"


@dataclass(frozen=True)
class ContentReadError(CodeContextError):
    """Raised when a content-eligible file cannot be read as text."""

    rel: str
    reason: str

    def __str__(self) -> str:
        return self.reason
