from pathlib import Path
from typing import Any


class ConversionError(Exception):
    """Base exception for all conversion errors."""

    def __init__(self, message: str):
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {"detail": str(self)}


class ProfileNotFoundError(ConversionError):
    """Raised when a target grammar profile name is not known."""

    def __init__(self, name: str, *, available: list[str] | None = None):
        available = available or []
        super().__init__(f"Unknown target profile {name!r} (available: {', '.join(available) or 'none'})")
        self.name = name
        self.available = available

    def to_dict(self) -> dict[str, Any]:
        return {"detail": str(self), "profile": self.name, "available": self.available}


class ProfileFileError(ConversionError):
    """Raised when a profile file cannot be read or does not validate."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot load profile from {path}: {reason}")
        self.path = path
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        return {"detail": str(self), "path": str(self.path), "reason": self.reason}


class EmissionInvariantError(ConversionError):
    """Raised when the emitter breaks its own bookkeeping - a bug, never bad input."""
