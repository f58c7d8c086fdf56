from __future__ import annotations

from dataclasses import dataclass


@dataclass
class LpkError(Exception):
    message: str
    entry: str | None = None

    def __str__(self) -> str:
        where = f" (entry: {self.entry})" if self.entry else ""
        return f"{self.message}{where}"


@dataclass
class ManifestError(LpkError):
    """Manifest entry exists but cannot be decoded."""


@dataclass
class DescriptorNotFoundError(LpkError):
    """Neither extraction path produced a model descriptor."""
