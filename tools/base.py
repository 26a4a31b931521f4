"""
Base tool interface for MisIntel verification tools.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class LookupStatus(str, Enum):
    OK = "ok"
    UNAVAILABLE = "unavailable"  # configured, but the call failed
    NOT_CONFIGURED = "not_configured"  # skipped without a network call


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """
    Outcome of an evidence lookup.

    ``data`` always holds a usable value: the fetched data when the status is
    ``ok``, otherwise the tool's neutral default (empty list, safe verdict).
    """
    status: LookupStatus
    data: T

    @classmethod
    def ok(cls, data: T) -> "Lookup[T]":
        return cls(LookupStatus.OK, data)

    @classmethod
    def unavailable(cls, default: T) -> "Lookup[T]":
        return cls(LookupStatus.UNAVAILABLE, default)

    @classmethod
    def not_configured(cls, default: T) -> "Lookup[T]":
        return cls(LookupStatus.NOT_CONFIGURED, default)

    @property
    def available(self) -> bool:
        return self.status is LookupStatus.OK


class BaseTool(ABC):
    """Abstract base class for all verification tools."""

    name: str = "base_tool"
    description: str = "Base tool interface"

    @property
    def is_available(self) -> bool:
        """Check if the tool is properly configured and available."""
        return True
