"""
Shared type definitions for flights-finder.

This module provides centralized type aliases and protocols used across
the codebase, ensuring consistency and reducing duplication.
"""

from __future__ import annotations

from typing import Literal, Mapping, Protocol, runtime_checkable

# ============================================================================
# Type Aliases
# ============================================================================

ProviderName = Literal["skyscanner", "kiwi"]
"""Provider families served by the flights-finder portal."""

Environment = Literal["production", "local"]
"""
Base URL selector.

- "production": the live flights-finder portal
- "local": the canned-response fake server (see ``flights_finder.fake_server``)
"""

CabinClass = Literal["economy", "premium-economy", "business", "first"]
"""Cabin class options for a search."""

Direction = Literal["outbound", "inbound"]
"""Direction of a leg within a trip."""


# ============================================================================
# Protocols (Interfaces)
# ============================================================================

@runtime_checkable
class ResponseProtocol(Protocol):
    """Protocol for HTTP response objects returned by the transport client."""

    @property
    def status_code(self) -> int:
        """HTTP status code."""
        ...

    @property
    def text(self) -> str:
        """Response body as text."""
        ...

    @property
    def headers(self) -> Mapping[str, str]:
        """Response headers."""
        ...


# ============================================================================
# Constants
# ============================================================================

PROVIDERS: tuple[ProviderName, ...] = ("skyscanner", "kiwi")
"""All supported provider families."""

CABIN_CLASSES: tuple[CabinClass, ...] = ("economy", "premium-economy", "business", "first")
"""All valid cabin class values."""

ENVIRONMENTS: tuple[Environment, ...] = ("production", "local")
"""All valid base URL selectors."""


__all__ = [
    # Type aliases
    "ProviderName",
    "Environment",
    "CabinClass",
    "Direction",
    # Protocols
    "ResponseProtocol",
    # Constants
    "PROVIDERS",
    "CABIN_CLASSES",
    "ENVIRONMENTS",
]
