"""Cashcube exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class CubeError(Exception):
    """Base exception for all cashcube failures."""


class CubeConfigError(CubeError):
    """Raised for invalid runtime configuration."""


class CubeRegistryError(CubeError):
    """Raised for invalid or unsupported source registry definitions."""


class CubeSourceDataError(CubeError):
    """Raised when source data cannot be extracted or has an invalid shape."""


class CubeTransformError(CubeError):
    """Raised when a transformer cannot derive its series."""


class CubeMultiplierError(CubeError):
    """Raised when a multiplier value or operation is unusable."""
