"""Custom exceptions for tradescope.

The analysis stages never raise on missing data; they degrade to
documented defaults. Exceptions exist only at the input boundary.
"""


class TradescopeError(Exception):
    """Base exception for all tradescope errors."""


class SnapshotError(TradescopeError):
    """Raised when an input snapshot cannot be turned into core inputs."""
