class AnalyticsError(Exception):
    """Base class for every failure the analytics engine reports."""


class InvalidFilterError(AnalyticsError):
    """Unrecognized filter name (or an argument that is not a valid choice)."""


class InvalidRangeError(AnalyticsError):
    """Missing or malformed date bounds, or an out-of-range month/year."""


class UnauthorizedScopeError(AnalyticsError):
    """The caller's role may not see the requested counsellor/manager scope."""


class StorageError(AnalyticsError):
    """An underlying query failed. Always propagated."""
