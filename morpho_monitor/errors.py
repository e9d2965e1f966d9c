"""Exceptions raised by the Morpho monitor."""


class MorphoMonitorError(Exception):
    """Base exception for all monitor errors."""


class UpstreamError(MorphoMonitorError):
    """Raised when the lending market source cannot be read."""


class SourceUnavailableError(MorphoMonitorError):
    """Raised when a market-status feed cannot be read or decoded."""
