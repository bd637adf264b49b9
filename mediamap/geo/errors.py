"""Exceptions raised inside the location pipeline.

These never reach the HTTP layer directly: the extractor turns them into
outcomes and the resolver turns them into a coordinate fallback.
"""


class LocationPipelineError(Exception):
    """Base exception for location pipeline errors."""
    pass


class InvalidFormatError(LocationPipelineError, ValueError):
    """Raised when a coordinate candidate is malformed or out of range."""
    pass


class GeocodingError(LocationPipelineError):
    """Raised when the reverse geocoding service cannot be used."""
    pass
