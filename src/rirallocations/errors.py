"""Exceptions raised by rirallocations."""


class RIRAllocationsError(Exception):
    """Base class for all rirallocations errors."""


class InvalidArgument(RIRAllocationsError, ValueError):
    """A query parameter (registry, family or country) is not valid."""


class FetchError(RIRAllocationsError):
    """The registry feed could not be downloaded."""


class FeedParseError(RIRAllocationsError):
    """A downloaded feed could not be turned into an index."""


class CacheCorrupt(RIRAllocationsError):
    """A cache entry exists but cannot be read back."""


class CacheWriteError(RIRAllocationsError):
    """A freshly built index could not be persisted."""


class InvalidRecordError(ValueError):
    """A delegation line matched a record grammar but failed validation."""
