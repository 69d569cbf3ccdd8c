"""Exception hierarchy for ENEX parsing and Markdown conversion."""


class EnexConversionError(Exception):
    """Base exception for all conversion-related errors."""
    pass


class ContainerParseError(EnexConversionError):
    """The top-level ENEX container is unreadable or not well-formed.

    This is the only fatal error: without a container no note can be recovered.
    """
    pass


class MarkupParseError(EnexConversionError):
    """A note's ENML fragment is not well-formed after normalization."""
    pass


class ResourceDecodeFailure(EnexConversionError):
    """A resource payload could not be base64-decoded by any strategy."""
    pass


class TimestampParseFailure(EnexConversionError):
    """A timestamp field does not match the ENEX ``yyyyMMdd'T'HHmmss'Z'`` format."""
    pass


__all__ = [
    'EnexConversionError',
    'ContainerParseError',
    'MarkupParseError',
    'ResourceDecodeFailure',
    'TimestampParseFailure'
]
