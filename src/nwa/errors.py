"""
nwa.errors

Exception types raised by the decoder.

Every failure the package reports derives from NWAError so callers can
catch decoder problems without also catching unrelated bugs. Header
problems get one subclass per broken invariant so tests and callers can
tell them apart without parsing messages.
"""

from __future__ import annotations


class NWAError(Exception):
    """Base class for all decoder failures."""


class TruncatedStreamError(NWAError, EOFError):
    """Raised when the input ends before the decoder has what it needs."""


class CorruptStreamError(NWAError, ValueError):
    """Raised when the compressed bitstream is internally inconsistent."""


class HeaderError(NWAError, ValueError):
    """Raised when a stream header violates one of its invariants."""


class BlockCountError(HeaderError):
    """Block count outside (0, 1_000_000]."""


class OffsetTableError(HeaderError):
    """Offset table missing, of the wrong length, or not monotonic."""


class ChannelCountError(HeaderError):
    """Channel count other than mono or stereo."""


class BitDepthError(HeaderError):
    """Bits per sample other than 8 or 16."""


class CompressionLevelError(HeaderError):
    """Compression level outside [-1, 5]."""


class OffsetOverrunError(HeaderError):
    """Last block offset points at or past the end of the compressed data."""


class DataSizeError(HeaderError):
    """Data size disagrees with sample count and sample width."""


class SampleCountError(HeaderError):
    """Sample count disagrees with block count and block sizes."""


class ArchiveIndexError(NWAError, ValueError):
    """Raised when an NWK/OVK index table is malformed."""


class UnknownFileKindError(NWAError, ValueError):
    """Raised when input content matches none of NWA, NWK or OVK."""
