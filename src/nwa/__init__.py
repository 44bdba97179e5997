"""
nwa

Stable public API for the NWA / NWK / OVK decoder.

The package keeps a hard separation between:
- bit-level reading (nwa.bitreader)
- stream header layout and invariants (nwa.header)
- block decoding (nwa.decoder)
- WAV framing (nwa.wav)
- archive indexes and extraction (nwa.archive)

Only decoding is supported; there is no encoder.
"""

from __future__ import annotations

__all__ = [
    "__version__",
    "BitReader",
    "StreamHeader",
    "DecoderState",
    "DecodedStream",
    "decode_stream",
    "decode_stream_to_wav",
    "convert_nwa_file",
    "build_wav_header",
    "FileKind",
    "IndexEntry",
    "EntryResult",
    "read_archive_index",
    "extract_archive",
    "sniff_file_kind",
    "file_kind_from_name",
    "convert_path",
    "NWAError",
    "HeaderError",
    "TruncatedStreamError",
    "CorruptStreamError",
    "ArchiveIndexError",
    "UnknownFileKindError",
]

__version__ = "0.1.0"


from .archive import (  # noqa: E402
    EntryResult,
    FileKind,
    IndexEntry,
    convert_path,
    extract_archive,
    file_kind_from_name,
    read_archive_index,
    sniff_file_kind,
)
from .bitreader import BitReader  # noqa: E402
from .decoder import DecoderState  # noqa: E402
from .errors import (  # noqa: E402
    ArchiveIndexError,
    CorruptStreamError,
    HeaderError,
    NWAError,
    TruncatedStreamError,
    UnknownFileKindError,
)
from .header import StreamHeader  # noqa: E402
from .stream import DecodedStream, convert_nwa_file, decode_stream, decode_stream_to_wav  # noqa: E402
from .wav import build_wav_header  # noqa: E402
