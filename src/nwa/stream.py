"""
nwa.stream

One NWA stream in, one WAV buffer out.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import numpy as np

from .bitreader import ByteSource, as_byte_stream
from .decoder import decode_payload
from .header import StreamHeader
from .wav import pcm_to_samples, write_wav_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedStream:
    header: StreamHeader
    pcm: bytes

    @property
    def wav_bytes(self) -> bytes:
        h = self.header
        return write_wav_bytes(h.channels, h.sample_rate, h.bits_per_sample, h.data_size, self.pcm)

    def samples(self) -> np.ndarray:
        """Decoded samples, shape (n_frames, channels)."""
        return pcm_to_samples(self.pcm, self.header.channels, self.header.bits_per_sample)


def decode_stream(source: ByteSource) -> DecodedStream:
    """
    Parse, validate and decode a complete NWA stream.

    Validation runs inside StreamHeader.parse, so no block is touched
    unless every header invariant holds.
    """
    src = as_byte_stream(source)
    header = StreamHeader.parse(src)
    logger.debug(
        "nwa header: %d ch, %d bit, %d Hz, level %d, rle=%s, %d blocks, %d bytes",
        header.channels, header.bits_per_sample, header.sample_rate,
        header.compression_level, header.use_run_length, header.block_count, header.data_size,
    )
    pcm = decode_payload(header, src)
    return DecodedStream(header=header, pcm=pcm)


def decode_stream_to_wav(source: ByteSource) -> bytes:
    return decode_stream(source).wav_bytes


def convert_nwa_file(in_path: str, out_path: str) -> str:
    """
    Decode the NWA file at in_path and write a WAV file to out_path.
    """
    with open(in_path, "rb") as f:
        data = f.read()
    wav = decode_stream_to_wav(data)
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    with open(out_path, "wb") as f:
        f.write(wav)
    logger.info("wrote %s (%d bytes)", out_path, len(wav))
    return out_path
