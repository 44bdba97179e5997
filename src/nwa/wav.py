"""
nwa.wav

Canonical 44-byte RIFF/WAVE header for decoded PCM.
"""

from __future__ import annotations

import struct

import numpy as np

# RIFF id, riff size, WAVE id, fmt id, fmt size, format tag,
# channels, sample rate, byte rate, block align, bits per sample,
# data id, data size
WAV_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")
WAV_FORMAT_PCM = 1
FMT_CHUNK_SIZE = 16
RIFF_SIZE_EXTRA = 0x24


def build_wav_header(channels: int, sample_rate: int, bits_per_sample: int, data_size: int) -> bytes:
    byps = (int(bits_per_sample) + 7) >> 3
    return WAV_HEADER.pack(
        b"RIFF",
        int(data_size) + RIFF_SIZE_EXTRA,
        b"WAVE",
        b"fmt ",
        FMT_CHUNK_SIZE,
        WAV_FORMAT_PCM,
        int(channels),
        int(sample_rate),
        byps * int(sample_rate) * int(channels),
        byps * int(channels),
        int(bits_per_sample),
        b"data",
        int(data_size),
    )


def write_wav_bytes(channels: int, sample_rate: int, bits_per_sample: int, data_size: int, pcm: bytes) -> bytes:
    """
    Return header + pcm as one buffer.

    data_size is taken as given: the header declares what the stream
    header declared even if the payload carries trailing bytes.
    """
    out = bytearray(build_wav_header(channels, sample_rate, bits_per_sample, data_size))
    out += pcm
    return bytes(out)


def pcm_to_samples(pcm: bytes, channels: int, bits_per_sample: int) -> np.ndarray:
    """
    View raw PCM as an array of shape (n_frames, channels).

    16-bit data comes back as int16, 8-bit data as uint8 (WAV 8-bit is unsigned).
    A trailing partial frame is dropped.
    """
    dtype = np.uint8 if bits_per_sample == 8 else np.dtype("<i2")
    frame_bytes = ((bits_per_sample + 7) >> 3) * channels
    usable = len(pcm) - (len(pcm) % frame_bytes)
    data = np.frombuffer(pcm[:usable], dtype=dtype)
    return data.reshape(-1, channels)
