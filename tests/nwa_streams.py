"""
Builders for synthetic NWA streams and NWK/OVK archives used by the tests.
"""

from __future__ import annotations

import struct
from typing import Iterable, List, Optional, Sequence

NWA_HEADER = struct.Struct("<hhiiiiiiiiii")


class BitWriter:
    """LSB-first bit packer, the mirror image of nwa.bitreader.BitReader."""

    def __init__(self) -> None:
        self._bits: List[int] = []

    def write(self, value: int, n: int) -> "BitWriter":
        for i in range(n):
            self._bits.append((value >> i) & 1)
        return self

    def getvalue(self) -> bytes:
        out = bytearray()
        for start in range(0, len(self._bits), 8):
            b = 0
            for j, bit in enumerate(self._bits[start:start + 8]):
                b |= bit << j
            out.append(b)
        return bytes(out)


def seed_bytes(values: Iterable[int], bps: int) -> bytes:
    fmt = "<B" if bps == 8 else "<h"
    return b"".join(struct.pack(fmt, int(v)) for v in values)


def header_bytes(
    *,
    channels: int = 1,
    bps: int = 16,
    freq: int = 44100,
    level: int = 2,
    runlength: int = 0,
    blocks: int = 2,
    datasize: int = 12,
    compsize: int = 100,
    samplecount: int = 6,
    blocksize: int = 4,
    restsize: int = 2,
    offsets: Optional[Sequence[int]] = (52, 60),
) -> bytes:
    raw = NWA_HEADER.pack(
        channels, bps, freq, level, runlength, blocks,
        datasize, compsize, samplecount, blocksize, restsize, 0,
    )
    if offsets:
        raw += struct.pack(f"<{len(offsets)}i", *offsets)
    return raw


def build_compressed_nwa(
    blocks: Sequence[bytes],
    *,
    channels: int,
    bps: int,
    level: int,
    block_size: int,
    rest_size: int,
    run_length: bool = False,
    freq: int = 22050,
) -> bytes:
    """
    Assemble a compressed stream from per-block payloads (seeds + bitstream).
    """
    n = len(blocks)
    pos = NWA_HEADER.size + 4 * n
    offsets = []
    for b in blocks:
        offsets.append(pos)
        pos += len(b)
    samplecount = (n - 1) * block_size + rest_size
    return header_bytes(
        channels=channels,
        bps=bps,
        freq=freq,
        level=level,
        runlength=1 if run_length else 0,
        blocks=n,
        datasize=samplecount * (bps // 8),
        compsize=pos,
        samplecount=samplecount,
        blocksize=block_size,
        restsize=rest_size,
        offsets=offsets,
    ) + b"".join(blocks)


def build_stored_nwa(pcm: bytes, *, channels: int, bps: int, freq: int = 22050) -> bytes:
    byps = bps // 8
    raw = NWA_HEADER.pack(
        channels, bps, freq, -1, 0, 0,
        len(pcm), len(pcm), len(pcm) // byps, 0, 0, 0,
    )
    return raw + pcm


def build_archive(payloads: Sequence[bytes], *, entry_size: int, indices: Optional[Sequence[int]] = None) -> bytes:
    """
    Build an NWK (entry_size=12) or OVK (entry_size=16) archive.
    """
    indices = list(indices) if indices is not None else list(range(len(payloads)))
    pos = 4 + entry_size * len(payloads)
    table = struct.pack("<i", len(payloads))
    for idx, p in zip(indices, payloads):
        fields = [len(p), pos, idx]
        if entry_size == 16:
            fields.append(len(p))
        table += struct.pack(f"<{len(fields)}i", *fields)
        pos += len(p)
    return table + b"".join(payloads)
