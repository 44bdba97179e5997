"""
nwa.header

Fixed-layout NWA stream header and its block offset table.

Layout (little endian, 44 bytes):
  channels[i16], bits_per_sample[i16], sample_rate[i32],
  compression_level[i32], use_run_length[i32], block_count[i32],
  data_size[i32], compressed_size[i32], sample_count[i32],
  block_size[i32], rest_size[i32], reserved[i32]

followed, for compressed streams only, by block_count i32 offsets.
"""

from __future__ import annotations

import struct
from dataclasses import asdict, dataclass
from typing import Optional, Tuple

from .bitreader import ByteSource, as_byte_stream
from .errors import (
    BitDepthError,
    BlockCountError,
    ChannelCountError,
    CompressionLevelError,
    DataSizeError,
    OffsetOverrunError,
    OffsetTableError,
    SampleCountError,
    TruncatedStreamError,
)

NWA_HEADER = struct.Struct("<hhiiiiiiiiii")
NWA_OFFSET = struct.Struct("<i")

STORED_LEVEL = -1
MAX_LEVEL = 5
# An hour of audio fits comfortably below this.
MAX_BLOCKS = 1_000_000
STORED_BLOCK_SIZE = 65536


def _read_exact(src, n: int, what: str) -> bytes:
    data = src.read(n)
    if len(data) != n:
        raise TruncatedStreamError(f"{what}: expected {n} bytes, got {len(data)}")
    return data


def _check_block_count(block_count: int) -> None:
    if block_count <= 0 or block_count > MAX_BLOCKS:
        raise BlockCountError(f"block count out of range (0, {MAX_BLOCKS}]: {block_count}")


@dataclass(frozen=True)
class StreamHeader:
    channels: int
    bits_per_sample: int
    sample_rate: int
    compression_level: int
    use_run_length: bool
    block_count: int
    data_size: int
    compressed_size: int
    sample_count: int
    block_size: int
    rest_size: int
    offsets: Optional[Tuple[int, ...]] = None

    @property
    def bytes_per_sample(self) -> int:
        return self.bits_per_sample // 8

    @property
    def is_compressed(self) -> bool:
        return self.compression_level != STORED_LEVEL

    @property
    def header_size(self) -> int:
        """Bytes taken by the fixed header plus the offset table."""
        n = len(self.offsets) if self.offsets is not None else 0
        return NWA_HEADER.size + n * NWA_OFFSET.size

    @classmethod
    def parse(cls, source: ByteSource) -> "StreamHeader":
        """
        Read and validate a header from bytes or a binary stream.

        Stream sources are left positioned at the first payload byte.
        Stored streams (compression level -1) carry no offset table and
        their block count and last block size are derived from the data
        size with a fixed 65536-sample block.
        """
        src = as_byte_stream(source)
        (channels, bps, freq, level, runlength, blocks, datasize,
         compsize, samplecount, blocksize, restsize, _reserved) = NWA_HEADER.unpack(
            _read_exact(src, NWA_HEADER.size, "stream header")
        )

        offsets: Optional[Tuple[int, ...]] = None
        if level == STORED_LEVEL:
            if bps not in (8, 16):
                raise BitDepthError(f"only 8 / 16 bit data is supported, got {bps} bits")
            byps = bps // 8
            block_bytes = STORED_BLOCK_SIZE * byps
            blocksize = STORED_BLOCK_SIZE
            full, rest = divmod(datasize, block_bytes)
            if rest:
                blocks = full + 1
                restsize = rest // byps
            else:
                blocks = full
                restsize = STORED_BLOCK_SIZE
        else:
            _check_block_count(blocks)
            raw = _read_exact(src, blocks * NWA_OFFSET.size, "offset table")
            offsets = tuple(v for (v,) in NWA_OFFSET.iter_unpack(raw))

        header = cls(
            channels=int(channels),
            bits_per_sample=int(bps),
            sample_rate=int(freq),
            compression_level=int(level),
            use_run_length=runlength == 1,
            block_count=int(blocks),
            data_size=int(datasize),
            compressed_size=int(compsize),
            sample_count=int(samplecount),
            block_size=int(blocksize),
            rest_size=int(restsize),
            offsets=offsets,
        )
        header.validate()
        return header

    def validate(self) -> None:
        """
        Check every header invariant; raise the HeaderError subclass of the first violation.
        """
        _check_block_count(self.block_count)

        if self.is_compressed:
            if not self.offsets:
                raise OffsetTableError("compressed stream has no block offsets")
            if len(self.offsets) != self.block_count:
                raise OffsetTableError(
                    f"offset table has {len(self.offsets)} entries for {self.block_count} blocks"
                )
        elif self.offsets is not None:
            raise OffsetTableError("stored stream must not carry block offsets")

        if self.channels not in (1, 2):
            raise ChannelCountError(f"only mono / stereo data is supported, got {self.channels} channels")
        if self.bits_per_sample not in (8, 16):
            raise BitDepthError(f"only 8 / 16 bit data is supported, got {self.bits_per_sample} bits")
        if self.compression_level < STORED_LEVEL or self.compression_level > MAX_LEVEL:
            raise CompressionLevelError(
                f"compression level must be in [{STORED_LEVEL}, {MAX_LEVEL}], got {self.compression_level}"
            )

        if self.is_compressed:
            last = self.offsets[-1]
            if last >= self.compressed_size:
                raise OffsetOverrunError(
                    f"last offset {last} overruns compressed size {self.compressed_size}"
                )
            for i in range(1, len(self.offsets)):
                if self.offsets[i] < self.offsets[i - 1]:
                    raise OffsetTableError(
                        f"offset of block {i} ({self.offsets[i]}) precedes block {i - 1} ({self.offsets[i - 1]})"
                    )

        byps = self.bytes_per_sample
        if self.data_size != self.sample_count * byps:
            raise DataSizeError(
                f"data size {self.data_size} != sample count {self.sample_count} * sample size {byps}"
            )
        expected = (self.block_count - 1) * self.block_size + self.rest_size
        if self.sample_count != expected:
            raise SampleCountError(
                f"sample count {self.sample_count} != {self.block_count - 1}*{self.block_size}"
                f"+{self.rest_size} (blocks*block size+last block size)"
            )

    def to_dict(self) -> dict:
        d = asdict(self)
        d["offsets"] = list(self.offsets) if self.offsets is not None else None
        return d
