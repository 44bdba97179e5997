"""
nwa.decoder

Differential PCM decoder for NWA block payloads.

Every compressed block starts with one full-precision seed sample per
channel, followed by a bitstream of codes. Each code opens with a 3-bit
exponent:

  0    repeat the current value (or, with run-length coding enabled,
       a run-length escape giving how many further samples repeat it)
  1-6  signed delta, width and shift depend on the compression level
  7    large delta, or a reset of the channel to zero

Stereo streams interleave channels sample by sample.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import BinaryIO, List, Tuple

import numpy as np

from .bitreader import BitReader, ByteSource, as_byte_stream
from .errors import CorruptStreamError, TruncatedStreamError
from .header import StreamHeader

logger = logging.getLogger(__name__)

EXP_BITS = 3


@dataclass
class DecoderState:
    """
    Mutable decode state for one stream.

    acc holds one accumulator per channel (the second is unused for mono),
    channel is the slot the next emitted sample comes from and run_length
    counts samples still to be repeated without reading the bitstream.
    """

    acc: List[int] = field(default_factory=lambda: [0, 0])
    channel: int = 0
    run_length: int = 0
    block_index: int = 0


def delta_layout(level: int, exponent: int) -> Tuple[int, int]:
    """
    Return (width, shift) of the signed field that follows an exponent code 1-7.
    """
    if exponent == 7:
        if level >= 3:
            return 8, 9
        return 8 - level, 9 + level
    if level >= 3:
        return level + 3, 1 + exponent
    return 5 - level, 2 + exponent + level


def _signed_delta(reader: BitReader, width: int, shift: int) -> int:
    # top bit is the sign, the rest is the magnitude
    b = reader.read_bits(width)
    mag = (b & ((1 << (width - 1)) - 1)) << shift
    if b & (1 << (width - 1)):
        return -mag
    return mag


def _read_run_length(reader: BitReader) -> int:
    if reader.read_bits(1) == 0:
        return 0
    n = reader.read_bits(2)
    if n == 3:
        n = reader.read_bits(8)
    return n


def _read_seed(src: BinaryIO, bps: int) -> int:
    width = bps // 8
    raw = src.read(width)
    if len(raw) != width:
        raise TruncatedStreamError("block too short for its seed samples")
    return int.from_bytes(raw, "little", signed=False)


def pack_samples(samples: List[int], bits_per_sample: int) -> bytes:
    """
    Truncate accumulator values to the output sample width.

    8-bit samples are written unsigned, 16-bit samples as signed little endian.
    """
    arr = np.asarray(samples, dtype=np.int64)
    if bits_per_sample == 8:
        return (arr & 0xFF).astype(np.uint8).tobytes()
    return (arr & 0xFFFF).astype("<u2").tobytes()


def decode_block(
    header: StreamHeader,
    block: bytes,
    out_bytes: int,
    state: DecoderState,
) -> List[int]:
    """
    Decode one compressed block into out_bytes worth of samples.

    The accumulators are seeded from the block's leading samples; the
    channel selector and run-length counter carry over from the previous
    block through state.
    """
    src = as_byte_stream(block)
    bps = header.bits_per_sample
    level = header.compression_level
    stereo = header.channels == 2
    acc = state.acc

    acc[0] = _read_seed(src, bps)
    if stereo:
        acc[1] = _read_seed(src, bps)

    reader = BitReader(src)
    out: List[int] = []
    for _ in range(out_bytes // header.bytes_per_sample):
        if state.run_length == 0:
            exponent = reader.read_bits(EXP_BITS)
            if exponent == 7:
                if reader.read_bits(1) == 1:
                    acc[state.channel] = 0
                else:
                    width, shift = delta_layout(level, 7)
                    acc[state.channel] += _signed_delta(reader, width, shift)
            elif 1 <= exponent <= 6:
                width, shift = delta_layout(level, exponent)
                acc[state.channel] += _signed_delta(reader, width, shift)
            elif exponent == 0:
                if header.use_run_length:
                    state.run_length = _read_run_length(reader)
            else:
                raise CorruptStreamError(f"impossible {EXP_BITS}-bit exponent code {exponent}")
        else:
            state.run_length -= 1

        out.append(acc[state.channel])
        if stereo:
            state.channel ^= 1
    return out


def block_sizes(header: StreamHeader, index: int) -> Tuple[int, int]:
    """
    Return (decoded_bytes, compressed_bytes) for block `index`.

    The last block has no following offset, so its compressed size is an
    upper bound of two full decoded blocks; the decode loop decides how
    much of it is actually used.
    """
    byps = header.bytes_per_sample
    if index != header.block_count - 1:
        return (
            header.block_size * byps,
            header.offsets[index + 1] - header.offsets[index],
        )
    return header.rest_size * byps, header.block_size * byps * 2


def decode_payload(header: StreamHeader, source: ByteSource) -> bytes:
    """
    Decode everything after the header into raw PCM bytes.

    `source` must be positioned at the first payload byte. Stored streams
    are copied through unchanged.
    """
    src = as_byte_stream(source)
    if not header.is_compressed:
        data = src.read()
        if len(data) < header.data_size:
            raise TruncatedStreamError(
                f"stored payload has {len(data)} bytes, header declares {header.data_size}"
            )
        return data

    state = DecoderState()
    out = bytearray()
    done = 0
    while done < header.data_size and state.block_index < header.block_count:
        out_bytes, comp_bytes = block_sizes(header, state.block_index)
        block = src.read(comp_bytes)
        samples = decode_block(header, block, out_bytes, state)
        out += pack_samples(samples, header.bits_per_sample)
        done += out_bytes
        state.block_index += 1
        logger.debug(
            "block %d/%d: %d compressed bytes -> %d bytes",
            state.block_index, header.block_count, len(block), out_bytes,
        )
    return bytes(out)
