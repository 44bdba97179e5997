"""
nwa.bitreader

Sub-byte reader used by the NWA block decoder.

Bits are consumed from the least significant end of each byte and the
requested field is filled least significant bit first, so a read that
spans a byte boundary takes the high bits of the current byte as the
low bits of the result.
"""

from __future__ import annotations

import io
from typing import BinaryIO, Optional, Union

from .errors import TruncatedStreamError

MAX_READ_BITS = 32

ByteSource = Union[bytes, bytearray, memoryview, BinaryIO]


def as_byte_stream(source: ByteSource) -> BinaryIO:
    """
    Wrap bytes-like input in a BytesIO; readable objects pass through.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(source))
    return source


class BitReader:
    """
    Single-use, forward-only bit reader over a byte source.

    One byte of look-ahead is kept at all times: it is fetched at
    construction and refilled as soon as the current byte is used up.
    Running off the end of the source during a refill is not an error;
    asking for bits after that is.
    """

    def __init__(self, source: ByteSource) -> None:
        self._src = as_byte_stream(source)
        self._current: Optional[int] = None
        self._bit_pos = 0
        self._refill()

    def _refill(self) -> None:
        b = self._src.read(1)
        self._current = b[0] if b else None
        self._bit_pos = 0

    def _read_at_most(self, n: int) -> tuple[int, int]:
        """
        Take up to n bits from the current byte.

        Returns (bits, count) where count <= n is how many bits were taken.
        """
        if self._current is None:
            raise TruncatedStreamError("bitstream exhausted")
        count = min(8 - self._bit_pos, n)
        bits = (self._current >> self._bit_pos) & ((1 << count) - 1)
        self._bit_pos += count
        if self._bit_pos == 8:
            self._refill()
        return bits, count

    def read_bits(self, n: int) -> int:
        """
        Read the next n bits (1 <= n <= 32) as an unsigned integer.
        """
        if n < 1 or n > MAX_READ_BITS:
            raise ValueError(f"read_bits expects 1..{MAX_READ_BITS} bits, got {n}")
        value = 0
        pos = 0
        while n > 0:
            bits, count = self._read_at_most(n)
            value |= bits << pos
            pos += count
            n -= count
        return value
