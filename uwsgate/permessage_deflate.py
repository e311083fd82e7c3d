"""Per-message deflate streams and compression option flags."""

from __future__ import annotations

import enum
import zlib


class CompressOptions(enum.IntFlag):
    """Compression settings packed into 16 bits.

    The low byte describes the compressor as HIGH4(windowBits) LOW4(memLevel);
    bits 8-11 hold the decompressor windowBits. A value of 1 in either part
    means shared; zero everywhere means disabled.
    """

    COMPRESSOR_MASK = 0x00FF
    DECOMPRESSOR_MASK = 0x0F00
    DISABLED = 0
    SHARED_COMPRESSOR = 1
    SHARED_DECOMPRESSOR = 1 << 8
    DEDICATED_DECOMPRESSOR_32KB = 15 << 8
    DEDICATED_DECOMPRESSOR_16KB = 14 << 8
    DEDICATED_DECOMPRESSOR_8KB = 13 << 8
    DEDICATED_DECOMPRESSOR_4KB = 12 << 8
    DEDICATED_DECOMPRESSOR_2KB = 11 << 8
    DEDICATED_DECOMPRESSOR_1KB = 10 << 8
    DEDICATED_DECOMPRESSOR_512B = 9 << 8
    DEDICATED_DECOMPRESSOR = 15 << 8
    DEDICATED_COMPRESSOR_3KB = 9 << 4 | 1
    DEDICATED_COMPRESSOR_4KB = 9 << 4 | 2
    DEDICATED_COMPRESSOR_8KB = 10 << 4 | 3
    DEDICATED_COMPRESSOR_16KB = 11 << 4 | 4
    DEDICATED_COMPRESSOR_32KB = 12 << 4 | 5
    DEDICATED_COMPRESSOR_64KB = 13 << 4 | 6
    DEDICATED_COMPRESSOR_128KB = 14 << 4 | 7
    DEDICATED_COMPRESSOR_256KB = 15 << 4 | 8
    DEDICATED_COMPRESSOR = 15 << 4 | 8


_SYNC_TAIL = b"\x00\x00\xff\xff"


class InflationError(ValueError):
    """Raised when a compressed message is corrupt or inflates past its limit."""


class DeflationStream:
    """Raw deflate stream producing permessage-deflate payloads."""

    def __init__(self, compress_options: int) -> None:
        options = int(compress_options)
        self._window_bits = (options & CompressOptions.COMPRESSOR_MASK) >> 4
        self._mem_level = options & 0xF
        if not 8 <= self._window_bits <= 15 or not 1 <= self._mem_level <= 9:
            raise ValueError(f"options {options:#06x} do not describe a dedicated compressor")
        self._stream = self._new_stream()

    def _new_stream(self):
        return zlib.compressobj(
            zlib.Z_DEFAULT_COMPRESSION,
            zlib.DEFLATED,
            -self._window_bits,
            self._mem_level,
            zlib.Z_DEFAULT_STRATEGY,
        )

    def deflate(self, raw: bytes, reset: bool) -> bytes:
        """Compress one message, dropping the sync-flush tail.

        With reset the stream forgets its history afterwards. Empty input is refused.
        """
        if not raw:
            raise ValueError("cannot deflate an empty message")
        out = self._stream.compress(bytes(raw)) + self._stream.flush(zlib.Z_SYNC_FLUSH)
        if reset:
            self._stream = self._new_stream()
        return out[:-4] if out.endswith(_SYNC_TAIL) else out


class InflationStream:
    """Raw inflate stream for permessage-deflate payloads."""

    def __init__(self, compress_options: int) -> None:
        self._window_bits = int(compress_options) >> 8
        if not 8 <= self._window_bits <= 15:
            raise ValueError(
                f"options {int(compress_options):#06x} do not describe a dedicated decompressor"
            )
        self._stream = zlib.decompressobj(-self._window_bits)

    def inflate(self, compressed: bytes, max_payload_length: int, reset: bool) -> bytes:
        """Decompress one message; zero-length input is valid.

        Raises InflationError if the data is corrupt or the result would be
        longer than max_payload_length.
        """
        data = bytes(compressed) + _SYNC_TAIL
        try:
            out = self._stream.decompress(data, max_payload_length + 1)
            overflow = bool(self._stream.unconsumed_tail)
        except zlib.error as exc:
            self._stream = zlib.decompressobj(-self._window_bits)
            raise InflationError(str(exc)) from exc
        finally:
            if reset:
                self._stream = zlib.decompressobj(-self._window_bits)

        if overflow or len(out) > max_payload_length:
            raise InflationError("inflated message exceeds maximum payload length")
        return out