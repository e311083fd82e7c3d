"""Parsing of RFC 822 style header blocks, shared by HTTP and multipart bodies."""

from __future__ import annotations

from dataclasses import dataclass

MAX_HEADERS = 10

_COLON = ord(":")
_CR = ord("\r")
_LF = ord("\n")


@dataclass(frozen=True)
class HeaderBlock:
    """A complete header block: the headers found and the bytes it took up.

    Keys are lower-cased; values are returned exactly as they appear on the wire.
    """

    headers: tuple[tuple[bytes, bytes], ...]
    length: int


def parse_headers(buffer: bytes | bytearray | memoryview) -> HeaderBlock | None:
    """Parse a header block terminated by an empty line.

    Returns None when the block is incomplete, malformed, or holds more
    than MAX_HEADERS headers.
    """
    data = bytes(buffer)
    end = len(data)
    pos = 0
    headers: list[tuple[bytes, bytes]] = []

    for _ in range(MAX_HEADERS):
        key_start = pos
        while pos < end and data[pos] != _COLON and data[pos] > 32:
            pos += 1
        if pos >= end:
            return None

        if data[pos] == _CR:
            if pos + 1 < end and data[pos + 1] == _LF:
                return HeaderBlock(tuple(headers), pos + 2)
            return None

        key = bytes(byte | 32 for byte in data[key_start:pos])

        pos += 1
        while pos < end and (data[pos] == _COLON or data[pos] < 33) and data[pos] != _CR:
            pos += 1
        value_start = pos

        line_end = data.find(b"\r", pos)
        if line_end == -1 or line_end + 1 >= end or data[line_end + 1] != _LF:
            return None

        headers.append((key, data[value_start:line_end]))
        pos = line_end + 2

    return None