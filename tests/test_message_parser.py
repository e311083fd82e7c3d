import pytest

from uwsgate.message_parser import MAX_HEADERS, HeaderBlock, parse_headers


def test_parses_simple_block():
    raw = b"Host: server.example.com\r\nUpgrade: websocket\r\n\r\n"
    block = parse_headers(raw)
    assert block == HeaderBlock(
        ((b"host", b"server.example.com"), (b"upgrade", b"websocket")),
        len(raw),
    )


def test_keys_are_lowercased_values_kept():
    raw = b"Sec-WebSocket-Key: x3JJHMbDL1EzLkh9GBhXDw==\r\n\r\n"
    block = parse_headers(raw)
    assert block is not None
    assert block.headers == ((b"sec-websocket-key", b"x3JJHMbDL1EzLkh9GBhXDw=="),)


def test_empty_block_is_allowed():
    block = parse_headers(b"\r\n")
    assert block is not None
    assert block.headers == ()
    assert block.length == 2


def test_length_stops_at_end_of_block():
    head = b"Connection: Upgrade\r\n\r\n"
    block = parse_headers(head + b"body bytes")
    assert block is not None
    assert block.length == len(head)


def test_whitespace_around_colon_is_skipped():
    block = parse_headers(b"Host :   a\r\n\r\n")
    assert block is not None
    assert block.headers == ((b"host", b"a"),)


def test_empty_value():
    block = parse_headers(b"Expect:\r\n\r\n")
    assert block is not None
    assert block.headers == ((b"expect", b""),)


@pytest.mark.parametrize(
    "raw",
    [
        b"",
        b"Host: a",
        b"Host: a\r\n",
        b"Host: a\r\n\r",
        b"Host: a\rX\r\n",
        b"\r",
    ],
)
def test_incomplete_or_malformed_returns_none(raw):
    assert parse_headers(raw) is None


def test_too_many_headers_returns_none():
    raw = b"".join(b"X-H%d: v\r\n" % i for i in range(MAX_HEADERS)) + b"\r\n"
    assert parse_headers(raw) is None


def test_max_headers_minus_one_fits():
    lines = [b"X-H%d: v\r\n" % i for i in range(MAX_HEADERS - 1)]
    raw = b"".join(lines) + b"\r\n"
    block = parse_headers(raw)
    assert block is not None
    assert len(block.headers) == MAX_HEADERS - 1
    assert block.length == len(raw)


def test_accepts_bytearray():
    raw = bytearray(b"Upgrade: websocket\r\n\r\n")
    block = parse_headers(raw)
    assert block is not None
    assert block.headers == ((b"upgrade", b"websocket"),)