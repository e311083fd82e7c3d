import pytest

from uwsgate.permessage_deflate import (
    CompressOptions,
    DeflationStream,
    InflationError,
    InflationStream,
)

# Compressed "Hello" payload as sent by the load test client.
HELLO_DEFLATED = bytes([0xF2, 0x48, 0xCD, 0xC9, 0xC9, 0x07, 0x00])


def make_pair():
    return (
        DeflationStream(CompressOptions.DEDICATED_COMPRESSOR),
        InflationStream(CompressOptions.DEDICATED_DECOMPRESSOR),
    )


def test_option_aliases():
    message = b"alias check " * 8
    by_alias = DeflationStream(CompressOptions.DEDICATED_COMPRESSOR).deflate(message, True)
    by_size = DeflationStream(CompressOptions.DEDICATED_COMPRESSOR_256KB).deflate(message, True)
    assert by_alias == by_size
    inflater = InflationStream(CompressOptions.DEDICATED_DECOMPRESSOR_32KB)
    assert inflater.inflate(HELLO_DEFLATED, 1024, False) == b"Hello"
    with pytest.raises(ValueError):
        DeflationStream(CompressOptions(0))


def test_inflate_known_payload():
    inflater = InflationStream(CompressOptions.DEDICATED_DECOMPRESSOR)
    assert inflater.inflate(HELLO_DEFLATED, 1024, False) == b"Hello"


def test_deflate_known_payload():
    deflater = DeflationStream(CompressOptions.DEDICATED_COMPRESSOR)
    assert deflater.deflate(b"Hello", False) == HELLO_DEFLATED


def test_round_trip_with_context_takeover():
    deflater, inflater = make_pair()
    messages = [b"first message " * 10, b"first message " * 10, b"other"]
    for message in messages:
        assert inflater.inflate(deflater.deflate(message, False), 4096, False) == message


def test_context_takeover_shrinks_repeated_message():
    deflater, inflater = make_pair()
    message = b"the quick brown fox jumps over the lazy dog " * 3
    first = deflater.deflate(message, False)
    second = deflater.deflate(message, False)
    assert len(second) < len(first)
    assert inflater.inflate(first, 4096, False) == message
    assert inflater.inflate(second, 4096, False) == message


def test_reset_gives_independent_messages():
    deflater = DeflationStream(CompressOptions.DEDICATED_COMPRESSOR)
    message = b"repeat me please " * 5
    first = deflater.deflate(message, True)
    second = deflater.deflate(message, True)
    assert first == second
    fresh = InflationStream(CompressOptions.DEDICATED_DECOMPRESSOR)
    assert fresh.inflate(second, 4096, True) == message


def test_large_payload_round_trip():
    deflater, inflater = make_pair()
    message = bytes(range(256)) * 400
    compressed = deflater.deflate(message, True)
    assert inflater.inflate(compressed, len(message), True) == message


def test_exact_limit_is_accepted():
    deflater, inflater = make_pair()
    message = b"x" * 100
    assert inflater.inflate(deflater.deflate(message, True), 100, True) == message


def test_exceeding_limit_raises():
    deflater, inflater = make_pair()
    message = b"y" * 101
    with pytest.raises(InflationError):
        inflater.inflate(deflater.deflate(message, True), 100, True)


def test_corrupt_data_raises():
    inflater = InflationStream(CompressOptions.DEDICATED_DECOMPRESSOR)
    with pytest.raises(InflationError):
        inflater.inflate(b"\xff\xff\xff\xff\xff", 1024, True)


def test_empty_deflate_is_refused():
    deflater = DeflationStream(CompressOptions.DEDICATED_COMPRESSOR)
    with pytest.raises(ValueError):
        deflater.deflate(b"", False)


def test_small_window_round_trip():
    deflater = DeflationStream(CompressOptions.DEDICATED_COMPRESSOR_3KB)
    inflater = InflationStream(CompressOptions.DEDICATED_DECOMPRESSOR_512B)
    message = b"small window data " * 20
    assert inflater.inflate(deflater.deflate(message, False), 4096, False) == message


@pytest.mark.parametrize(
    "options", [CompressOptions.DISABLED, CompressOptions.SHARED_COMPRESSOR]
)
def test_deflation_needs_dedicated_compressor(options):
    with pytest.raises(ValueError):
        DeflationStream(options)


@pytest.mark.parametrize(
    "options", [CompressOptions.DISABLED, CompressOptions.SHARED_DECOMPRESSOR]
)
def test_inflation_needs_dedicated_decompressor(options):
    with pytest.raises(ValueError):
        InflationStream(options)