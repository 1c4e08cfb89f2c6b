import json
import os
import zlib

import pytest

from rmqkit.compression import CompressLevelError, compress, uncompress


def test_uncompress_zlib_stream():
    original = "hello, go"
    packed = zlib.compress(original.encode())
    assert uncompress(packed) == original.encode()


@pytest.mark.parametrize("level", range(1, 10))
def test_compress_round_trip_every_level(level):
    raw = b"The quick brown fox jumps over the lazy dog"
    assert uncompress(compress(raw, level)) == raw


@pytest.mark.parametrize("level", [0, 10, -1])
def test_compress_rejects_bad_level(level):
    with pytest.raises(CompressLevelError):
        compress(b"data", level)


@pytest.mark.parametrize("i", range(0, 100, 7))
def test_compress_random_data(i):
    data = os.urandom(i * 100)
    level = i % 9 + 1
    assert uncompress(compress(data, level)) == data


@pytest.mark.parametrize("i", range(0, 100, 11))
def test_compress_json_data(i):
    payload = {f"compression_key_{n}": f"compression_value_{n}" for n in range(i * 100)}
    data = json.dumps(payload).encode()
    level = i % 9 + 1
    assert uncompress(compress(data, level)) == data


def test_uncompress_non_zlib_returns_input():
    data = b"plainly not compressed"
    assert uncompress(data) == data


def test_compress_output_is_zlib_stream():
    raw = b"abc" * 50
    assert zlib.decompress(compress(raw, 6)) == raw