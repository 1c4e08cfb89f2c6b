import io
import json
import random
import string
import struct

import pytest

from rmqkit.codec import (
    CodecType,
    LanguageCode,
    RemotingCommand,
    decode,
    decode_json_header,
    decode_rmq_header,
    encode,
    encode_json_header,
    encode_rmq_header,
    mark_protocol_type,
)

_rng = random.Random(20240601)


def _random_string(length):
    return "".join(_rng.choice(string.ascii_lowercase) for _ in range(length))


class _RandomHeader:
    def encode(self):
        return {
            _random_string(_rng.randrange(20)): _random_string(_rng.randrange(20))
            for _ in range(10)
        }


def _random_command():
    body = _rng.randbytes(_rng.randrange(100))
    return RemotingCommand.create(_rng.randrange(1000), _RandomHeader(), body)


def _assert_same_header(expected, actual):
    assert actual.code == expected.code
    assert actual.version == expected.version
    assert actual.opaque == expected.opaque
    assert actual.remark == expected.remark
    assert actual.flag == expected.flag
    assert actual.ext_fields == expected.ext_fields


@pytest.mark.parametrize("codec", list(CodecType))
def test_encode_frame_size_matches(codec):
    for _ in range(1000):
        rc = _random_command()
        data = encode(rc, codec)
        (frame_size,) = struct.unpack(">i", data[:4])
        assert frame_size == len(data) - 4
        assert data[4] == codec


@pytest.mark.parametrize("codec", list(CodecType))
def test_decode_round_trip(codec):
    for _ in range(1000):
        rc = _random_command()
        decoded = decode(encode(rc, codec)[4:])
        _assert_same_header(rc, decoded)
        assert decoded.body == rc.body


def test_json_header_round_trip():
    for _ in range(100):
        rc = _random_command()
        _assert_same_header(rc, decode_json_header(encode_json_header(rc)))


def test_rmq_header_round_trip():
    for _ in range(100):
        rc = _random_command()
        decoded = decode_rmq_header(encode_rmq_header(rc))
        _assert_same_header(rc, decoded)
        assert decoded.language == LanguageCode.GO


def test_command_json_encode_decode():
    cmd = RemotingCommand.create(192, _RandomHeader(), b"Hello RocketMQCodecs")
    data = encode(cmd, CodecType.JSON)
    assert len(data) > 0
    new_cmd = decode(data[4:])
    assert new_cmd.code == cmd.code
    assert new_cmd.version == cmd.version
    assert new_cmd.opaque == cmd.opaque
    assert new_cmd.flag == cmd.flag
    assert new_cmd.remark == cmd.remark
    assert new_cmd.body == b"Hello RocketMQCodecs"


def test_command_rocketmq_encode_decode():
    cmd = RemotingCommand.create(192, _RandomHeader(), b"Hello RocketMQCodecs")
    data = encode(cmd, CodecType.ROCKETMQ)
    assert len(data) > 0
    new_cmd = decode(data[4:])
    assert new_cmd.code == cmd.code
    assert new_cmd.language == cmd.language
    assert new_cmd.version == cmd.version
    assert new_cmd.opaque == cmd.opaque
    assert new_cmd.flag == cmd.flag
    assert new_cmd.remark == cmd.remark
    assert new_cmd.body == b"Hello RocketMQCodecs"


def test_rmq_header_wire_bytes():
    cmd = RemotingCommand(code=10, version=317, opaque=5, flag=0, remark="", ext_fields={})
    expected = bytes.fromhex("000a" "09" "013d" "00000005" "00000000" "00000000" "00000000")
    assert encode_rmq_header(cmd) == expected


def test_rmq_header_ext_fields_wire_bytes():
    cmd = RemotingCommand(code=10, version=317, opaque=5, ext_fields={"k": "vv"})
    header = encode_rmq_header(cmd)
    assert header[-13:] == bytes.fromhex("00000009" "0001" "6b" "00000002" "7676")


def test_rmq_frame_wire_bytes():
    cmd = RemotingCommand(code=10, version=317, opaque=5, ext_fields={})
    frame = encode(cmd, CodecType.ROCKETMQ)
    assert frame[:8] == bytes.fromhex("00000019" "01000015")
    assert len(frame) == 29


def test_mark_protocol_type():
    assert mark_protocol_type(0x123456, CodecType.ROCKETMQ) == bytes([1, 0x12, 0x34, 0x56])
    assert mark_protocol_type(0x123456, CodecType.JSON) == bytes([0, 0x12, 0x34, 0x56])


def test_json_language_names():
    cmd = RemotingCommand.create(1)
    assert json.loads(encode_json_header(cmd))["language"] == "GO"
    cmd.language = LanguageCode.JAVA
    assert json.loads(encode_json_header(cmd))["language"] == "JAVA"
    cmd.language = LanguageCode.CPP
    assert json.loads(encode_json_header(cmd))["language"] == "UNHOKN"


def test_json_decode_language_and_defaults():
    assert decode_json_header(b'{"language":"JAVA"}').language == LanguageCode.JAVA
    assert decode_json_header(b'{"language":"CPP"}').language == LanguageCode.UNKNOWN
    cmd = decode_json_header(b"{}")
    assert cmd.code == 0
    assert cmd.ext_fields == {}
    assert cmd.body == b""


def test_json_decode_rejects_garbage():
    with pytest.raises(ValueError):
        decode_json_header(b"not json")


def test_decode_unknown_codec():
    with pytest.raises(ValueError):
        decode(bytes([5, 0, 0, 0]))


def test_decode_truncated_header():
    data = encode(RemotingCommand.create(3), CodecType.ROCKETMQ)[4:]
    with pytest.raises(ValueError):
        decode(data[:10])
    with pytest.raises(ValueError):
        decode_rmq_header(encode_rmq_header(RemotingCommand.create(3))[:7])


def test_decode_without_body():
    cmd = RemotingCommand.create(7)
    assert decode(encode(cmd, CodecType.ROCKETMQ)[4:]).body == b""


def test_response_type_flag():
    cmd = RemotingCommand.create(7)
    assert not cmd.is_response_type()
    cmd.mark_response_type()
    assert cmd.is_response_type()
    assert cmd.flag == 1


def test_opaque_increases():
    first = RemotingCommand.create(1)
    second = RemotingCommand.create(1)
    assert second.opaque == first.opaque + 1


def test_create_uses_header_fields():
    class Header:
        def encode(self):
            return {"topic": "t"}

    cmd = RemotingCommand.create(105, Header(), None)
    assert cmd.ext_fields == {"topic": "t"}
    assert cmd.body == b""
    assert cmd.version == 317


def test_write_to_matches_encode():
    cmd = RemotingCommand.create(10, None, b"Hello RocketMQ")
    stream = io.BytesIO()
    cmd.write_to(stream, CodecType.ROCKETMQ)
    assert stream.getvalue() == encode(cmd, CodecType.ROCKETMQ)