"""Remoting command frames and their two header encodings.

Frame layout::

    | frame_size (4) | codec + header_length (4) | header | body |

``frame_size`` counts everything after itself. The top byte of the second
field names the header codec, the low three bytes give the header length.
"""

from __future__ import annotations

import enum
import itertools
import json
import struct
import threading
from dataclasses import dataclass, field
from typing import BinaryIO, Protocol

RPC_TYPE = 0
RPC_ONEWAY = 1
RESPONSE_TYPE = 1
VERSION = 317
HEADER_FIXED_LENGTH = 21


class LanguageCode(enum.IntEnum):
    """The client language carried in a command header."""

    JAVA = 0
    CPP = 1
    GO = 9
    UNKNOWN = 127

    @classmethod
    def _missing_(cls, value: object) -> LanguageCode:
        return cls.UNKNOWN


class CodecType(enum.IntEnum):
    """How a command header is serialised."""

    JSON = 0
    ROCKETMQ = 1


class CustomHeader(Protocol):
    def encode(self) -> dict[str, str]: ...


_opaque_lock = threading.Lock()
_opaque_counter = itertools.count(1)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >= (1 << 31) else value


def _next_opaque() -> int:
    with _opaque_lock:
        return _to_int32(next(_opaque_counter))


def _language_to_json(language: int) -> str:
    if language == LanguageCode.JAVA:
        return "JAVA"
    if language == LanguageCode.GO:
        return "GO"
    return "UNHOKN"


def _language_from_json(value: object) -> LanguageCode:
    if value == "JAVA":
        return LanguageCode.JAVA
    if value == "GO":
        return LanguageCode.GO
    return LanguageCode.UNKNOWN


@dataclass
class RemotingCommand:
    """One request or response exchanged with a name server or broker."""

    code: int = 0
    language: LanguageCode = LanguageCode.GO
    version: int = VERSION
    opaque: int = 0
    flag: int = 0
    remark: str = ""
    ext_fields: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def create(
        cls,
        code: int,
        header: CustomHeader | None = None,
        body: bytes | None = None,
    ) -> RemotingCommand:
        """A new request with the next opaque id and the header's fields."""
        return cls(
            code=code,
            language=LanguageCode.GO,
            version=VERSION,
            opaque=_next_opaque(),
            ext_fields=dict(header.encode()) if header is not None else {},
            body=bytes(body) if body is not None else b"",
        )

    def __str__(self) -> str:
        return (
            f"Code: {self.code}, opaque: {self.opaque}, "
            f"Remark: {self.remark}, ExtFields: {self.ext_fields}"
        )

    def is_response_type(self) -> bool:
        return self.flag & RESPONSE_TYPE == RESPONSE_TYPE

    def mark_response_type(self) -> None:
        self.flag |= RESPONSE_TYPE

    def write_to(self, stream: BinaryIO, codec: CodecType = CodecType.JSON) -> None:
        """Write this command as one complete frame to ``stream``."""
        stream.write(encode(self, codec))


def mark_protocol_type(source: int, codec: CodecType = CodecType.JSON) -> bytes:
    """The codec byte followed by the low three bytes of ``source``."""
    return bytes(
        [int(codec) & 0xFF, (source >> 16) & 0xFF, (source >> 8) & 0xFF, source & 0xFF]
    )


def _encode_header(command: RemotingCommand, codec: CodecType) -> bytes:
    codec = CodecType(codec)
    if codec is CodecType.JSON:
        return encode_json_header(command)
    return encode_rmq_header(command)


def encode(command: RemotingCommand, codec: CodecType = CodecType.JSON) -> bytes:
    """Serialise ``command`` into a full frame, length prefix included."""
    header = _encode_header(command, codec)
    body = bytes(command.body)
    frame_size = 4 + len(header) + len(body)
    return (
        struct.pack(">i", frame_size)
        + mark_protocol_type(len(header), codec)
        + header
        + body
    )


def decode(data: bytes) -> RemotingCommand:
    """Parse a frame whose leading frame-size field has already been removed."""
    data = bytes(data)
    if len(data) < 4:
        raise ValueError("frame too short for header length")
    (marked,) = struct.unpack_from(">I", data)
    header_length = marked & 0xFFFFFF
    codec_byte = (marked >> 24) & 0xFF
    header = data[4:4 + header_length]
    if len(header) < header_length:
        raise ValueError("frame too short for header")

    if codec_byte == CodecType.JSON:
        command = decode_json_header(header)
    elif codec_byte == CodecType.ROCKETMQ:
        command = decode_rmq_header(header)
    else:
        raise ValueError(f"unknown codec type: {codec_byte}")

    body = data[4 + header_length:]
    if body:
        command.body = body
    return command


def encode_json_header(command: RemotingCommand) -> bytes:
    """The command header as a JSON object."""
    payload = {
        "code": command.code,
        "language": _language_to_json(command.language),
        "version": command.version,
        "opaque": command.opaque,
        "flag": command.flag,
        "remark": command.remark,
        "extFields": command.ext_fields,
    }
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_json_header(data: bytes) -> RemotingCommand:
    """Parse a JSON command header; absent fields take their zero values."""
    try:
        obj = json.loads(bytes(data))
    except ValueError as exc:
        raise ValueError(f"invalid JSON header: {exc}") from exc
    if not isinstance(obj, dict):
        raise ValueError("JSON header is not an object")

    ext = obj.get("extFields") or {}
    if not isinstance(ext, dict) or not all(isinstance(v, str) for v in ext.values()):
        raise ValueError("extFields must map strings to strings")

    language = (
        _language_from_json(obj["language"]) if "language" in obj else LanguageCode.JAVA
    )
    try:
        return RemotingCommand(
            code=int(obj.get("code") or 0),
            language=language,
            version=int(obj.get("version") or 0),
            opaque=int(obj.get("opaque") or 0),
            flag=int(obj.get("flag") or 0),
            remark=obj.get("remark") or "",
            ext_fields=dict(ext),
            body=b"",
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid JSON header field: {exc}") from exc


def _encode_maps(maps: dict[str, str]) -> bytes:
    parts = []
    for key, value in maps.items():
        key_bytes = key.encode("utf-8")
        value_bytes = value.encode("utf-8")
        parts.append(struct.pack(">h", len(key_bytes)))
        parts.append(key_bytes)
        parts.append(struct.pack(">i", len(value_bytes)))
        parts.append(value_bytes)
    return b"".join(parts)


def encode_rmq_header(command: RemotingCommand) -> bytes:
    """The command header in the compact binary layout."""
    remark = command.remark.encode("utf-8")
    try:
        ext = _encode_maps(command.ext_fields)
        fixed = struct.pack(
            ">hBhiii",
            command.code,
            LanguageCode.GO,
            command.version,
            command.opaque,
            command.flag,
            len(remark),
        )
        return fixed + remark + struct.pack(">i", len(ext)) + ext
    except struct.error as exc:
        raise ValueError(f"header field out of range: {exc}") from exc


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def take(self, size: int) -> bytes:
        if size < 0 or self.remaining() < size:
            raise ValueError("unexpected end of header")
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def unpack(self, fmt: str) -> int:
        (value,) = struct.unpack(fmt, self.take(struct.calcsize(fmt)))
        return value


def decode_rmq_header(data: bytes) -> RemotingCommand:
    """Parse a header in the compact binary layout."""
    reader = _Reader(bytes(data))
    command = RemotingCommand(
        code=reader.unpack(">h"),
        language=LanguageCode(reader.unpack(">B")),
        version=reader.unpack(">h"),
        opaque=reader.unpack(">i"),
        flag=reader.unpack(">i"),
        ext_fields={},
    )
    remark_len = reader.unpack(">i")
    if remark_len > 0:
        command.remark = reader.take(remark_len).decode("utf-8", errors="replace")

    ext_len = reader.unpack(">i")
    if ext_len > 0:
        ext_reader = _Reader(reader.take(ext_len))
        while ext_reader.remaining() > 0:
            key = ext_reader.take(ext_reader.unpack(">h")).decode("utf-8", errors="replace")
            value = ext_reader.take(ext_reader.unpack(">i")).decode("utf-8", errors="replace")
            command.ext_fields[key] = value
    return command