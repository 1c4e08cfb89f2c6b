"""Zlib compression of message bodies."""

import zlib

BEST_SPEED = 1
BEST_COMPRESSION = 9


class CompressLevelError(ValueError):
    """Raised when a compression level is outside the supported range."""

    def __init__(self, level: int) -> None:
        super().__init__(
            f"unsupported compress level {level}, "
            f"expected {BEST_SPEED}..{BEST_COMPRESSION}"
        )
        self.level = level


def compress(raw: bytes, level: int) -> bytes:
    """Compress ``raw`` into a zlib stream at the given level (1-9)."""
    if level < BEST_SPEED or level > BEST_COMPRESSION:
        raise CompressLevelError(level)
    return zlib.compress(bytes(raw), level)


def uncompress(data: bytes) -> bytes:
    """Decompress a zlib stream; data that is not zlib is returned unchanged."""
    try:
        return zlib.decompress(data)
    except zlib.error:
        return data