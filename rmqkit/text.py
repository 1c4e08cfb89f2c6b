"""Small string helpers."""


def hash_string(s: str) -> int:
    """Hash the UTF-8 bytes of ``s`` with the 31-multiplier scheme, as a signed 32-bit value."""
    h = 0
    for byte in s.encode("utf-8"):
        h = (31 * h + byte) & 0xFFFFFFFF
    return h - (1 << 32) if h >= (1 << 31) else h


def is_empty(s: str) -> bool:
    """Return True when ``s`` is empty or holds only whitespace."""
    return s.strip() == ""