from __future__ import annotations

from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


def left_pad(b: BytesLike, size: int) -> bytes:
    """Left-pad with zero bytes up to `size`. Longer input is returned unchanged."""
    b = bytes(b)
    if len(b) >= size:
        return b
    return b"\x00" * (size - len(b)) + b


def is_zero(b: BytesLike) -> bool:
    return not any(bytes(b))


__all__ = [
    "BytesLike",
    "left_pad",
    "is_zero",
]
