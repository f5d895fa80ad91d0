"""
Utility helpers.

Re-exports:
- bytes: zero tests and padding
- checksum: CRC-32 and unpadded base32
- retry: async retry with backoff
"""

from .bytes import is_zero, left_pad
from .checksum import base32_decode, base32_encode, crc32
from .retry import RetryError, RetryPolicy

__all__ = [
    # bytes
    "left_pad",
    "is_zero",
    # checksum
    "crc32",
    "base32_encode",
    "base32_decode",
    # retry
    "RetryPolicy",
    "RetryError",
]
