"""
Wire encodings of captured call arguments.

Two independent encodings exist for a raw argument blob:

- ``Encoding.CANDID``: the platform's native typed encoding. Decoding needs
  the contract's interface description, so it is delegated to an injected
  :class:`CandidDecoder`; none ships with this package.
- ``Encoding.CBOR``: compact binary; the blob is a CBOR array holding the
  positional arguments, decoded with ``cbor2``.

Both yield the same Python value shapes (records as dicts, ``opt T`` as
``[]``/``[value]``, variants as single-key dicts, blobs as bytes), which is
what adapters' call describers consume.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional, Protocol, runtime_checkable

import cbor2

from .utils.bytes import BytesLike

__all__ = ["Encoding", "CandidDecoder", "decode_args", "encode_cbor_args"]


class Encoding(str, Enum):
    CANDID = "candid"
    CBOR = "cbor"


@runtime_checkable
class CandidDecoder(Protocol):
    """
    External Candid codec.

    ``service`` names the interface description (e.g. ``"icrc1"``) and
    ``method`` the function whose argument types apply. Must raise on bytes
    that do not match those types.
    """

    def decode_args(self, service: str, method: str, raw: bytes) -> List[Any]: ...


def decode_args(
    encoding: Encoding,
    service: str,
    method: str,
    raw: BytesLike,
    *,
    candid: Optional[CandidDecoder] = None,
) -> List[Any]:
    """
    Decode positional call arguments.

    Raises LookupError when Candid is requested without a decoder, and
    ValueError (or the codec's own error) on malformed bytes.
    """
    data = bytes(raw)
    if encoding is Encoding.CBOR:
        decoded = cbor2.loads(data)
        if not isinstance(decoded, list):
            raise ValueError("CBOR call arguments must be an array")
        return decoded
    if encoding is Encoding.CANDID:
        if candid is None:
            raise LookupError("no Candid decoder configured")
        return list(candid.decode_args(service, method, data))
    raise ValueError(f"unknown encoding {encoding!r}")


def encode_cbor_args(*args: Any) -> bytes:
    """Inverse of CBOR ``decode_args``; used to build fixtures and replay calls."""
    return cbor2.dumps(list(args), canonical=True)
