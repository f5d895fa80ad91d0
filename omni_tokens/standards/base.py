"""
Token adapter base class and wire helpers.

An adapter translates one token standard's contract interface into the
canonical operation set (see :mod:`omni_tokens.types`). Each adapter class
declares:

- ``implemented_standards``: the standards it needs the contract to support
  before it may be bound.
- ``OPERATIONS``: canonical operations enabled per accepted standard. The
  instance capability map (``adapter.operations``) is built once at
  construction from the standards the adapter was bound with and never
  changes afterwards.
- ``encodings`` / ``service``: which raw argument encodings its call decoder
  understands and the Candid interface name handed to the decoder.

Class-level hooks (no instance needed):

- ``supported_standards(config)``: probe the contract. Implementations may
  raise; the registry turns failures into "not supported".
- ``decode_call(method, raw, encoding, candid=None)``: describe a captured
  call. Raises on bytes it cannot decode; returns ``None`` for methods it
  does not know.
- ``token_metadata_to_{name,description,image,url,attributes}``: NFT
  metadata interpretation, ``None`` when not applicable.
"""

from __future__ import annotations

from typing import (Any, Awaitable, Callable, ClassVar, Dict, FrozenSet,
                    Iterable, List, Mapping, Optional, Sequence, Tuple)

from ..account import Account, decode_account, encode_account
from ..codecs import CandidDecoder, Encoding, decode_args
from ..config import TokenConfig
from ..errors import ContractRejected, InvalidInput
from ..metadata import Metadata
from ..principal import Principal
from ..types import CallDescription, StandardDescriptor

__all__ = [
    "TokenAdapter",
    "Operation",
    "opt",
    "first",
    "blob",
    "account_to_wire",
    "account_from_wire",
    "unwrap_result",
    "caller_account",
    "page_ids",
]

Operation = Callable[..., Awaitable[Any]]


# ---- Wire helpers -------------------------------------------------------------


def opt(value: Any) -> List[Any]:
    """Python value -> Candid ``opt`` (``None`` becomes ``[]``)."""
    return [] if value is None else [value]


def first(value: Optional[Sequence[Any]]) -> Any:
    """Candid ``opt`` -> Python value (``[]`` becomes ``None``)."""
    if not value:
        return None
    return value[0]


def blob(value: Any) -> Optional[bytes]:
    return None if value is None else bytes(value)


def account_to_wire(text: str) -> Dict[str, Any]:
    account = decode_account(text)
    return {"owner": account.owner, "subaccount": opt(account.subaccount)}


def account_from_wire(record: Mapping[str, Any]) -> str:
    sub = first(record.get("subaccount"))
    return encode_account(Principal.of(record["owner"]), None if sub is None else bytes(sub))


def unwrap_result(method: str, response: Any) -> Any:
    """
    Unwrap a ``{"Ok": v}`` / ``{"Err": e}`` result variant (either case).

    Raises ContractRejected with the untouched error payload.
    """
    if isinstance(response, Mapping):
        for key in ("Err", "err"):
            if key in response:
                raise ContractRejected(method, response[key])
        for key in ("Ok", "ok"):
            if key in response:
                return response[key]
    return response


# ---- Adapter ------------------------------------------------------------------


class TokenAdapter:
    implemented_standards: ClassVar[Tuple[str, ...]] = ()
    OPERATIONS: ClassVar[Mapping[str, Tuple[str, ...]]] = {}
    encodings: ClassVar[FrozenSet[Encoding]] = frozenset()
    service: ClassVar[str] = ""
    # Wire methods taking no arguments decode without touching the bytes.
    NULLARY_CALLS: ClassVar[Mapping[str, str]] = {}
    # Wire methods whose decoded arguments `_describe` understands.
    DECODED_CALLS: ClassVar[FrozenSet[str]] = frozenset()

    def __init__(self, config: TokenConfig, accepted_standards: Iterable[str]) -> None:
        self.config = config
        accepted = frozenset(accepted_standards)
        operations: Dict[str, Operation] = {}
        for standard, names in self.OPERATIONS.items():
            if standard not in accepted:
                continue
            for name in names:
                operations.setdefault(name, getattr(self, name))
        self.operations: Mapping[str, Operation] = operations

    def __repr__(self) -> str:
        return f"{type(self).__name__}(canister_id={self.config.canister_id}, operations={sorted(self.operations)})"

    # ---- transport ----

    async def _query(self, method: str, *args: Any) -> Any:
        return await self.config.query_transport.query(self.config.canister_id, method, list(args))

    async def _update(self, method: str, *args: Any) -> Any:
        return await self.config.transport.update(self.config.canister_id, method, list(args))

    # ---- probe ----

    @classmethod
    async def supported_standards(cls, config: TokenConfig) -> List[StandardDescriptor]:
        return []

    # ---- call decoding ----

    @classmethod
    def decode_call(
        cls,
        method: str,
        raw: bytes,
        encoding: Encoding,
        candid: Optional[CandidDecoder] = None,
    ) -> Optional[CallDescription]:
        if encoding not in cls.encodings:
            return None
        if method in cls.NULLARY_CALLS:
            return CallDescription(cls.NULLARY_CALLS[method])
        if method not in cls.DECODED_CALLS:
            return None
        args = decode_args(encoding, cls.service, method, raw, candid=candid)
        return cls._describe(method, args)

    @classmethod
    def _describe(cls, method: str, args: List[Any]) -> Optional[CallDescription]:
        return None

    # ---- NFT metadata interpretation ----

    @classmethod
    def token_metadata_to_name(cls, metadata: Metadata) -> Optional[str]:
        return None

    @classmethod
    def token_metadata_to_description(cls, metadata: Metadata) -> Optional[str]:
        return None

    @classmethod
    def token_metadata_to_image(cls, metadata: Metadata) -> Optional[str]:
        return None

    @classmethod
    def token_metadata_to_url(cls, metadata: Metadata) -> Optional[str]:
        return None

    @classmethod
    def token_metadata_to_attributes(cls, metadata: Metadata) -> Optional[List[Dict[str, Any]]]:
        return None


def caller_account(config: TokenConfig, subaccount: Optional[bytes] = None) -> Account:
    """Account of the configured caller; InvalidInput when none is configured."""
    if config.caller is None:
        raise InvalidInput("a caller principal is required for this operation")
    return Account(config.caller, subaccount)


def page_ids(ids: Iterable[int], prev: Optional[int], take: Optional[int]) -> List[int]:
    """Sorted ids after ``prev`` (exclusive), at most ``take`` of them; ``[]`` if ``prev`` is unknown."""
    ordered = sorted(int(i) for i in ids)
    start = 0
    if prev is not None:
        if prev not in ordered:
            return []
        start = ordered.index(prev) + 1
    end = None if take is None else start + int(take)
    return ordered[start:end]
