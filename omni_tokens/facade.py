"""
Merged token facade: one object, many standards.

    facade = await create_token(config)          # probe, select, bind
    facade = bind_token(config, ["ICRC-1"])      # skip probing

Selection keeps every adapter whose *entire* ``implemented_standards`` is a
subset of the accepted standards, in :data:`KNOWN_ADAPTERS` order. Each kept
adapter is constructed once; one whose constructor raises is dropped and
logged while the rest still bind. A routing table ``{operation: adapter}``
is then built once (first adapter in order wins) and never changes.

Dispatch errors (``UnsupportedOperation``) are raised synchronously by
``call``/``require``; network and contract errors surface when the returned
coroutine is awaited.
"""

from __future__ import annotations

import logging
from typing import (Any, Awaitable, Dict, Iterable, List, Mapping, Optional,
                    Sequence, Tuple, Type, Union)

from .codecs import Encoding
from .config import TokenConfig
from .errors import UnsupportedOperation
from .metadata import Metadata
from .registry import KNOWN_ADAPTERS, discover_standards
from .standards.base import Operation, TokenAdapter
from .types import (ALLOWANCE, APPROVE, APPROVE_COLLECTION, BALANCE_OF,
                    BATCH_BALANCE_OF, BATCH_OWNER_OF, BATCH_TOKEN_METADATA,
                    BATCH_TRANSFER, BATCH_TRANSFER_TOKEN, DECIMALS, FEE, LOGO,
                    MAX_MEMO_SIZE, METADATA, MINTING_ACCOUNT, NAME, OWNER_OF,
                    REVOKE_COLLECTION_APPROVAL, SUPPLY_CAP, SYMBOL,
                    TOKEN_METADATA, TOKENS, TOKENS_OF, TOTAL_SUPPLY, TRANSFER,
                    TRANSFER_FROM, TRANSFER_TOKEN, TRANSFER_TOKEN_FROM,
                    CallDescription, StandardDescriptor)

__all__ = ["TokenFacade", "create_token", "bind_token", "select_adapters"]

log = logging.getLogger("omni_tokens.facade")

StandardLike = Union[str, StandardDescriptor, Mapping[str, Any]]


def _standard_names(standards: Iterable[StandardLike]) -> frozenset:
    return frozenset(StandardDescriptor.from_wire(s).name for s in standards)


def select_adapters(
    standards: Iterable[StandardLike],
    adapters: Sequence[Type[TokenAdapter]] = KNOWN_ADAPTERS,
) -> List[Type[TokenAdapter]]:
    """Adapters whose every implemented standard is accepted, in list order."""
    accepted = _standard_names(standards)
    return [a for a in adapters if set(a.implemented_standards) <= accepted]


class TokenFacade:
    """
    Bound view over every selected adapter.

    Operations are reachable three ways: ``facade.call("balance_of", acct)``,
    ``facade.require("balance_of")(acct)`` or the typed wrappers
    (``facade.balance_of(acct)``). All return awaitables.
    """

    def __init__(
        self,
        config: TokenConfig,
        standards: Iterable[StandardLike],
        adapters: Sequence[Type[TokenAdapter]] = KNOWN_ADAPTERS,
    ) -> None:
        self.config = config
        self._known: Tuple[Type[TokenAdapter], ...] = tuple(adapters)
        self.accepted_standards = _standard_names(standards)

        bound: List[TokenAdapter] = []
        for adapter in select_adapters(self.accepted_standards, self._known):
            try:
                bound.append(adapter(config, self.accepted_standards))
            except Exception as e:
                log.warning(
                    "adapter_dropped",
                    extra={
                        "adapter": adapter.__name__,
                        "canister_id": str(config.canister_id),
                        "error": repr(e),
                    },
                )
        self._adapters: Tuple[TokenAdapter, ...] = tuple(bound)

        routes: Dict[str, Operation] = {}
        for instance in self._adapters:
            for op, fn in instance.operations.items():
                routes.setdefault(op, fn)
        self._routes: Mapping[str, Operation] = routes

        log.info(
            "facade_bound",
            extra={
                "canister_id": str(config.canister_id),
                "adapters": [type(a).__name__ for a in self._adapters],
                "operations": sorted(self._routes),
            },
        )

    def __repr__(self) -> str:
        return f"TokenFacade(canister_id={self.config.canister_id}, adapters={[type(a).__name__ for a in self._adapters]})"

    # ---- introspection ----

    @property
    def adapters(self) -> Tuple[TokenAdapter, ...]:
        return self._adapters

    @property
    def implemented_standards(self) -> List[str]:
        out: List[str] = []
        for instance in self._adapters:
            for standard in type(instance).implemented_standards:
                if standard not in out:
                    out.append(standard)
        return out

    def supports(self, operation: str) -> bool:
        return operation in self._routes

    def operations(self) -> Tuple[str, ...]:
        return tuple(self._routes)

    def require(self, operation: str) -> Operation:
        try:
            return self._routes[operation]
        except KeyError:
            raise UnsupportedOperation(operation, standards=sorted(self.accepted_standards)) from None

    def call(self, operation: str, /, *args: Any, **kwargs: Any) -> Awaitable[Any]:
        """Dispatch to the adapter routed for ``operation``."""
        return self.require(operation)(*args, **kwargs)

    async def supported_standards(self) -> List[StandardDescriptor]:
        """Re-probe the contract with every known adapter."""
        return await discover_standards(self.config, self._known)

    # ---- call decoding ----

    def decode_call(self, method: str, raw: bytes, encoding: Encoding) -> Optional[CallDescription]:
        """
        Describe a captured call, trying bound adapters that declare ``encoding``.

        A decoder that raises counts as "no match"; ``None`` if nothing matched.
        """
        encoding = Encoding(encoding)
        for instance in self._adapters:
            adapter = type(instance)
            if encoding not in adapter.encodings:
                continue
            try:
                described = adapter.decode_call(method, raw, encoding, candid=self.config.candid)
            except Exception as e:
                log.debug(
                    "decoder_failed",
                    extra={"adapter": adapter.__name__, "method": method, "encoding": encoding.value, "error": repr(e)},
                )
                continue
            if described:
                return described
        return None

    # ---- NFT metadata interpretation ----

    def _first_interpretation(self, hook: str, metadata: Metadata) -> Any:
        for instance in self._adapters:
            value = getattr(type(instance), hook)(metadata)
            if value:
                return value
        return None

    def token_metadata_to_name(self, metadata: Metadata) -> Optional[str]:
        return self._first_interpretation("token_metadata_to_name", metadata)

    def token_metadata_to_description(self, metadata: Metadata) -> Optional[str]:
        return self._first_interpretation("token_metadata_to_description", metadata)

    def token_metadata_to_image(self, metadata: Metadata) -> Optional[str]:
        return self._first_interpretation("token_metadata_to_image", metadata)

    def token_metadata_to_url(self, metadata: Metadata) -> Optional[str]:
        return self._first_interpretation("token_metadata_to_url", metadata)

    def token_metadata_to_attributes(self, metadata: Metadata) -> Optional[List[Dict[str, Any]]]:
        return self._first_interpretation("token_metadata_to_attributes", metadata)

    # ---- typed convenience wrappers (sugar) ----

    def metadata(self) -> Awaitable[Metadata]:
        return self.call(METADATA)

    def name(self) -> Awaitable[str]:
        return self.call(NAME)

    def symbol(self) -> Awaitable[str]:
        return self.call(SYMBOL)

    def logo(self) -> Awaitable[Optional[str]]:
        return self.call(LOGO)

    def total_supply(self) -> Awaitable[int]:
        return self.call(TOTAL_SUPPLY)

    def max_memo_size(self) -> Awaitable[int]:
        return self.call(MAX_MEMO_SIZE)

    def balance_of(self, account: str) -> Awaitable[int]:
        return self.call(BALANCE_OF, account)

    def decimals(self) -> Awaitable[int]:
        return self.call(DECIMALS)

    def fee(self) -> Awaitable[int]:
        return self.call(FEE)

    def minting_account(self) -> Awaitable[Optional[str]]:
        return self.call(MINTING_ACCOUNT)

    def transfer(self, args: Mapping[str, Any]) -> Awaitable[int]:
        return self.call(TRANSFER, args)

    def transfer_from(self, args: Mapping[str, Any]) -> Awaitable[int]:
        return self.call(TRANSFER_FROM, args)

    def approve(self, args: Mapping[str, Any]) -> Awaitable[int]:
        return self.call(APPROVE, args)

    def allowance(self, args: Mapping[str, Any]) -> Awaitable[Dict[str, Any]]:
        return self.call(ALLOWANCE, args)

    def supply_cap(self) -> Awaitable[Optional[int]]:
        return self.call(SUPPLY_CAP)

    def token_metadata(self, token_id: int) -> Awaitable[Optional[Metadata]]:
        return self.call(TOKEN_METADATA, token_id)

    def owner_of(self, token_id: int) -> Awaitable[Optional[str]]:
        return self.call(OWNER_OF, token_id)

    def tokens(self, prev: Optional[int] = None, take: Optional[int] = None) -> Awaitable[List[int]]:
        return self.call(TOKENS, prev, take)

    def tokens_of(
        self, account: str, prev: Optional[int] = None, take: Optional[int] = None
    ) -> Awaitable[List[int]]:
        return self.call(TOKENS_OF, account, prev, take)

    def transfer_token(self, args: Mapping[str, Any]) -> Awaitable[int]:
        return self.call(TRANSFER_TOKEN, args)

    def transfer_token_from(self, args: Mapping[str, Any]) -> Awaitable[int]:
        return self.call(TRANSFER_TOKEN_FROM, args)

    def approve_collection(self, args: Mapping[str, Any]) -> Awaitable[int]:
        return self.call(APPROVE_COLLECTION, args)

    def revoke_collection_approval(self, args: Mapping[str, Any]) -> Awaitable[int]:
        return self.call(REVOKE_COLLECTION_APPROVAL, args)

    def batch_balance_of(self, accounts: Sequence[str]) -> Awaitable[List[int]]:
        return self.call(BATCH_BALANCE_OF, accounts)

    def batch_transfer(self, args: Sequence[Mapping[str, Any]]) -> Awaitable[List[Any]]:
        return self.call(BATCH_TRANSFER, args)

    def batch_token_metadata(self, token_ids: Sequence[int]) -> Awaitable[List[Optional[Metadata]]]:
        return self.call(BATCH_TOKEN_METADATA, token_ids)

    def batch_owner_of(self, token_ids: Sequence[int]) -> Awaitable[List[Optional[str]]]:
        return self.call(BATCH_OWNER_OF, token_ids)

    def batch_transfer_token(self, args: Sequence[Mapping[str, Any]]) -> Awaitable[List[Any]]:
        return self.call(BATCH_TRANSFER_TOKEN, args)


def bind_token(
    config: TokenConfig,
    standards: Iterable[StandardLike],
    adapters: Sequence[Type[TokenAdapter]] = KNOWN_ADAPTERS,
) -> TokenFacade:
    """Bind without probing: ``standards`` is trusted as given."""
    return TokenFacade(config, standards, adapters)


async def create_token(
    config: TokenConfig,
    standards: Optional[Iterable[StandardLike]] = None,
    adapters: Sequence[Type[TokenAdapter]] = KNOWN_ADAPTERS,
) -> TokenFacade:
    """Discover supported standards (unless given) and bind a facade."""
    if standards is None:
        standards = await discover_standards(config, adapters)
    return TokenFacade(config, standards, adapters)
