"""
ICRC-7 non-fungible collection adapter.

ICRC-7 has no probe of its own; collections announce it through ICRC-10
(see :mod:`omni_tokens.standards.icrc10`). The single-item operations are
built on the batch endpoints, which is all the standard offers.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..codecs import Encoding
from ..errors import ContractRejected
from ..metadata import Metadata
from ..types import (BALANCE_OF, BATCH_BALANCE_OF, BATCH_OWNER_OF,
                     BATCH_TOKEN_METADATA, BATCH_TRANSFER_TOKEN, LOGO,
                     MAX_MEMO_SIZE, METADATA, NAME, OWNER_OF, SUPPLY_CAP,
                     SYMBOL, TOKEN_METADATA, TOKENS, TOKENS_OF, TOTAL_SUPPLY,
                     TRANSFER_TOKEN, CallDescription)
from .base import (TokenAdapter, account_from_wire, account_to_wire, blob,
                   first, opt)
from .icrc4 import BatchItem, unwrap_batch

__all__ = ["Icrc7"]

# Minimum memo size the ICRC-7 standard guarantees.
DEFAULT_MAX_MEMO_SIZE = 32


def _metadata(entries: Optional[Sequence[Any]]) -> Optional[Metadata]:
    if entries is None:
        return None
    return [(key, value) for key, value in entries]


class Icrc7(TokenAdapter):
    implemented_standards = ("ICRC-7",)
    OPERATIONS = {
        "ICRC-7": (
            METADATA,
            NAME,
            SYMBOL,
            LOGO,
            TOTAL_SUPPLY,
            MAX_MEMO_SIZE,
            BALANCE_OF,
            SUPPLY_CAP,
            TOKEN_METADATA,
            OWNER_OF,
            TOKENS,
            TOKENS_OF,
            TRANSFER_TOKEN,
            BATCH_BALANCE_OF,
            BATCH_TOKEN_METADATA,
            BATCH_OWNER_OF,
            BATCH_TRANSFER_TOKEN,
        ),
    }
    encodings = frozenset({Encoding.CANDID})
    service = "icrc7"
    NULLARY_CALLS = {
        "icrc7_collection_metadata": METADATA,
        "icrc7_name": NAME,
        "icrc7_symbol": SYMBOL,
        "icrc7_logo": LOGO,
        "icrc7_total_supply": TOTAL_SUPPLY,
        "icrc7_max_memo_size": MAX_MEMO_SIZE,
        "icrc7_supply_cap": SUPPLY_CAP,
    }
    DECODED_CALLS = frozenset(
        {
            "icrc7_balance_of",
            "icrc7_token_metadata",
            "icrc7_owner_of",
            "icrc7_tokens",
            "icrc7_tokens_of",
            "icrc7_transfer",
        }
    )

    @classmethod
    def _describe(cls, method: str, args: List[Any]) -> Optional[CallDescription]:
        if method == "icrc7_balance_of":
            return CallDescription(BATCH_BALANCE_OF, ([account_from_wire(a) for a in args[0]],))
        if method == "icrc7_token_metadata":
            return CallDescription(BATCH_TOKEN_METADATA, (list(args[0]),))
        if method == "icrc7_owner_of":
            return CallDescription(BATCH_OWNER_OF, (list(args[0]),))
        if method == "icrc7_tokens":
            prev, take = args
            return CallDescription(TOKENS, (first(prev), first(take)))
        if method == "icrc7_tokens_of":
            account, prev, take = args
            return CallDescription(TOKENS_OF, (account_from_wire(account), first(prev), first(take)))
        if method == "icrc7_transfer":
            return CallDescription(
                BATCH_TRANSFER_TOKEN,
                (
                    [
                        {
                            "token_id": item["token_id"],
                            "to": account_from_wire(item["to"]),
                            "from_subaccount": blob(first(item.get("from_subaccount"))),
                            "memo": blob(first(item.get("memo"))),
                            "created_at_time": first(item.get("created_at_time")),
                        }
                        for item in args[0]
                    ],
                ),
            )
        return None

    # ---- common ----

    async def metadata(self) -> Metadata:
        return _metadata(await self._query("icrc7_collection_metadata"))

    async def name(self) -> str:
        return await self._query("icrc7_name")

    async def symbol(self) -> str:
        return await self._query("icrc7_symbol")

    async def logo(self) -> Optional[str]:
        return first(await self._query("icrc7_logo"))

    async def total_supply(self) -> int:
        return await self._query("icrc7_total_supply")

    async def max_memo_size(self) -> int:
        size = first(await self._query("icrc7_max_memo_size"))
        return DEFAULT_MAX_MEMO_SIZE if size is None else int(size)

    async def balance_of(self, account: str) -> int:
        (balance,) = await self.batch_balance_of([account])
        return balance

    # ---- non-fungible ----

    async def supply_cap(self) -> Optional[int]:
        return first(await self._query("icrc7_supply_cap"))

    async def token_metadata(self, token_id: int) -> Optional[Metadata]:
        (metadata,) = await self.batch_token_metadata([token_id])
        return metadata

    async def owner_of(self, token_id: int) -> Optional[str]:
        (owner,) = await self.batch_owner_of([token_id])
        return owner

    async def tokens(self, prev: Optional[int] = None, take: Optional[int] = None) -> List[int]:
        return list(await self._query("icrc7_tokens", opt(prev), opt(take)))

    async def tokens_of(
        self, account: str, prev: Optional[int] = None, take: Optional[int] = None
    ) -> List[int]:
        return list(await self._query("icrc7_tokens_of", account_to_wire(account), opt(prev), opt(take)))

    async def transfer_token(self, args: Mapping[str, Any]) -> int:
        (result,) = await self.batch_transfer_token([args])
        if result is None:
            # A one-item batch must answer with a transaction index or an error.
            raise ContractRejected("icrc7_transfer", {"GenericError": "empty batch response"})
        if isinstance(result, ContractRejected):
            raise result
        return result

    # ---- batch ----

    async def batch_balance_of(self, accounts: Sequence[str]) -> List[int]:
        return list(await self._query("icrc7_balance_of", [account_to_wire(a) for a in accounts]))

    async def batch_token_metadata(self, token_ids: Sequence[int]) -> List[Optional[Metadata]]:
        responses = await self._query("icrc7_token_metadata", list(token_ids))
        return [_metadata(first(response)) for response in responses]

    async def batch_owner_of(self, token_ids: Sequence[int]) -> List[Optional[str]]:
        responses = await self._query("icrc7_owner_of", list(token_ids))
        out: List[Optional[str]] = []
        for response in responses:
            owner = first(response)
            out.append(None if owner is None else account_from_wire(owner))
        return out

    async def batch_transfer_token(self, args: Sequence[Mapping[str, Any]]) -> List[BatchItem]:
        wire: List[Dict[str, Any]] = [
            {
                "token_id": int(item["token_id"]),
                "to": account_to_wire(item["to"]),
                "from_subaccount": opt(blob(item.get("from_subaccount"))),
                "memo": opt(blob(item.get("memo"))),
                "created_at_time": opt(item.get("created_at_time")),
            }
            for item in args
        ]
        responses = await self._update("icrc7_transfer", wire)
        return unwrap_batch("icrc7_transfer", responses, len(args))
