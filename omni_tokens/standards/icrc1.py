"""ICRC-1 fungible ledger adapter."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from ..codecs import Encoding
from ..config import TokenConfig
from ..metadata import Metadata, lookup_nat, lookup_text
from ..types import (BALANCE_OF, DECIMALS, FEE, LOGO, MAX_MEMO_SIZE, METADATA,
                     MINTING_ACCOUNT, NAME, SYMBOL, TOTAL_SUPPLY, TRANSFER,
                     CallDescription, StandardDescriptor)
from .base import (TokenAdapter, account_from_wire, account_to_wire, blob,
                   first, opt, unwrap_result)

__all__ = ["Icrc1", "DEFAULT_MAX_MEMO_SIZE", "transfer_args_to_wire", "transfer_args_from_wire"]

# Minimum memo size the ICRC-1 standard guarantees.
DEFAULT_MAX_MEMO_SIZE = 32


def transfer_args_to_wire(args: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "to": account_to_wire(args["to"]),
        "amount": int(args["amount"]),
        "fee": opt(args.get("fee")),
        "from_subaccount": opt(blob(args.get("from_subaccount"))),
        "memo": opt(blob(args.get("memo"))),
        "created_at_time": opt(args.get("created_at_time")),
    }


def transfer_args_from_wire(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "to": account_from_wire(record["to"]),
        "amount": record["amount"],
        "fee": first(record.get("fee")),
        "from_subaccount": blob(first(record.get("from_subaccount"))),
        "memo": blob(first(record.get("memo"))),
        "created_at_time": first(record.get("created_at_time")),
    }


class Icrc1(TokenAdapter):
    implemented_standards = ("ICRC-1",)
    OPERATIONS = {
        "ICRC-1": (
            METADATA,
            NAME,
            SYMBOL,
            LOGO,
            TOTAL_SUPPLY,
            MAX_MEMO_SIZE,
            BALANCE_OF,
            DECIMALS,
            FEE,
            MINTING_ACCOUNT,
            TRANSFER,
        ),
    }
    encodings = frozenset({Encoding.CANDID})
    service = "icrc1"
    NULLARY_CALLS = {
        "icrc1_metadata": METADATA,
        "icrc1_name": NAME,
        "icrc1_symbol": SYMBOL,
        "icrc1_total_supply": TOTAL_SUPPLY,
        "icrc1_decimals": DECIMALS,
        "icrc1_fee": FEE,
        "icrc1_minting_account": MINTING_ACCOUNT,
    }
    DECODED_CALLS = frozenset({"icrc1_balance_of", "icrc1_transfer"})

    @classmethod
    async def supported_standards(cls, config: TokenConfig) -> List[StandardDescriptor]:
        answer = await config.query_transport.query(config.canister_id, "icrc1_supported_standards", [])
        if not isinstance(answer, list):
            raise ValueError("icrc1_supported_standards must return a list")
        return [StandardDescriptor.from_wire(item) for item in answer]

    @classmethod
    def _describe(cls, method: str, args: List[Any]) -> Optional[CallDescription]:
        if method == "icrc1_balance_of":
            return CallDescription(BALANCE_OF, (account_from_wire(args[0]),))
        if method == "icrc1_transfer":
            return CallDescription(TRANSFER, (transfer_args_from_wire(args[0]),))
        return None

    # ---- common ----

    async def metadata(self) -> Metadata:
        return [(key, value) for key, value in await self._query("icrc1_metadata")]

    async def name(self) -> str:
        return await self._query("icrc1_name")

    async def symbol(self) -> str:
        return await self._query("icrc1_symbol")

    async def logo(self) -> Optional[str]:
        return lookup_text(await self.metadata(), "icrc1:logo")

    async def total_supply(self) -> int:
        return await self._query("icrc1_total_supply")

    async def max_memo_size(self) -> int:
        size = lookup_nat(await self.metadata(), "icrc1:max_memo_size")
        return DEFAULT_MAX_MEMO_SIZE if size is None else int(size)

    async def balance_of(self, account: str) -> int:
        return await self._query("icrc1_balance_of", account_to_wire(account))

    # ---- fungible ----

    async def decimals(self) -> int:
        return await self._query("icrc1_decimals")

    async def fee(self) -> int:
        return await self._query("icrc1_fee")

    async def minting_account(self) -> Optional[str]:
        account = first(await self._query("icrc1_minting_account"))
        return None if account is None else account_from_wire(account)

    async def transfer(self, args: Mapping[str, Any]) -> int:
        """Returns the ledger's block index for the transfer."""
        response = await self._update("icrc1_transfer", transfer_args_to_wire(args))
        return unwrap_result("icrc1_transfer", response)
