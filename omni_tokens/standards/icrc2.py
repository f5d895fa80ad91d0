"""
ICRC-2 approve / transfer-from extension of an ICRC-1 ledger.

Captured ICRC-2 calls arrive CBOR-encoded (principals as raw bytes), unlike
the Candid-encoded ICRC-1 calls.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from ..codecs import Encoding
from ..types import ALLOWANCE, APPROVE, TRANSFER_FROM, CallDescription
from .base import (TokenAdapter, account_from_wire, account_to_wire, blob,
                   first, opt, unwrap_result)

__all__ = ["Icrc2"]


class Icrc2(TokenAdapter):
    implemented_standards = ("ICRC-1", "ICRC-2")
    OPERATIONS = {"ICRC-2": (TRANSFER_FROM, APPROVE, ALLOWANCE)}
    encodings = frozenset({Encoding.CBOR})
    service = "icrc2"
    DECODED_CALLS = frozenset({"icrc2_transfer_from", "icrc2_approve", "icrc2_allowance"})

    @classmethod
    def _describe(cls, method: str, args: List[Any]) -> Optional[CallDescription]:
        (record,) = args
        if method == "icrc2_transfer_from":
            return CallDescription(
                TRANSFER_FROM,
                (
                    {
                        "from": account_from_wire(record["from"]),
                        "to": account_from_wire(record["to"]),
                        "amount": record["amount"],
                        "fee": first(record.get("fee")),
                        "spender_subaccount": blob(first(record.get("spender_subaccount"))),
                        "memo": blob(first(record.get("memo"))),
                        "created_at_time": first(record.get("created_at_time")),
                    },
                ),
            )
        if method == "icrc2_approve":
            return CallDescription(
                APPROVE,
                (
                    {
                        "spender": account_from_wire(record["spender"]),
                        "amount": record["amount"],
                        "from_subaccount": blob(first(record.get("from_subaccount"))),
                        "fee": first(record.get("fee")),
                        "expires_at": first(record.get("expires_at")),
                        "expected_allowance": first(record.get("expected_allowance")),
                        "memo": blob(first(record.get("memo"))),
                        "created_at_time": first(record.get("created_at_time")),
                    },
                ),
            )
        if method == "icrc2_allowance":
            return CallDescription(
                ALLOWANCE,
                (
                    {
                        "account": account_from_wire(record["account"]),
                        "spender": account_from_wire(record["spender"]),
                    },
                ),
            )
        return None

    async def transfer_from(self, args: Mapping[str, Any]) -> int:
        response = await self._update(
            "icrc2_transfer_from",
            {
                "from": account_to_wire(args["from"]),
                "to": account_to_wire(args["to"]),
                "amount": int(args["amount"]),
                "fee": opt(args.get("fee")),
                "spender_subaccount": opt(blob(args.get("spender_subaccount"))),
                "memo": opt(blob(args.get("memo"))),
                "created_at_time": opt(args.get("created_at_time")),
            },
        )
        return unwrap_result("icrc2_transfer_from", response)

    async def approve(self, args: Mapping[str, Any]) -> int:
        response = await self._update(
            "icrc2_approve",
            {
                "spender": account_to_wire(args["spender"]),
                "amount": int(args["amount"]),
                "from_subaccount": opt(blob(args.get("from_subaccount"))),
                "fee": opt(args.get("fee")),
                "expires_at": opt(args.get("expires_at")),
                "expected_allowance": opt(args.get("expected_allowance")),
                "memo": opt(blob(args.get("memo"))),
                "created_at_time": opt(args.get("created_at_time")),
            },
        )
        return unwrap_result("icrc2_approve", response)

    async def allowance(self, args: Mapping[str, Any]) -> Dict[str, Any]:
        """``{"allowance": int, "expires_at": int | None}``"""
        response = await self._query(
            "icrc2_allowance",
            {"account": account_to_wire(args["account"]), "spender": account_to_wire(args["spender"])},
        )
        return {"allowance": response["allowance"], "expires_at": first(response.get("expires_at"))}
