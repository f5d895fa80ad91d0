"""
DIP-20 fungible token adapter.

DIP-20 ledgers have no way to announce the standards they implement, so
detection is a best-effort behavioural heuristic kept in
:func:`looks_like_dip20`. Its answer is unioned with every other probe's
answer by the registry and never overrides an explicit self-description.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from ..account import decode_account
from ..codecs import Encoding
from ..config import TokenConfig
from ..metadata import Metadata
from ..principal import Principal
from ..types import (BALANCE_OF, DECIMALS, FEE, LOGO, METADATA,
                     MINTING_ACCOUNT, NAME, SYMBOL, TOTAL_SUPPLY, TRANSFER,
                     CallDescription, StandardDescriptor)
from .base import TokenAdapter, unwrap_result

__all__ = ["Dip20", "looks_like_dip20", "DIP20_DESCRIPTOR"]

log = logging.getLogger("omni_tokens.standards.dip20")

DIP20_DESCRIPTOR = StandardDescriptor("DIP-20", "https://github.com/Psychedelic/DIP20")

# Two unrelated principals nobody holds keys for; their mutual allowance is
# zero on every genuine DIP-20 ledger.
_PROBE_OWNER = Principal.from_text("s7l4m-kbynv-wmpuo-li4xn-vlotx-ulyj6-afz7m-npdis-ajee4-xx5jj-tae")
_PROBE_SPENDER = Principal.from_text("kk4n5-atwef-77o6m-mour6-pzmjs-qyjwn-pwo7q-75u2d-plgjc-sefao-pae")

_METADATA_FIELDS = {
    "fee": int,
    "decimals": int,
    "owner": (Principal, bytes),
    "logo": str,
    "name": str,
    "totalSupply": int,
    "symbol": str,
}


def _is_valid_metadata(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    for key, kind in _METADATA_FIELDS.items():
        field_value = value.get(key)
        if not isinstance(field_value, kind) or isinstance(field_value, bool):
            return False
    return True


async def looks_like_dip20(config: TokenConfig) -> bool:
    """
    Heuristic DIP-20 detection.

    1. ``getMetadata`` must answer a record with every DIP-20 metadata field.
    2. ``allowance`` between two fixed foreign principals must be exactly 0.

    Transport failures at either step mean "not DIP-20".
    """
    transport = config.query_transport
    try:
        metadata = await transport.query(config.canister_id, "getMetadata", [])
    except Exception as e:
        log.debug("dip20_metadata_unavailable", extra={"canister_id": str(config.canister_id), "error": repr(e)})
        return False
    if not _is_valid_metadata(metadata):
        return False

    try:
        allowance = await transport.query(config.canister_id, "allowance", [_PROBE_OWNER, _PROBE_SPENDER])
    except Exception as e:
        log.debug("dip20_allowance_unavailable", extra={"canister_id": str(config.canister_id), "error": repr(e)})
        return False
    return isinstance(allowance, int) and not isinstance(allowance, bool) and allowance == 0


class Dip20(TokenAdapter):
    implemented_standards = ("DIP-20",)
    OPERATIONS = {
        "DIP-20": (
            METADATA,
            NAME,
            SYMBOL,
            LOGO,
            TOTAL_SUPPLY,
            BALANCE_OF,
            DECIMALS,
            FEE,
            MINTING_ACCOUNT,
            TRANSFER,
        ),
    }
    encodings = frozenset({Encoding.CANDID})
    service = "dip20"
    NULLARY_CALLS = {
        "getMetadata": METADATA,
        "name": NAME,
        "symbol": SYMBOL,
        "logo": LOGO,
        "totalSupply": TOTAL_SUPPLY,
        "decimals": DECIMALS,
    }
    DECODED_CALLS = frozenset({"balanceOf", "transfer"})

    @classmethod
    async def supported_standards(cls, config: TokenConfig) -> List[StandardDescriptor]:
        if await looks_like_dip20(config):
            return [DIP20_DESCRIPTOR]
        return []

    @classmethod
    def _describe(cls, method: str, args: List[Any]) -> Optional[CallDescription]:
        if method == "balanceOf":
            return CallDescription(BALANCE_OF, (Principal.of(args[0]).to_text(),))
        if method == "transfer":
            to, amount = args
            return CallDescription(TRANSFER, ({"to": Principal.of(to).to_text(), "amount": amount},))
        return None

    async def metadata(self) -> Metadata:
        md = await self._query("getMetadata")
        return [
            ("dip20:fee", {"Nat": md["fee"]}),
            ("dip20:decimals", {"Nat": int(md["decimals"])}),
            ("dip20:owner", {"Text": Principal.of(md["owner"]).to_text()}),
            ("dip20:logo", {"Text": md["logo"]}),
            ("dip20:name", {"Text": md["name"]}),
            ("dip20:totalSupply", {"Nat": md["totalSupply"]}),
            ("dip20:symbol", {"Text": md["symbol"]}),
        ]

    async def name(self) -> str:
        return await self._query("name")

    async def symbol(self) -> str:
        return await self._query("symbol")

    async def logo(self) -> Optional[str]:
        return (await self._query("logo")) or None

    async def total_supply(self) -> int:
        return await self._query("totalSupply")

    async def balance_of(self, account: str) -> int:
        # DIP-20 balances belong to principals; any subaccount is ignored.
        return await self._query("balanceOf", decode_account(account).owner)

    async def decimals(self) -> int:
        return await self._query("decimals")

    async def fee(self) -> int:
        return 0

    async def minting_account(self) -> Optional[str]:
        md = await self._query("getMetadata")
        return Principal.of(md["owner"]).to_text()

    async def transfer(self, args: Mapping[str, Any]) -> int:
        response = await self._update("transfer", decode_account(args["to"]).owner, int(args["amount"]))
        return unwrap_result("transfer", response)
