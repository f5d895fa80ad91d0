"""
EXT (extendable token) adapters.

EXT ledgers address holders by account hash (see
:func:`omni_tokens.account.to_account_hash`) and identify NFTs by a token
identifier principal derived from the collection id and a u32 index:

    token_id = Principal(b"\\x0atid" || canister || u32_be(index))

``ExtCommon`` covers fungible ``@ext/common`` ledgers. ``Ext`` extends it for
``@ext/common`` + ``@ext/nonfungible`` collections, counting NFTs for
``balance_of``, and is listed before ``ExtCommon`` so it wins routing for
collections that implement both.
"""

from __future__ import annotations

import asyncio
import re
import struct
from typing import Any, Dict, List, Optional

from ..account import Account, hash_account, to_account_hash
from ..codecs import Encoding
from ..config import TokenConfig
from ..errors import InvalidInput
from ..metadata import Metadata, lookup, lookup_text, metadata_value_to_json
from ..principal import Principal
from ..types import (BALANCE_OF, MAX_MEMO_SIZE, METADATA, NAME, OWNER_OF,
                     SYMBOL, TOKEN_METADATA, TOKENS, TOKENS_OF, TOTAL_SUPPLY,
                     TRANSFER_TOKEN, CallDescription, StandardDescriptor)
from .base import (TokenAdapter, blob, caller_account, first, opt, page_ids,
                   unwrap_result)

__all__ = [
    "Ext",
    "ExtCommon",
    "EXT_URL",
    "token_index_to_id",
    "token_index_from_id",
]

EXT_URL = "https://github.com/Toniq-Labs/extendable-token"

_TID_PREFIX = b"\x0atid"

# Collections whose index page does not carry a usable name.
_KNOWN_NAMES = {
    "oeee4-qaaaa-aaaak-qaaeq-cai": "Motoko Ghosts",
    "bzsui-sqaaa-aaaah-qce2a-cai": "Poked Bots",
    "dhiaa-ryaaa-aaaae-qabva-cai": "ETH Flower",
}

_INDEX_TITLE_RE = re.compile(r"^(.+?)\n(?:EXT by|---)")


def token_index_to_id(canister_id: Principal, index: int) -> Principal:
    if not 0 <= index < 1 << 32:
        raise InvalidInput("EXT token index must fit in u32", details={"index": index})
    return Principal(_TID_PREFIX + Principal.of(canister_id).to_bytes() + struct.pack(">I", index))


def token_index_from_id(token_id: Principal) -> int:
    raw = Principal.of(token_id).to_bytes()
    if len(raw) < len(_TID_PREFIX) + 4 or not raw.startswith(_TID_PREFIX):
        raise InvalidInput("invalid EXT token identifier", details={"token_id": str(token_id)})
    return struct.unpack(">I", raw[-4:])[0]


async def _extensions(config: TokenConfig) -> List[str]:
    answer = await config.query_transport.query(config.canister_id, "extensions", [])
    if not isinstance(answer, list) or not all(isinstance(x, str) for x in answer):
        raise ValueError("extensions must return a list of names")
    return answer


class ExtCommon(TokenAdapter):
    implemented_standards = ("@ext/common",)
    OPERATIONS = {"@ext/common": (METADATA, NAME, SYMBOL, TOTAL_SUPPLY, MAX_MEMO_SIZE, BALANCE_OF)}

    @classmethod
    async def supported_standards(cls, config: TokenConfig) -> List[StandardDescriptor]:
        return [StandardDescriptor(name, EXT_URL) for name in await _extensions(config)]

    async def metadata(self) -> Metadata:
        name, symbol, total = await asyncio.gather(self.name(), self.symbol(), self.total_supply())
        return [
            ("@ext/common:name", {"Text": name}),
            ("@ext/common:symbol", {"Text": symbol}),
            ("@ext/common:total_supply", {"Nat": total}),
        ]

    async def name(self) -> str:
        """
        Collection name scraped from the canister's own index page.

        Falls back to ``"Unknown"`` when the page carries no title line.
        """
        canister = str(self.config.canister_id)
        if canister in _KNOWN_NAMES:
            return _KNOWN_NAMES[canister]
        response = await self._query("http_request", {"url": "/", "method": "GET", "body": b"", "headers": []})
        if response.get("status_code") == 200:
            body = bytes(response.get("body") or b"").decode("utf-8", errors="replace")
            match = _INDEX_TITLE_RE.match(body)
            if match:
                return match.group(1)
        return "Unknown"

    async def symbol(self) -> str:
        return "EXT"

    async def total_supply(self) -> int:
        return len(await self._query("getTokens"))

    async def max_memo_size(self) -> int:
        # EXT publishes no limit; 32 bytes is accepted by every known ledger.
        return 32

    async def balance_of(self, account: str) -> int:
        response = await self._query(
            "balance",
            {"token": str(self.config.canister_id), "user": {"address": to_account_hash(account)}},
        )
        return unwrap_result("balance", response)


class Ext(ExtCommon):
    implemented_standards = ("@ext/common", "@ext/nonfungible")
    OPERATIONS = {
        "@ext/common": (METADATA, NAME, SYMBOL, TOTAL_SUPPLY, BALANCE_OF),
        "@ext/nonfungible": (TOKEN_METADATA, OWNER_OF, TOKENS, TOKENS_OF, TRANSFER_TOKEN),
    }
    encodings = frozenset({Encoding.CANDID})
    service = "ext"
    NULLARY_CALLS = {"getTokens": TOKENS}
    DECODED_CALLS = frozenset({"tokens", "transfer"})

    @classmethod
    async def supported_standards(cls, config: TokenConfig) -> List[StandardDescriptor]:
        names = await _extensions(config)
        if "@ext/common" in names and "@ext/nonfungible" in names:
            return [StandardDescriptor("@ext/common", EXT_URL), StandardDescriptor("@ext/nonfungible", EXT_URL)]
        return []

    @classmethod
    def _describe(cls, method: str, args: List[Any]) -> Optional[CallDescription]:
        if method == "tokens":
            return CallDescription(TOKENS_OF, (args[0],))
        if method == "transfer":
            (request,) = args
            to = request["to"]
            return CallDescription(
                TRANSFER_TOKEN,
                (
                    {
                        "token_id": token_index_from_id(Principal.from_text(request["token"])),
                        "from_subaccount": blob(first(request.get("subaccount"))),
                        "to": to["address"] if "address" in to else Principal.of(to["principal"]).to_text(),
                        "memo": blob(request.get("memo")),
                    },
                ),
            )
        return None

    # ---- metadata interpretation ----

    @classmethod
    def token_metadata_to_image(cls, metadata: Metadata) -> Optional[str]:
        return lookup_text(metadata, "@ext/nonfungible:image")

    @classmethod
    def token_metadata_to_url(cls, metadata: Metadata) -> Optional[str]:
        return lookup_text(metadata, "@ext/nonfungible:url")

    @classmethod
    def token_metadata_to_attributes(cls, metadata: Metadata) -> Optional[List[Dict[str, Any]]]:
        value = lookup(metadata, "@ext/nonfungible:attributes")
        if not isinstance(value, dict) or "Map" not in value:
            return None
        return [{"trait_type": key, "value": metadata_value_to_json(v)} for key, v in value["Map"]]

    # ---- common ----

    async def balance_of(self, account: str) -> int:
        """Number of NFTs held by ``account``."""
        response = await self._query("tokens", to_account_hash(account))
        if "err" in response:
            return 0
        return len(response["ok"])

    # ---- non-fungible ----

    async def token_metadata(self, token_id: int) -> Optional[Metadata]:
        canister = self.config.canister_id
        url = f"https://{canister}.raw.icp0.io/?tokenid={token_index_to_id(canister, token_id)}"
        return [
            ("@ext/nonfungible:image", {"Text": url}),
            ("@ext/nonfungible:url", {"Text": url}),
        ]

    async def owner_of(self, token_id: int) -> Optional[str]:
        for index, owner in await self._query("getRegistry"):
            if int(index) == int(token_id):
                return owner
        return None

    async def tokens(self, prev: Optional[int] = None, take: Optional[int] = None) -> List[int]:
        return page_ids([index for index, _ in await self._query("getTokens")], prev, take)

    async def tokens_of(
        self, account: str, prev: Optional[int] = None, take: Optional[int] = None
    ) -> List[int]:
        response = await self._query("tokens", to_account_hash(account))
        if "err" in response:
            return []
        return page_ids(response["ok"], prev, take)

    async def transfer_token(self, args: Dict[str, Any]) -> int:
        """
        Transfer one NFT from the configured caller.

        Raises InvalidInput when the config has no ``caller``.
        """
        from_subaccount = blob(args.get("from_subaccount"))
        sender: Account = caller_account(self.config, from_subaccount)
        memo = blob(args.get("memo"))
        response = await self._update(
            "transfer",
            {
                "amount": 1,
                "from": {"address": hash_account(sender)},
                "memo": memo if memo is not None else b"\x00",
                "notify": False,
                "subaccount": opt(from_subaccount),
                "to": {"address": to_account_hash(args["to"])},
                "token": token_index_to_id(self.config.canister_id, int(args["token_id"])).to_text(),
            },
        )
        return unwrap_result("transfer", response)
