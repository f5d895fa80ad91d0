"""
DIP-721 non-fungible token adapters (v1, v2 and the v2 approval extension).

DIP-721 balances and ownership belong to principals: any subaccount in the
account text handed to these adapters is ignored. Token ids are dense, so
``tokens`` pages over ``range(total_supply)``, burned tokens included.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from ..account import decode_account
from ..codecs import Encoding
from ..config import TokenConfig
from ..metadata import Metadata, MetadataValue
from ..principal import Principal
from ..types import (APPROVE_COLLECTION, BALANCE_OF, LOGO, METADATA, NAME,
                     OWNER_OF, REVOKE_COLLECTION_APPROVAL, SYMBOL,
                     TOKEN_METADATA, TOKENS, TOKENS_OF, TOTAL_SUPPLY,
                     TRANSFER_TOKEN, TRANSFER_TOKEN_FROM, CallDescription,
                     StandardDescriptor)
from .base import (TokenAdapter, caller_account, first, page_ids,
                   unwrap_result)

__all__ = ["Dip721V1", "Dip721V2", "Dip721V2Approval", "DIP721_URL", "generic_value_to_metadata"]

DIP721_URL = "https://github.com/Psychedelic/DIP721"

_NAT_TAGS = ("NatContent", "Nat64Content", "Nat32Content", "Nat16Content", "Nat8Content")
_INT_TAGS = ("IntContent", "Int64Content", "Int32Content", "Int16Content", "Int8Content")


def generic_value_to_metadata(value: Mapping[str, Any]) -> MetadataValue:
    """DIP-721 ``GenericValue`` variant -> metadata value."""
    ((tag, inner),) = value.items()
    if tag in _NAT_TAGS:
        return {"Nat": int(inner)}
    if tag in _INT_TAGS:
        return {"Int": int(inner)}
    if tag == "FloatContent":
        return {"Text": str(inner)}
    if tag == "BlobContent":
        return {"Blob": bytes(inner)}
    if tag == "NestedContent":
        return {"Map": [(key, generic_value_to_metadata(v)) for key, v in inner]}
    if tag == "Principal":
        return {"Text": Principal.of(inner).to_text()}
    if tag == "TextContent":
        return {"Text": inner}
    raise ValueError(f"unknown DIP-721 value variant {tag!r}")


def _owner(account: str) -> Principal:
    return decode_account(account).owner


def _text(value: Any) -> str:
    return Principal.of(value).to_text()


class Dip721V1(TokenAdapter):
    implemented_standards = ("DIP-721-V1",)
    OPERATIONS = {
        "DIP-721-V1": (
            NAME,
            SYMBOL,
            LOGO,
            TOTAL_SUPPLY,
            BALANCE_OF,
            TOKEN_METADATA,
            OWNER_OF,
            TOKENS,
            TOKENS_OF,
            TRANSFER_TOKEN,
        ),
    }
    encodings = frozenset({Encoding.CANDID})
    service = "dip721v1"
    NULLARY_CALLS = {
        "nameDip721": NAME,
        "symbolDip721": SYMBOL,
        "logoDip721": LOGO,
        "totalSupplyDip721": TOTAL_SUPPLY,
    }
    DECODED_CALLS = frozenset(
        {"balanceOfDip721", "getMetadataDip721", "ownerOfDip721", "getTokenIdsForUserDip721", "transferFromDip721"}
    )

    @classmethod
    async def supported_standards(cls, config: TokenConfig) -> List[StandardDescriptor]:
        answer = await config.query_transport.query(config.canister_id, "supportedInterfacesDip721", [])
        if not isinstance(answer, list):
            return []
        return [StandardDescriptor("DIP-721-V1", DIP721_URL)]

    @classmethod
    def _describe(cls, method: str, args: List[Any]) -> Optional[CallDescription]:
        if method == "balanceOfDip721":
            return CallDescription(BALANCE_OF, (_text(args[0]),))
        if method == "getMetadataDip721":
            return CallDescription(TOKEN_METADATA, (args[0],))
        if method == "ownerOfDip721":
            return CallDescription(OWNER_OF, (args[0],))
        if method == "getTokenIdsForUserDip721":
            return CallDescription(TOKENS_OF, (_text(args[0]),))
        if method == "transferFromDip721":
            _, to, token_id = args
            return CallDescription(TRANSFER_TOKEN, ({"to": _text(to), "token_id": token_id},))
        return None

    async def name(self) -> str:
        return await self._query("nameDip721")

    async def symbol(self) -> str:
        return await self._query("symbolDip721")

    async def logo(self) -> Optional[str]:
        logo = await self._query("logoDip721")
        return logo.get("data") or None

    async def total_supply(self) -> int:
        return await self._query("totalSupplyDip721")

    async def balance_of(self, account: str) -> int:
        return await self._query("balanceOfDip721", _owner(account))

    async def token_metadata(self, token_id: int) -> Optional[Metadata]:
        """One ``dip721v1:<purpose>`` map entry per metadata part."""
        response = await self._query("getMetadataDip721", int(token_id))
        if "Err" in response:
            return None
        out: Metadata = []
        for part in response["Ok"]:
            (purpose,) = part["purpose"]
            values = [(kv["key"], generic_value_to_metadata(kv["val"])) for kv in part["key_val_data"]]
            out.append((f"dip721v1:{purpose}", {"Map": values}))
        return out

    async def owner_of(self, token_id: int) -> Optional[str]:
        response = await self._query("ownerOfDip721", int(token_id))
        if "Err" in response:
            return None
        return _text(response["Ok"])

    async def tokens(self, prev: Optional[int] = None, take: Optional[int] = None) -> List[int]:
        return page_ids(range(await self.total_supply()), prev, take)

    async def tokens_of(
        self, account: str, prev: Optional[int] = None, take: Optional[int] = None
    ) -> List[int]:
        return page_ids(await self._query("getTokenIdsForUserDip721", _owner(account)), prev, take)

    async def transfer_token(self, args: Mapping[str, Any]) -> int:
        """Transfer from the configured caller; InvalidInput without one."""
        sender = caller_account(self.config)
        response = await self._update(
            "transferFromDip721", sender.owner, _owner(args["to"]), int(args["token_id"])
        )
        return unwrap_result("transferFromDip721", response)


class Dip721V2(TokenAdapter):
    implemented_standards = ("DIP-721-V2",)
    OPERATIONS = {
        "DIP-721-V2": (
            METADATA,
            NAME,
            SYMBOL,
            LOGO,
            TOTAL_SUPPLY,
            BALANCE_OF,
            TOKEN_METADATA,
            OWNER_OF,
            TOKENS,
            TOKENS_OF,
            TRANSFER_TOKEN,
        ),
    }
    encodings = frozenset({Encoding.CANDID})
    service = "dip721v2"
    NULLARY_CALLS = {
        "dip721_metadata": METADATA,
        "dip721_name": NAME,
        "dip721_symbol": SYMBOL,
        "dip721_logo": LOGO,
        "dip721_total_supply": TOTAL_SUPPLY,
    }
    DECODED_CALLS = frozenset(
        {
            "dip721_balance_of",
            "dip721_token_metadata",
            "dip721_owner_of",
            "dip721_owner_token_metadata",
            "dip721_transfer",
        }
    )

    @classmethod
    async def supported_standards(cls, config: TokenConfig) -> List[StandardDescriptor]:
        answer = await config.query_transport.query(config.canister_id, "dip721_supported_interfaces", [])
        if not isinstance(answer, list):
            return []
        return [StandardDescriptor("DIP-721-V2", DIP721_URL)]

    @classmethod
    def _describe(cls, method: str, args: List[Any]) -> Optional[CallDescription]:
        if method == "dip721_balance_of":
            return CallDescription(BALANCE_OF, (_text(args[0]),))
        if method == "dip721_token_metadata":
            return CallDescription(TOKEN_METADATA, (args[0],))
        if method == "dip721_owner_of":
            return CallDescription(OWNER_OF, (args[0],))
        if method == "dip721_owner_token_metadata":
            return CallDescription(TOKENS_OF, (_text(args[0]),))
        if method == "dip721_transfer":
            to, token_id = args
            return CallDescription(TRANSFER_TOKEN, ({"to": _text(to), "token_id": token_id},))
        return None

    # ---- common ----

    async def metadata(self) -> Metadata:
        md = await self._query("dip721_metadata")
        out: Metadata = []
        for key in ("name", "symbol", "logo"):
            value = first(md.get(key))
            if value is not None:
                out.append((f"dip721v2:{key}", {"Text": value}))
        out.append(("dip721v2:created_at", {"Nat": md["created_at"]}))
        out.append(("dip721v2:upgraded_at", {"Nat": md["upgraded_at"]}))
        out.append(("dip721v2:custodians", {"Array": [{"Text": _text(c)} for c in md["custodians"]]}))
        return out

    async def name(self) -> str:
        return first(await self._query("dip721_name")) or "Unknown"

    async def symbol(self) -> str:
        return first(await self._query("dip721_symbol")) or "NFT"

    async def logo(self) -> Optional[str]:
        return first(await self._query("dip721_logo"))

    async def total_supply(self) -> int:
        return await self._query("dip721_total_supply")

    async def balance_of(self, account: str) -> int:
        response = await self._query("dip721_balance_of", _owner(account))
        if "Err" in response:
            return 0
        return response["Ok"]

    # ---- non-fungible ----

    async def token_metadata(self, token_id: int) -> Optional[Metadata]:
        response = await self._query("dip721_token_metadata", int(token_id))
        if "Err" in response:
            return None
        md = response["Ok"]
        out: Metadata = []

        def _opt(key: str, tag: str) -> None:
            value = first(md.get(key))
            if value is not None:
                out.append((f"dip721v2:{key}", {"Nat": value} if tag == "Nat" else {"Text": _text(value)}))

        _opt("transferred_at", "Nat")
        _opt("transferred_by", "Text")
        _opt("owner", "Text")
        _opt("operator", "Text")
        _opt("approved_at", "Nat")
        _opt("approved_by", "Text")
        out.append(("dip721v2:is_burned", {"Nat": 1 if md["is_burned"] else 0}))
        out.append(("dip721v2:token_identifier", {"Nat": md["token_identifier"]}))
        _opt("burned_at", "Nat")
        _opt("burned_by", "Text")
        out.append(("dip721v2:minted_at", {"Nat": md["minted_at"]}))
        out.append(("dip721v2:minted_by", {"Text": _text(md["minted_by"])}))
        out.append(
            (
                "dip721v2:properties",
                {"Map": [(key, generic_value_to_metadata(value)) for key, value in md["properties"]]},
            )
        )
        return out

    async def owner_of(self, token_id: int) -> Optional[str]:
        response = await self._query("dip721_owner_of", int(token_id))
        if "Err" in response:
            return None
        owner = first(response["Ok"])
        return None if owner is None else _text(owner)

    async def tokens(self, prev: Optional[int] = None, take: Optional[int] = None) -> List[int]:
        return page_ids(range(await self.total_supply()), prev, take)

    async def tokens_of(
        self, account: str, prev: Optional[int] = None, take: Optional[int] = None
    ) -> List[int]:
        response = await self._query("dip721_owner_token_metadata", _owner(account))
        ids = [md["token_identifier"] for md in response["Ok"]] if "Ok" in response else []
        return page_ids(ids, prev, take)

    async def transfer_token(self, args: Mapping[str, Any]) -> int:
        response = await self._update("dip721_transfer", _owner(args["to"]), int(args["token_id"]))
        return unwrap_result("dip721_transfer", response)


class Dip721V2Approval(TokenAdapter):
    """Operator approvals; announced as the ``Approval`` DIP-721 interface."""

    implemented_standards = ("DIP-721-V2-APPROVAL",)
    OPERATIONS = {
        "DIP-721-V2-APPROVAL": (TRANSFER_TOKEN_FROM, APPROVE_COLLECTION, REVOKE_COLLECTION_APPROVAL),
    }
    encodings = frozenset({Encoding.CBOR})
    service = "dip721v2"
    DECODED_CALLS = frozenset({"dip721_transfer_from", "dip721_set_approval_for_all"})

    @classmethod
    async def supported_standards(cls, config: TokenConfig) -> List[StandardDescriptor]:
        answer = await config.query_transport.query(config.canister_id, "dip721_supported_interfaces", [])
        if not isinstance(answer, list):
            return []
        if not any(isinstance(i, Mapping) and "Approval" in i for i in answer):
            return []
        return [StandardDescriptor("DIP-721-V2-APPROVAL", DIP721_URL)]

    @classmethod
    def _describe(cls, method: str, args: List[Any]) -> Optional[CallDescription]:
        if method == "dip721_transfer_from":
            source, to, token_id = args
            return CallDescription(
                TRANSFER_TOKEN_FROM, ({"from": _text(source), "to": _text(to), "token_id": token_id},)
            )
        if method == "dip721_set_approval_for_all":
            spender, approved = args
            operation = APPROVE_COLLECTION if approved else REVOKE_COLLECTION_APPROVAL
            return CallDescription(operation, ({"spender": _text(spender)},))
        return None

    async def transfer_token_from(self, args: Mapping[str, Any]) -> int:
        response = await self._update(
            "dip721_transfer_from", _owner(args["from"]), _owner(args["to"]), int(args["token_id"])
        )
        return unwrap_result("dip721_transfer_from", response)

    async def approve_collection(self, args: Mapping[str, Any]) -> int:
        response = await self._update("dip721_set_approval_for_all", _owner(args["spender"]), True)
        return unwrap_result("dip721_set_approval_for_all", response)

    async def revoke_collection_approval(self, args: Mapping[str, Any]) -> int:
        response = await self._update("dip721_set_approval_for_all", _owner(args["spender"]), False)
        return unwrap_result("dip721_set_approval_for_all", response)
