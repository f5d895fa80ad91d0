"""
Shared datatypes: standard descriptors, decoded call descriptions and the
canonical operation names every adapter maps its own methods onto.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple

__all__ = [
    "StandardDescriptor",
    "CallDescription",
    "CANONICAL_OPERATIONS",
    # operation names
    "METADATA",
    "NAME",
    "SYMBOL",
    "LOGO",
    "TOTAL_SUPPLY",
    "MAX_MEMO_SIZE",
    "BALANCE_OF",
    "DECIMALS",
    "FEE",
    "MINTING_ACCOUNT",
    "TRANSFER",
    "TRANSFER_FROM",
    "APPROVE",
    "ALLOWANCE",
    "SUPPLY_CAP",
    "TOKEN_METADATA",
    "OWNER_OF",
    "TOKENS",
    "TOKENS_OF",
    "TRANSFER_TOKEN",
    "TRANSFER_TOKEN_FROM",
    "APPROVE_COLLECTION",
    "REVOKE_COLLECTION_APPROVAL",
    "BATCH_BALANCE_OF",
    "BATCH_TRANSFER",
    "BATCH_TOKEN_METADATA",
    "BATCH_OWNER_OF",
    "BATCH_TRANSFER_TOKEN",
]


@dataclass(frozen=True)
class StandardDescriptor:
    """A standard a contract reports (or is detected) to implement."""

    name: str
    url: str = ""

    @classmethod
    def from_wire(cls, value: Any) -> "StandardDescriptor":
        """
        Accept a descriptor, a ``{"name", "url"}`` mapping or a bare name.

        Raises TypeError/ValueError on anything else.
        """
        if isinstance(value, StandardDescriptor):
            return value
        if isinstance(value, str):
            name, url = value, ""
        elif isinstance(value, Mapping):
            name, url = value.get("name"), value.get("url", "")
        else:
            raise TypeError(f"not a standard descriptor: {type(value).__name__}")
        if not isinstance(name, str) or not name:
            raise ValueError("standard name must be a non-empty string")
        if not isinstance(url, str):
            raise ValueError("standard url must be a string")
        return cls(name=name, url=url)


@dataclass(frozen=True)
class CallDescription:
    """Standard-agnostic view of a raw method call, e.g. ``transfer({...})``."""

    operation: str
    args: Tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))


# Canonical operation keys (string constants to avoid typos)

# common
METADATA = "metadata"
NAME = "name"
SYMBOL = "symbol"
LOGO = "logo"
TOTAL_SUPPLY = "total_supply"
MAX_MEMO_SIZE = "max_memo_size"
BALANCE_OF = "balance_of"
# fungible
DECIMALS = "decimals"
FEE = "fee"
MINTING_ACCOUNT = "minting_account"
TRANSFER = "transfer"
TRANSFER_FROM = "transfer_from"
APPROVE = "approve"
ALLOWANCE = "allowance"
# non-fungible
SUPPLY_CAP = "supply_cap"
TOKEN_METADATA = "token_metadata"
OWNER_OF = "owner_of"
TOKENS = "tokens"
TOKENS_OF = "tokens_of"
TRANSFER_TOKEN = "transfer_token"
TRANSFER_TOKEN_FROM = "transfer_token_from"
APPROVE_COLLECTION = "approve_collection"
REVOKE_COLLECTION_APPROVAL = "revoke_collection_approval"
# batch
BATCH_BALANCE_OF = "batch_balance_of"
BATCH_TRANSFER = "batch_transfer"
BATCH_TOKEN_METADATA = "batch_token_metadata"
BATCH_OWNER_OF = "batch_owner_of"
BATCH_TRANSFER_TOKEN = "batch_transfer_token"

CANONICAL_OPERATIONS: tuple[str, ...] = (
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
    TRANSFER_FROM,
    APPROVE,
    ALLOWANCE,
    SUPPLY_CAP,
    TOKEN_METADATA,
    OWNER_OF,
    TOKENS,
    TOKENS_OF,
    TRANSFER_TOKEN,
    TRANSFER_TOKEN_FROM,
    APPROVE_COLLECTION,
    REVOKE_COLLECTION_APPROVAL,
    BATCH_BALANCE_OF,
    BATCH_TRANSFER,
    BATCH_TOKEN_METADATA,
    BATCH_OWNER_OF,
    BATCH_TRANSFER_TOKEN,
)
