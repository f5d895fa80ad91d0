"""ICRC-4 batch transfers."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Union

from ..codecs import Encoding
from ..errors import ContractRejected
from ..types import BATCH_TRANSFER, CallDescription
from .base import TokenAdapter, first, unwrap_result
from .icrc1 import transfer_args_from_wire, transfer_args_to_wire

__all__ = ["Icrc4", "BatchItem", "unwrap_batch"]

# Per-item outcome: the Ok value, None when the ledger skipped the item, or
# the rejection the ledger answered for that item.
BatchItem = Union[Any, None, ContractRejected]


def unwrap_batch(method: str, responses: Sequence[Any], expected: int) -> List[BatchItem]:
    """
    Turn ``vec opt Result`` into per-item outcomes.

    Rejections are returned in place rather than raised so one failed item
    does not hide the others.
    """
    out: List[BatchItem] = []
    for index in range(expected):
        response = first(responses[index]) if index < len(responses) else None
        if response is None:
            out.append(None)
            continue
        try:
            out.append(unwrap_result(method, response))
        except ContractRejected as e:
            out.append(e)
    return out


class Icrc4(TokenAdapter):
    implemented_standards = ("ICRC-4",)
    OPERATIONS = {"ICRC-4": (BATCH_TRANSFER,)}
    encodings = frozenset({Encoding.CANDID})
    service = "icrc4"
    DECODED_CALLS = frozenset({"icrc4_transfer_batch"})

    @classmethod
    def _describe(cls, method: str, args: List[Any]) -> Optional[CallDescription]:
        if method == "icrc4_transfer_batch":
            return CallDescription(BATCH_TRANSFER, ([transfer_args_from_wire(item) for item in args[0]],))
        return None

    async def batch_transfer(self, args: Sequence[Mapping[str, Any]]) -> List[BatchItem]:
        responses = await self._update(
            "icrc4_transfer_batch", [transfer_args_to_wire(item) for item in args]
        )
        return unwrap_batch("icrc4_transfer_batch", responses, len(args))
