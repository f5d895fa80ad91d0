"""ICRC-10 standard self-description; probe only, adds no operations."""

from __future__ import annotations

from typing import List

from ..config import TokenConfig
from ..types import StandardDescriptor
from .base import TokenAdapter

__all__ = ["Icrc10"]


class Icrc10(TokenAdapter):
    implemented_standards = ("ICRC-10",)

    @classmethod
    async def supported_standards(cls, config: TokenConfig) -> List[StandardDescriptor]:
        answer = await config.query_transport.query(config.canister_id, "icrc10_supported_standards", [])
        if not isinstance(answer, list):
            raise ValueError("icrc10_supported_standards must return a list")
        return [StandardDescriptor.from_wire(item) for item in answer]
