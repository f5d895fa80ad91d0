"""
Capability registry: which standards does a token contract implement?

All adapter probes run concurrently on an anonymous, retry-limited
transport. A probe that raises or answers garbage is logged and counted as
"standard not supported"; discovery itself never fails. Results are
unioned and de-duplicated by standard name (first answer wins).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Sequence, Type

from .config import TokenConfig
from .errors import AdapterProbeFailure
from .standards import (Dip20, Dip721V1, Dip721V2, Dip721V2Approval, Ext,
                        ExtCommon, Icrc1, Icrc2, Icrc4, Icrc7, Icrc10)
from .standards.base import TokenAdapter
from .types import StandardDescriptor

__all__ = ["KNOWN_ADAPTERS", "discover_standards", "probe_adapter", "dedupe_standards"]

log = logging.getLogger("omni_tokens.registry")

# Routing priority: first adapter implementing an operation serves it.
KNOWN_ADAPTERS: tuple[Type[TokenAdapter], ...] = (
    Icrc1,
    Icrc2,
    Icrc4,
    Icrc7,
    Icrc10,
    Dip20,
    Dip721V1,
    Dip721V2,
    Dip721V2Approval,
    Ext,
    ExtCommon,
)


def _log_probe_failure(event: str, adapter: Type[TokenAdapter], reason: str, config: TokenConfig) -> None:
    failure = AdapterProbeFailure(adapter.__name__, reason=reason)
    log.debug(
        event,
        extra={
            "code": failure.code,
            "adapter": failure.adapter,
            "reason": failure.reason,
            "canister_id": str(config.canister_id),
        },
    )


async def probe_adapter(adapter: Type[TokenAdapter], config: TokenConfig) -> List[StandardDescriptor]:
    """
    Run one adapter's probe; never raises.

    ``config`` should already be the probe config (see ``TokenConfig.for_probe``).
    """
    try:
        answer = await adapter.supported_standards(config)
    except (TypeError, ValueError) as e:
        _log_probe_failure("probe_invalid_answer", adapter, f"invalid answer: {e}", config)
        return []
    except Exception as e:
        _log_probe_failure("probe_failed", adapter, repr(e), config)
        return []

    try:
        return [StandardDescriptor.from_wire(item) for item in answer]
    except (TypeError, ValueError) as e:
        _log_probe_failure("probe_invalid_answer", adapter, f"invalid answer: {e}", config)
        return []


def dedupe_standards(groups: Sequence[Sequence[StandardDescriptor]]) -> List[StandardDescriptor]:
    seen: Dict[str, StandardDescriptor] = {}
    for group in groups:
        for descriptor in group:
            seen.setdefault(descriptor.name, descriptor)
    return list(seen.values())


async def discover_standards(
    config: TokenConfig,
    adapters: Sequence[Type[TokenAdapter]] = KNOWN_ADAPTERS,
) -> List[StandardDescriptor]:
    """Probe every adapter concurrently and return the union of their answers."""
    probe_config = config.for_probe()
    groups = await asyncio.gather(*(probe_adapter(adapter, probe_config) for adapter in adapters))
    standards = dedupe_standards(groups)
    log.info(
        "standards_discovered",
        extra={"canister_id": str(config.canister_id), "standards": [s.name for s in standards]},
    )
    return standards
