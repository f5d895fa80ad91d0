"""
Configuration: per-token binding config and gateway transport settings.

- ``TokenConfig`` is what adapters are constructed with: the contract id, the
  transports to reach it, and the optional Candid decoder.
- ``GatewaySettings`` holds the HTTP gateway knobs (URL, timeout, retry
  backoff) and can be read from OMNI_TOKENS_* environment variables.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from .principal import Principal
from .version import user_agent

if TYPE_CHECKING:  # pragma: no cover
    from .codecs import CandidDecoder
    from .transport import Transport

__all__ = ["TokenConfig", "GatewaySettings"]

_DEFAULT_GATEWAY = "http://127.0.0.1:8080/rpc"


def _check_gateway_url(url: str) -> str:
    scheme, sep, _ = url.partition("://")
    if not sep or scheme.lower() not in ("http", "https"):
        raise ValueError(f"gateway URL must be http(s), got: {url!r}")
    return url


@dataclass(frozen=True)
class TokenConfig:
    """
    Binding configuration for one token contract.

    ``query_transport`` serves read-only calls and defaults to ``transport``.
    ``caller`` is only needed by standards whose ledger wants the sender's
    account spelled out (EXT transfers).
    """

    canister_id: Principal
    transport: "Transport"
    query_transport: Optional["Transport"] = None
    caller: Optional[Principal] = None
    probe_max_retries: int = 1
    candid: Optional["CandidDecoder"] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "canister_id", Principal.of(self.canister_id))
        if self.caller is not None:
            object.__setattr__(self, "caller", Principal.of(self.caller))
        if self.query_transport is None:
            object.__setattr__(self, "query_transport", self.transport)
        if self.probe_max_retries < 0:
            raise ValueError("probe_max_retries must be >= 0")

    def for_probe(self) -> "TokenConfig":
        """Copy whose transports are anonymous and retry at most ``probe_max_retries`` times."""
        probe = self.query_transport.options(anonymous=True, max_retries=self.probe_max_retries)
        return dataclasses.replace(self, transport=probe, query_transport=probe)


# env suffix -> (field, parser)
_ENV_FIELDS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "GATEWAY_URL": ("gateway_url", str),
    "TIMEOUT": ("request_timeout", float),
    "MAX_RETRIES": ("max_retries", int),
    "BACKOFF": ("backoff_factor", float),
    "MAX_BACKOFF": ("max_backoff", float),
    "USER_AGENT": ("user_agent", str),
}


@dataclass(frozen=True)
class GatewaySettings:
    """Settings for :class:`~omni_tokens.transport.GatewayTransport`."""

    gateway_url: str = _DEFAULT_GATEWAY
    request_timeout: float = 10.0
    max_retries: int = 3
    backoff_factor: float = 0.15
    max_backoff: float = 3.0
    user_agent: str = field(default_factory=user_agent)

    def __post_init__(self) -> None:
        _check_gateway_url(self.gateway_url)
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    @classmethod
    def from_env(cls, prefix: str = "OMNI_TOKENS_") -> "GatewaySettings":
        """
        Read ``<prefix>GATEWAY_URL``, ``TIMEOUT``, ``MAX_RETRIES``, ``BACKOFF``,
        ``MAX_BACKOFF`` and ``USER_AGENT``. Unset or empty variables keep the
        defaults.
        """
        values: Dict[str, Any] = {}
        for suffix, (name, parse) in _ENV_FIELDS.items():
            raw = os.environ.get(prefix + suffix)
            if raw:
                values[name] = parse(raw)
        return cls(**values)

    @classmethod
    def with_overrides(
        cls, base: Optional["GatewaySettings"] = None, **overrides: Any
    ) -> "GatewaySettings":
        """``base`` (or :meth:`from_env`) with known keys replaced; unknown keys are ignored."""
        base = base or cls.from_env()
        known = {f.name for f in dataclasses.fields(cls)}
        return dataclasses.replace(base, **{k: v for k, v in overrides.items() if k in known})

    def http_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)
