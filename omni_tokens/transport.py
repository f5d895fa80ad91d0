"""
Transport boundary between adapters and the ledger.

Adapters never encode wire bytes or sign anything themselves. They hand a
method name and positional Python arguments to a :class:`Transport` and get
decoded Python values back:

- records  -> dict
- opt T    -> [] or [value]
- variants -> single-key dict (``{"Ok": 5}``)
- principals -> :class:`~omni_tokens.principal.Principal`
- blobs    -> bytes

:class:`GatewayTransport` is a concrete transport that forwards calls as
JSON-RPC 2.0 over HTTP (``httpx``) to a gateway that owns the agent, the
identity and the Candid codec:

    {"jsonrpc": "2.0", "id": 1, "method": "canister_query",
     "params": {"canisterId": "...", "method": "icrc1_name", "args": [],
                "anonymous": false}}

Principals and blobs travel as ``{"__principal__": text}`` and
``{"__blob__": hex}``.

Example:
    from omni_tokens.transport import GatewayTransport
    async with GatewayTransport("http://127.0.0.1:8080/rpc") as gw:
        name = await gw.query(ledger, "icrc1_name", [])
"""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from itertools import count
from typing import (Any, Dict, Iterator, Mapping, Optional, Protocol, Sequence,
                    runtime_checkable)

import httpx

from .config import GatewaySettings
from .errors import TransportError
from .principal import Principal
from .utils.retry import RetryError, RetryPolicy
from .version import user_agent

__all__ = ["Transport", "GatewayTransport", "to_json_value", "from_json_value"]

log = logging.getLogger("omni_tokens.transport")


@runtime_checkable
class Transport(Protocol):
    async def query(self, canister_id: Principal, method: str, args: Sequence[Any]) -> Any: ...

    async def update(self, canister_id: Principal, method: str, args: Sequence[Any]) -> Any: ...

    def options(
        self, *, anonymous: Optional[bool] = None, max_retries: Optional[int] = None
    ) -> "Transport": ...


# --- JSON tagging ------------------------------------------------------------


def to_json_value(value: Any) -> Any:
    if isinstance(value, Principal):
        return {"__principal__": value.to_text()}
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"__blob__": bytes(value).hex()}
    if isinstance(value, Mapping):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return value


def from_json_value(value: Any) -> Any:
    if isinstance(value, dict):
        if len(value) == 1 and "__principal__" in value:
            return Principal.from_text(value["__principal__"])
        if len(value) == 1 and "__blob__" in value:
            return bytes.fromhex(value["__blob__"])
        return {k: from_json_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_json_value(v) for v in value]
    return value


# --- Gateway transport -------------------------------------------------------


class _Retriable(Exception):
    """Transient HTTP status; retried by the backoff loop."""


def _is_retriable_http(status: int) -> bool:
    # Typical transient HTTP statuses: 429/502/503/504
    return status in (429, 502, 503, 504)


@dataclass
class GatewayTransport:
    """Async JSON-RPC 2.0 gateway client implementing :class:`Transport`."""

    url: str
    timeout: float = 10.0
    max_retries: int = 3
    backoff_base: float = 0.15
    max_backoff: float = 3.0
    anonymous: bool = False
    headers: Optional[Mapping[str, str]] = None
    client: Optional[httpx.AsyncClient] = None
    _ids: Iterator[int] = field(default_factory=lambda: count(1), repr=False)

    def __post_init__(self) -> None:
        if self.client is None:
            merged: Dict[str, str] = {
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": user_agent(),
            }
            if self.headers:
                merged.update(dict(self.headers))
            self.client = httpx.AsyncClient(timeout=self.timeout, headers=merged)

    @classmethod
    def from_settings(cls, settings: GatewaySettings, **kwargs: Any) -> "GatewayTransport":
        return cls(
            url=settings.gateway_url,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            backoff_base=settings.backoff_factor,
            max_backoff=settings.max_backoff,
            headers=settings.http_headers(),
            **kwargs,
        )

    # --- context manager -------------------------------------------------

    async def __aenter__(self) -> "GatewayTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()

    # --- Transport -------------------------------------------------------

    def options(
        self, *, anonymous: Optional[bool] = None, max_retries: Optional[int] = None
    ) -> "GatewayTransport":
        """Copy sharing the HTTP client, with identity/retry policy overridden."""
        return dataclasses.replace(
            self,
            anonymous=self.anonymous if anonymous is None else bool(anonymous),
            max_retries=self.max_retries if max_retries is None else int(max_retries),
            _ids=self._ids,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            retries=self.max_retries,
            base=self.backoff_base,
            max_delay=self.max_backoff,
            retry_on=(httpx.TransportError, _Retriable),
        )

    async def query(self, canister_id: Principal, method: str, args: Sequence[Any]) -> Any:
        return await self._call("canister_query", canister_id, method, args)

    async def update(self, canister_id: Principal, method: str, args: Sequence[Any]) -> Any:
        return await self._call("canister_update", canister_id, method, args)

    # --- internals -------------------------------------------------------

    async def _call(self, rpc_method: str, canister_id: Principal, method: str, args: Sequence[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": rpc_method,
            "params": {
                "canisterId": Principal.of(canister_id).to_text(),
                "method": method,
                "args": to_json_value(list(args)),
                "anonymous": self.anonymous,
            },
        }

        def _on_retry(attempt: int, exc: BaseException, sleep_s: float) -> None:
            log.warning(
                "gateway_retry",
                extra={"method": method, "attempt": attempt, "sleep_s": round(sleep_s, 3), "error": repr(exc)},
            )

        try:
            resp = await self.retry_policy().run(self._send_once, payload, on_retry=_on_retry)
        except RetryError as e:
            raise TransportError(
                "gateway transport failed", method=method, data=repr(e.last_exception)
            ) from e

        if not isinstance(resp, dict):
            raise TransportError("invalid JSON-RPC response type", method=method, data=type(resp).__name__)
        if resp.get("error") is not None:
            err = resp["error"] or {}
            raise TransportError(
                str(err.get("message", "Unknown error")),
                method=method,
                rpc_code=err.get("code"),
                data=err.get("data"),
            )
        if "result" not in resp:
            raise TransportError("malformed JSON-RPC response", method=method, data=resp)
        return from_json_value(resp["result"])

    async def _send_once(self, payload: Dict[str, Any]) -> Any:
        assert self.client is not None
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        r = await self.client.post(self.url, content=body)
        if _is_retriable_http(r.status_code):
            raise _Retriable(f"HTTP {r.status_code}")
        try:
            return r.json()
        except ValueError as e:
            raise TransportError(
                "non-JSON response from gateway",
                data=f"HTTP {r.status_code}: {r.text[:256]}",
            ) from e
