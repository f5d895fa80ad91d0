"""Shared fixtures: an in-memory transport that records every call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from omni_tokens.config import TokenConfig
from omni_tokens.principal import Principal

LEDGER = "ryjl3-tyaaa-aaaaa-aaaba-cai"
OWNER = "k2t6j-2nvnp-4zjm3-25dtz-6xhaa-c7boj-5gayf-oj3xs-i43lp-teztq-6ae"


@dataclass
class Call:
    kind: str
    canister_id: Principal
    method: str
    args: List[Any]
    anonymous: bool
    max_retries: Optional[int]


@dataclass
class FakeTransport:
    """
    Answers from ``responses[method]``: a value, an exception instance (raised)
    or a callable taking the positional args. Unknown methods raise.
    """

    responses: Dict[str, Any] = field(default_factory=dict)
    calls: List[Call] = field(default_factory=list)
    anonymous: bool = False
    max_retries: Optional[int] = None

    def options(self, *, anonymous: Optional[bool] = None, max_retries: Optional[int] = None) -> "FakeTransport":
        return FakeTransport(
            responses=self.responses,
            calls=self.calls,
            anonymous=self.anonymous if anonymous is None else anonymous,
            max_retries=self.max_retries if max_retries is None else max_retries,
        )

    async def query(self, canister_id: Principal, method: str, args: List[Any]) -> Any:
        return self._answer("query", canister_id, method, args)

    async def update(self, canister_id: Principal, method: str, args: List[Any]) -> Any:
        return self._answer("update", canister_id, method, args)

    def _answer(self, kind: str, canister_id: Principal, method: str, args: List[Any]) -> Any:
        self.calls.append(Call(kind, canister_id, method, list(args), self.anonymous, self.max_retries))
        if method not in self.responses:
            raise RuntimeError(f"no such method: {method}")
        answer = self.responses[method]
        if isinstance(answer, BaseException):
            raise answer
        if callable(answer):
            return answer(*args)
        return answer

    def methods(self, kind: Optional[str] = None) -> List[str]:
        return [c.method for c in self.calls if kind is None or c.kind == kind]

    def last(self, method: str) -> Call:
        for c in reversed(self.calls):
            if c.method == method:
                return c
        raise AssertionError(f"{method} was never called")


@dataclass
class FakeCandid:
    """Candid stand-in: ``decoded[(service, method)]`` is returned, or raised."""

    decoded: Dict[Tuple[str, str], Any] = field(default_factory=dict)
    seen: List[Tuple[str, str, bytes]] = field(default_factory=list)

    def decode_args(self, service: str, method: str, raw: bytes) -> List[Any]:
        self.seen.append((service, method, raw))
        answer = self.decoded.get((service, method))
        if answer is None:
            raise ValueError(f"cannot decode {service}.{method}")
        if isinstance(answer, BaseException):
            raise answer
        if callable(answer):
            return answer(raw)
        return answer


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def candid() -> FakeCandid:
    return FakeCandid()


@pytest.fixture
def owner() -> Principal:
    return Principal.from_text(OWNER)


@pytest.fixture
def make_config(transport: FakeTransport, candid: FakeCandid) -> Callable[..., TokenConfig]:
    def _make(**overrides: Any) -> TokenConfig:
        kwargs: Dict[str, Any] = {"canister_id": LEDGER, "transport": transport, "candid": candid}
        kwargs.update(overrides)
        return TokenConfig(**kwargs)

    return _make
