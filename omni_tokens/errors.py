"""
omni_tokens.errors
------------------

Exception hierarchy for the token interface.

- Address codec failures (``MalformedAddress``, ``ChecksumMismatch``) and bad
  caller input (``InvalidInput``) are raised synchronously by the codecs.
- ``UnsupportedOperation`` is raised by the facade when no bound adapter
  implements the requested operation. ``ContractRejected`` instead means the
  contract ran and answered with its own error variant.
- ``AdapterProbeFailure`` is only ever constructed and logged during standard
  discovery; callers never see it raised.

Every error carries a stable upper-snake ``code`` and a ``to_dict()`` view that
is safe to log.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


_MAX_TEXT = 256
_MAX_ITEMS = 16


def _summarize(value: Any, depth: int = 0) -> Any:
    """
    Log-safe view of a contract payload or wire value.

    Blobs become (possibly cut) hex, long text is cut, and containers keep their
    first few items. Objects with ``to_text()`` (principals) render as text.
    """
    if depth > 4:
        return "..."
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        text = raw[:_MAX_TEXT // 2].hex()
        return text + "..." if len(raw) > _MAX_TEXT // 2 else text
    if isinstance(value, str):
        return value if len(value) <= _MAX_TEXT else value[:_MAX_TEXT] + "..."
    if hasattr(value, "to_text"):
        return value.to_text()
    if isinstance(value, Mapping):
        items = list(value.items())
        out = {str(k): _summarize(v, depth + 1) for k, v in items[:_MAX_ITEMS]}
        if len(items) > _MAX_ITEMS:
            out["..."] = f"{len(items) - _MAX_ITEMS} more"
        return out
    if isinstance(value, (list, tuple)):
        head = [_summarize(v, depth + 1) for v in value[:_MAX_ITEMS]]
        return head + ["..."] if len(value) > _MAX_ITEMS else head
    return value


class TokenError(Exception):
    """
    Base class for all omni-tokens errors.

    Attributes
    ----------
    code : str
        Stable, upper-snake ASCII identifier (e.g. 'MALFORMED_ADDRESS').
    message : str
        Human-friendly explanation (single line preferred).
    details : dict
        Optional structured data, truncated for logging.
    """

    code: str = "TOKEN_ERROR"

    def __init__(
        self,
        message: str = "token error",
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = _summarize(details or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.code}: {self.message}"


class InvalidInput(TokenError, ValueError):
    """A structurally wrong value was passed (wrong-length subaccount, negative amount)."""

    code = "INVALID_INPUT"


class AddressError(TokenError, ValueError):
    """Base for address text that fails validation."""

    code = "ADDRESS_ERROR"

    def __init__(
        self,
        message: str,
        *,
        address: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        dd: Dict[str, Any] = {"address": address}
        if details:
            dd.update(details)
        super().__init__(message, details=dd)
        self.address = address


class MalformedAddress(AddressError):
    """Address text is structurally invalid (or is a hash form where text was required)."""

    code = "MALFORMED_ADDRESS"


class ChecksumMismatch(AddressError):
    """The checksum embedded in address text does not match the recomputed one."""

    code = "CHECKSUM_MISMATCH"

    def __init__(
        self,
        *,
        address: Optional[str] = None,
        expected: Optional[str] = None,
        got: Optional[str] = None,
        message: str = "address checksum does not match",
    ) -> None:
        super().__init__(
            message, address=address, details={"expected": expected, "got": got}
        )
        self.expected = expected
        self.got = got


class UnsupportedOperation(TokenError):
    """No bound adapter implements the requested canonical operation."""

    code = "UNSUPPORTED_OPERATION"

    def __init__(self, operation: str, *, standards: Optional[list] = None) -> None:
        super().__init__(
            f"no bound adapter implements {operation!r}",
            details={"operation": operation, "standards": list(standards or [])},
        )
        self.operation = operation


class AdapterProbeFailure(TokenError):
    """
    A standard probe raised or answered with garbage.

    Only logged during discovery; contributes to "standard not supported".
    """

    code = "ADAPTER_PROBE_FAILURE"

    def __init__(self, adapter: str, *, reason: str) -> None:
        super().__init__(
            f"probe of {adapter} failed: {reason}",
            details={"adapter": adapter, "reason": reason},
        )
        self.adapter = adapter
        self.reason = reason


class ContractRejected(TokenError):
    """
    The contract executed the call and returned its own error variant.

    ``payload`` is the opaque, standard-specific error value, not normalized.
    """

    code = "CONTRACT_REJECTED"

    def __init__(self, method: str, payload: Any) -> None:
        super().__init__(
            f"{method} rejected by contract: {payload!r}",
            details={"method": method, "payload": payload},
        )
        self.method = method
        self.payload = payload


class TransportError(TokenError):
    """The gateway could not be reached, or answered with a JSON-RPC error object."""

    code = "TRANSPORT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        method: Optional[str] = None,
        rpc_code: Optional[int] = None,
        data: Any = None,
    ) -> None:
        super().__init__(
            message, details={"method": method, "rpc_code": rpc_code, "data": data}
        )
        self.method = method
        self.rpc_code = rpc_code
        self.data = data


__all__ = [
    "TokenError",
    "InvalidInput",
    "AddressError",
    "MalformedAddress",
    "ChecksumMismatch",
    "UnsupportedOperation",
    "AdapterProbeFailure",
    "ContractRejected",
    "TransportError",
]
