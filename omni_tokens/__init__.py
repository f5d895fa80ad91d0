"""
omni_tokens
-----------

One asynchronous interface over many incompatible ledger token standards
(ICRC-1/2/4/7/10, DIP-20, EXT), plus the account address codec they share.

- Address codec: :mod:`omni_tokens.account` and :mod:`omni_tokens.principal`
- Discovery: :func:`discover_standards`
- Binding and dispatch: :func:`create_token`, :func:`bind_token`
- Call decoding: :meth:`TokenFacade.decode_call`

Example:

    from omni_tokens import GatewayTransport, TokenConfig, create_token

    async with GatewayTransport("http://127.0.0.1:8080/rpc") as gw:
        token = await create_token(TokenConfig("ryjl3-tyaaa-aaaaa-aaaba-cai", gw))
        print(await token.symbol(), await token.balance_of(account_text))
"""

from __future__ import annotations

from .account import (Account, decode_account, decode_subaccount,
                      encode_account, encode_subaccount, hash_account,
                      is_hash_form, is_well_formed_account, to_account_hash)
from .codecs import CandidDecoder, Encoding
from .config import GatewaySettings, TokenConfig
from .errors import (AddressError, AdapterProbeFailure, ChecksumMismatch,
                     ContractRejected, InvalidInput, MalformedAddress,
                     TokenError, TransportError, UnsupportedOperation)
from .facade import TokenFacade, bind_token, create_token
from .principal import Principal
from .registry import KNOWN_ADAPTERS, discover_standards
from .transport import GatewayTransport, Transport
from .types import CallDescription, StandardDescriptor
from .version import __version__

__all__ = [
    "__version__",
    # addressing
    "Principal",
    "Account",
    "encode_account",
    "decode_account",
    "hash_account",
    "is_hash_form",
    "is_well_formed_account",
    "to_account_hash",
    "encode_subaccount",
    "decode_subaccount",
    # registry / facade
    "KNOWN_ADAPTERS",
    "discover_standards",
    "TokenFacade",
    "create_token",
    "bind_token",
    "StandardDescriptor",
    "CallDescription",
    # config / transport / codecs
    "TokenConfig",
    "GatewaySettings",
    "Transport",
    "GatewayTransport",
    "Encoding",
    "CandidDecoder",
    # errors
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
