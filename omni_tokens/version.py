"""
Version of the omni-tokens package.

The static ``__version__`` (PEP 440) is also used to build the gateway
transport's default User-Agent.
"""

from __future__ import annotations

# Bump this when publishing
__version__ = "0.3.0"


def user_agent() -> str:
    """Default User-Agent sent by the gateway transport."""
    return f"omni-tokens-py/{__version__}"


__all__ = ["__version__", "user_agent"]
