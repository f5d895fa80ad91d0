"""
Concrete token standard adapters.

Order matters: :data:`omni_tokens.registry.KNOWN_ADAPTERS` lists these in
routing priority.
"""

from .base import TokenAdapter
from .dip20 import Dip20, looks_like_dip20
from .dip721 import Dip721V1, Dip721V2, Dip721V2Approval
from .ext import Ext, ExtCommon
from .icrc1 import Icrc1
from .icrc2 import Icrc2
from .icrc4 import Icrc4
from .icrc7 import Icrc7
from .icrc10 import Icrc10

__all__ = [
    "TokenAdapter",
    "Icrc1",
    "Icrc2",
    "Icrc4",
    "Icrc7",
    "Icrc10",
    "Dip20",
    "looks_like_dip20",
    "Dip721V1",
    "Dip721V2",
    "Dip721V2Approval",
    "Ext",
    "ExtCommon",
]
