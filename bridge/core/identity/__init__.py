"""
Client-side identity: cached identity, partner attribution, auth operations.

The identity cache is owned by an AuthClient instance; there is no
module-level identity state.
"""

from bridge.core.identity.cache import IdentityCache
from bridge.core.identity.client import AuthClient
from bridge.core.identity.models import PartnerInfo, VerifyType
from bridge.core.identity.partner import PartnerInfoResolver

__all__ = ["AuthClient", "IdentityCache", "PartnerInfo", "PartnerInfoResolver", "VerifyType"]
