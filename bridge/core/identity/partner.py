from __future__ import annotations

"""
Partner attribution resolution.

Waterfall, first non-empty value wins, each field on its own:
1. override set through set_override()
2. URL query parameters (`p` / `pi` by default)
3. cookie holding the previous resolution
4. the remote identity (skipped when offline)

The resolved pair is always written back to the cookie, so the cookie caches
the outcome, not any one source.
"""

import logging
from concurrent.futures import Future
from typing import Any, Callable, Dict, Mapping, Optional

from bridge.core.cookies import CookieStore
from bridge.core.errors import NoIdentityError
from bridge.core.futures import recover, resolved, then
from bridge.core.identity.models import PartnerInfo
from bridge.core.url import UrlReader

IdentityReader = Callable[[], "Future[Dict[str, Any]]"]

COOKIE_KEY = "bridge_partner_info"


class PartnerInfoResolver:
    def __init__(
        self,
        *,
        cookies: CookieStore,
        url: UrlReader,
        identity_reader: IdentityReader,
        cookie_key: str = COOKIE_KEY,
        code_param: str = "p",
        info_param: str = "pi",
        logger: Any = None,
    ):
        self.cookies = cookies
        self.url = url
        self.identity_reader = identity_reader
        self.cookie_key = cookie_key
        self.code_param = code_param
        self.info_param = info_param
        self.logger = logger or logging.getLogger("bridge.partner")
        self._override: Optional[PartnerInfo] = None

    def set_override(self, partner_code: Any, partner_info: Any = None) -> None:
        self._override = PartnerInfo(partner_code=partner_code, partner_info=partner_info)

    def clear_override(self) -> None:
        self._override = None

    @property
    def override(self) -> Optional[PartnerInfo]:
        return self._override.model_copy() if self._override is not None else None

    def resolve(self, *, offline: bool = False) -> "Future[PartnerInfo]":
        # work on a copy: resolution never writes into the override
        info = self._override.model_copy() if self._override is not None else PartnerInfo()

        if not info.partner_code:
            info.partner_code = self.url.query(self.code_param)
        if not info.partner_info:
            info.partner_info = self.url.query(self.info_param)

        if not info.complete:
            self._fill_from(info, self._read_cookie())

        if offline or info.complete:
            return resolved(self._finish(info))

        def _from_identity(identity: Mapping[str, Any]) -> PartnerInfo:
            self._fill_from(info, identity)
            return self._finish(info)

        def _no_identity(exc: BaseException) -> PartnerInfo:
            if isinstance(exc, NoIdentityError):
                self.logger.info("No identity available; partner info resolved without it.")
                return self._finish(info)
            raise exc

        return recover(then(self.identity_reader(), _from_identity), _no_identity)

    # ---------- internals ----------
    def _read_cookie(self) -> Optional[Mapping[str, Any]]:
        value = self.cookies.read(self.cookie_key)
        if value is not None and not isinstance(value, Mapping):
            self.logger.warning(f"Ignoring malformed cookie {self.cookie_key!r}.")
            return None
        return value

    @staticmethod
    def _fill_from(info: PartnerInfo, source: Optional[Mapping[str, Any]]) -> None:
        if not source:
            return
        if not info.partner_code:
            info.partner_code = source.get("partnerCode")
        if not info.partner_info:
            info.partner_info = source.get("partnerInfo")

    def _finish(self, info: PartnerInfo) -> PartnerInfo:
        self.cookies.write(self.cookie_key, info.to_cookie())
        return info
