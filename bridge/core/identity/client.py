from __future__ import annotations

"""
AuthClient: the public identity operations.

Every operation returns a Future and optionally takes `callback(error, result)`,
called exactly once. Remote failures surface as RemoteError/NoIdentityError
carrying the error payload verbatim.

get_identity() is the single synchronization point for identity-dependent
operations (update, get_user_id, verify without a user): a cache valid for
the requested scope answers immediately, otherwise the identity is fetched and
merged into the cache.
"""

import logging
import uuid
from concurrent.futures import Future
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from bridge.core.cookies import CookieStore, MemoryCookieStore
from bridge.core.errors import NoIdentityError, ValidationError, error_from_payload, is_error_payload
from bridge.core.events import EventLogger
from bridge.core.futures import Callback, attach_callback, recover, rejected, resolved, then
from bridge.core.identity.cache import IdentityCache
from bridge.core.identity.models import HashLoginCredentials, LoginCredentials, PartnerInfo, VerifyType
from bridge.core.identity.partner import COOKIE_KEY, PartnerInfoResolver
from bridge.core.transport.base import DeliveryMode, Transport
from bridge.core.url import QueryStringReader, UrlReader

UserRef = Union[Mapping[str, Any], str, int]


class AuthClient:
    def __init__(
        self,
        *,
        transport: Transport,
        cookies: Optional[CookieStore] = None,
        url: Optional[UrlReader] = None,
        cache: Optional[IdentityCache] = None,
        event_logger: Optional[EventLogger] = None,
        logger: Any = None,
        clear_on_logout: bool = True,
        partner_cookie_key: str = COOKIE_KEY,
        partner_code_param: str = "p",
        partner_info_param: str = "pi",
    ):
        self.transport = transport
        self.cache = cache or IdentityCache()
        self.event_logger = event_logger
        self.logger = logger or logging.getLogger("bridge.identity")
        self.clear_on_logout = bool(clear_on_logout)
        self.partner = PartnerInfoResolver(
            cookies=cookies or MemoryCookieStore(),
            url=url or QueryStringReader(""),
            identity_reader=lambda: self.get_identity(),
            cookie_key=partner_cookie_key,
            code_param=partner_code_param,
            info_param=partner_info_param,
            logger=self.logger,
        )

    @classmethod
    def from_config(
        cls,
        cfg: Any,
        *,
        transport: Transport,
        cookies: Optional[CookieStore] = None,
        url: Optional[UrlReader] = None,
        event_logger: Optional[EventLogger] = None,
        logger: Any = None,
    ) -> "AuthClient":
        return cls(
            transport=transport,
            cookies=cookies,
            url=url,
            event_logger=event_logger,
            logger=logger,
            clear_on_logout=cfg.identity.clear_on_logout,
            partner_cookie_key=cfg.cookies.partner_info_key,
            partner_code_param=cfg.partner.code_param,
            partner_info_param=cfg.partner.info_param,
        )

    # ---------- login / logout ----------
    def login(self, role: str, username: str, password: str, *, callback: Optional[Callback] = None) -> "Future[Dict[str, Any]]":
        """Authenticate with username/password and cache the returned identity."""
        try:
            creds = LoginCredentials(username=username, password=password, role=role)
        except PydanticValidationError as e:
            return attach_callback(rejected(ValidationError("Invalid login credentials.", errors=str(e))), callback)
        fut = self._remote("login", self.transport.post("/user/login", creds.model_dump()), {"role": role})
        return attach_callback(then(fut, self._cache_and_return), callback)

    def login_by_hash(
        self,
        role: str,
        email: str,
        hash: str,
        username: Optional[str] = None,
        *,
        callback: Optional[Callback] = None,
    ) -> "Future[Dict[str, Any]]":
        try:
            creds = HashLoginCredentials(email=email, hash=hash, role=role, username=username or None)
        except PydanticValidationError as e:
            return attach_callback(rejected(ValidationError("Invalid login credentials.", errors=str(e))), callback)
        fut = self._remote("login", self.transport.post("/user/login-by-hash", creds.to_payload()), {"role": role, "by_hash": True})
        return attach_callback(then(fut, self._cache_and_return), callback)

    def logout(self, *, callback: Optional[Callback] = None) -> "Future[Dict[str, Any]]":
        """
        Destroy the remote session.

        Always sent over a one-shot connection: the pooled connection may be
        tied to the very session being destroyed.
        """

        def _done(result: Dict[str, Any]) -> Dict[str, Any]:
            if self.clear_on_logout:
                self.cache.reset()
            return result

        fut = self._remote("logout", self.transport.get("/user/logout", mode=DeliveryMode.ONESHOT), {})
        return attach_callback(then(fut, _done), callback)

    # ---------- lookups ----------
    def username_available(self, username: str, *, callback: Optional[Callback] = None) -> "Future[bool]":
        fut = self._remote("username_available", self.transport.post("/user/username-available", {"username": username}))
        return attach_callback(then(fut, lambda r: bool(r.get("available"))), callback)

    def get_username(self, user_id: Union[str, int], *, callback: Optional[Callback] = None) -> "Future[Any]":
        fut = self._remote("username", self.transport.get(f"/user/username/{user_id}"))
        return attach_callback(then(fut, lambda r: r.get("username")), callback)

    def get_user_id(self, *, callback: Optional[Callback] = None) -> "Future[Any]":
        return attach_callback(then(self.get_identity(), lambda ident: ident.get("id")), callback)

    # ---------- identity ----------
    def get_identity(
        self,
        role: Optional[str] = None,
        *,
        force: bool = False,
        callback: Optional[Callback] = None,
    ) -> "Future[Dict[str, Any]]":
        """
        Cache-first identity read.

        The cache answers without a network call when it exists, covers the
        requested role (or no role was asked for) and `force` is not set.
        Otherwise GET /user/identity[/<role>], merge, and resolve with the
        shared cache dict (not the raw response).
        """
        current = self.cache.get()
        if current is not None and (not role or current.get(role)) and not force:
            return attach_callback(resolved(current), callback)

        path = "/user/identity" + (f"/{role}" if role else "")
        fut = self._remote("fetch", self.transport.get(path), {"role": role, "force": bool(force)})
        return attach_callback(then(fut, self.cache.update), callback)

    def has_identity(self, role: str, *, callback: Optional[Callback] = None) -> "Future[bool]":
        def _missing(exc: BaseException) -> bool:
            if isinstance(exc, NoIdentityError):
                return False
            raise exc

        fut = then(self.get_identity(role), lambda ident: bool(ident and ident.get(role)))
        return attach_callback(recover(fut, _missing), callback)

    def update(self, properties: Mapping[str, Any], *, callback: Optional[Callback] = None) -> "Future[Dict[str, Any]]":
        """Update properties of the authenticated user."""
        if not isinstance(properties, Mapping):
            return attach_callback(rejected(ValidationError("Properties must be an object.")), callback)

        def _put(ident: Dict[str, Any]) -> "Future[Dict[str, Any]]":
            fut = self._remote("update", self.transport.put(f"/user/{ident.get('id')}", dict(properties)), {"fields": sorted(properties)})
            return then(fut, self._cache_and_return)

        return attach_callback(then(self.get_identity(), _put), callback)

    # ---------- verification ----------
    def verify(
        self,
        verify_type: Union[VerifyType, str],
        hash: str,
        user: Optional[UserRef] = None,
        *,
        callback: Optional[Callback] = None,
    ) -> "Future[Dict[str, Any]]":
        """
        Verify an email address by hash token.

        `user` is an identity mapping or a bare user id; when omitted the
        current identity is resolved first.
        """
        try:
            vt = VerifyType(verify_type)
        except ValueError:
            return attach_callback(rejected(ValidationError("Unknown verification type.", verify_type=str(verify_type))), callback)

        def _send(user_id: Any) -> "Future[Dict[str, Any]]":
            path = f"/user/{user_id}/verify/{vt.value}"
            return self._remote("verify", self.transport.get(path, params={"hash": hash}), {"type": vt.value})

        if user is None:
            return attach_callback(then(self.get_identity(), lambda ident: _send(ident.get("id"))), callback)
        user_id = user.get("id") if isinstance(user, Mapping) else user
        return attach_callback(_send(user_id), callback)

    def verify_email(self, hash: str, user: Optional[UserRef] = None, *, callback: Optional[Callback] = None) -> "Future[Dict[str, Any]]":
        return self.verify(VerifyType.email, hash, user, callback=callback)

    def verify_notification_email(self, hash: str, user: Optional[UserRef] = None, *, callback: Optional[Callback] = None) -> "Future[Dict[str, Any]]":
        return self.verify(VerifyType.notification_email, hash, user, callback=callback)

    # ---------- partner attribution ----------
    def set_partner_info(self, partner_code: Any, partner_info: Any = None) -> None:
        """Dominant partner info; URL and cookie values never replace it."""
        self.partner.set_override(partner_code, partner_info)

    def get_partner_info(self, *, offline: bool = False, callback: Optional[Callback] = None) -> "Future[PartnerInfo]":
        return attach_callback(self.partner.resolve(offline=offline), callback)

    def reset(self) -> None:
        self.cache.reset()

    # ---------- internals ----------
    def _cache_and_return(self, response: Dict[str, Any]) -> Dict[str, Any]:
        self.cache.update(response)
        return response

    def _remote(self, action: str, fut: "Future[Dict[str, Any]]", details: Optional[Dict[str, Any]] = None) -> "Future[Dict[str, Any]]":
        """Turn error-shaped payloads into RemoteError and record the outcome."""
        trace_id = uuid.uuid4().hex

        def _check(payload: Dict[str, Any]) -> Dict[str, Any]:
            if is_error_payload(payload):
                err = error_from_payload(payload)
                self._event(trace_id, f"identity.{action}.failed", {**(details or {}), "error": err.code})
                if not isinstance(err, NoIdentityError):
                    self.logger.warning(f"identity {action} failed: {err.code}")
                raise err
            if not isinstance(payload, Mapping):
                payload = {"result": payload}
            self._event(trace_id, f"identity.{action}.ok", details)
            return dict(payload)

        return then(fut, _check)

    def _event(self, trace_id: str, event_type: str, details: Optional[Dict[str, Any]]) -> None:
        if self.event_logger is None:
            return
        try:
            self.event_logger.log(trace_id, event_type, details or {})
        except OSError as e:
            self.logger.warning(f"Unable to write identity event {event_type}: {e}")
