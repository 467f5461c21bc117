"""
HTTP transport on `requests`.

DEFAULT mode goes through a pooled `requests.Session` (keep-alive, cookie
jar). ONESHOT mode sends through a throwaway session with `Connection: close`
that shares the pooled cookie jar, so requests like logout do not depend on
the pooled connection and cookies they set or expire stay in sync.

Requests run on a single worker thread: callers never block and requests
complete in submission order.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Mapping, Optional

import requests

from bridge.core.transport.base import DeliveryMode, Transport


class HttpTransport(Transport):
    name: str = "http"

    def __init__(
        self,
        *,
        base_url: str = "http://127.0.0.1:8080",
        timeout_seconds: float = 10.0,
        verify_tls: bool = True,
        user_agent: str = "bridge-identity/0.1",
        session: Optional[requests.Session] = None,
        logger: Any = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = float(timeout_seconds)
        self.verify_tls = bool(verify_tls)
        self.user_agent = user_agent
        self.logger = logger or logging.getLogger("bridge.transport")
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", user_agent)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bridge-transport")
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_config(cls, cfg: Any, *, logger: Any = None) -> "HttpTransport":
        return cls(
            base_url=cfg.base_url,
            timeout_seconds=cfg.timeout_seconds,
            verify_tls=cfg.verify_tls,
            user_agent=cfg.user_agent,
            logger=logger,
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    # ── Transport API ──────────────────────────────────────────────

    def request(
        self,
        method: str,
        path: str,
        *,
        payload: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
        mode: DeliveryMode = DeliveryMode.DEFAULT,
    ) -> "Future[Dict[str, Any]]":
        with self._lock:
            if self._closed:
                fut: "Future[Dict[str, Any]]" = Future()
                fut.set_result({"error": "transport_closed"})
                return fut
            return self._executor.submit(self._send, method.upper(), path, payload, params, mode)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=True)
        self._session.close()

    def export_cookies(self) -> Dict[str, str]:
        """Session cookies as a plain dict, for persisting between runs."""
        return requests.utils.dict_from_cookiejar(self._session.cookies)

    def import_cookies(self, cookies: Optional[Mapping[str, Any]]) -> None:
        if cookies:
            requests.utils.add_dict_to_cookiejar(self._session.cookies, {str(k): str(v) for k, v in cookies.items()})

    # ── HTTP helpers ───────────────────────────────────────────────

    def _send(
        self,
        method: str,
        path: str,
        payload: Optional[Mapping[str, Any]],
        params: Optional[Mapping[str, Any]],
        mode: DeliveryMode,
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "params": dict(params) if params else None,
            "json": dict(payload) if payload is not None else None,
            "timeout": self.timeout_seconds,
            "verify": self.verify_tls,
        }
        try:
            if mode == DeliveryMode.ONESHOT:
                r = self._send_oneshot(method, path, kwargs)
            else:
                r = self._session.request(method, self._url(path), **kwargs)
        except requests.Timeout:
            self.logger.warning(f"{method} {path} timed out after {self.timeout_seconds}s")
            return {"error": "timeout"}
        except requests.RequestException as e:
            self.logger.warning(f"{method} {path} failed: {e}")
            return {"error": "network_error", "detail": str(e)}
        return _to_payload(r)

    def _send_oneshot(self, method: str, path: str, kwargs: Dict[str, Any]) -> requests.Response:
        # Own connection pool, shared cookie jar: Set-Cookie on the response
        # (including expiries) lands in the pooled session's jar.
        with requests.Session() as oneshot:
            oneshot.cookies = self._session.cookies
            oneshot.headers.update({"Connection": "close", "User-Agent": self.user_agent})
            return oneshot.request(method, self._url(path), **kwargs)


def _to_payload(r: requests.Response) -> Dict[str, Any]:
    """
    Map an HTTP response onto the payload contract: a dict, error-shaped
    (truthy `error`) on failure.
    """
    ok = 200 <= int(r.status_code) < 300
    try:
        body = r.json()
    except ValueError:
        if ok:
            return {"result": r.text}
        return {"error": "http_error", "status": int(r.status_code)}

    if isinstance(body, dict):
        if ok or body.get("error"):
            return body
        out = dict(body)
        out["error"] = "http_error"
        out.setdefault("status", int(r.status_code))
        return out
    if ok:
        return {"result": body}
    return {"error": "http_error", "status": int(r.status_code)}
