from __future__ import annotations

from concurrent.futures import Future
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class DeliveryMode(str, Enum):
    # pooled keep-alive connection bound to the client session
    DEFAULT = "default"
    # fresh connection closed after the request
    ONESHOT = "oneshot"


class Transport:
    """
    Transport interface.  Never raises for remote failures.

    - request() -> Future resolving to a payload dict; failures resolve to an
      error-shaped payload (`{"error": ...}`) instead of an exception
    - close()   -> release connections / worker threads
    """

    name: str = "base"

    def request(
        self,
        method: str,
        path: str,
        *,
        payload: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
        mode: DeliveryMode = DeliveryMode.DEFAULT,
    ) -> "Future[Dict[str, Any]]":
        raise NotImplementedError

    def get(self, path: str, *, params: Optional[Mapping[str, Any]] = None, mode: DeliveryMode = DeliveryMode.DEFAULT) -> "Future[Dict[str, Any]]":
        return self.request("GET", path, params=params, mode=mode)

    def post(self, path: str, payload: Mapping[str, Any], *, mode: DeliveryMode = DeliveryMode.DEFAULT) -> "Future[Dict[str, Any]]":
        return self.request("POST", path, payload=payload, mode=mode)

    def put(self, path: str, payload: Mapping[str, Any], *, mode: DeliveryMode = DeliveryMode.DEFAULT) -> "Future[Dict[str, Any]]":
        return self.request("PUT", path, payload=payload, mode=mode)

    def close(self) -> None:
        return None
