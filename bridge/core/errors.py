from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from bridge.core.events import redact


NO_IDENTITY = "no_identity"


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class BridgeError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


class ConfigError(BridgeError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class ValidationError(BridgeError):
    def __init__(self, user_message: str = "Invalid request.", **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class RemoteError(BridgeError):
    """
    Error-shaped payload returned by the remote authority (or synthesized by
    the transport). The payload is kept verbatim on `payload`.
    """

    def __init__(self, payload: Mapping[str, Any], user_message: str = "The identity service reported an error."):
        self.payload: Dict[str, Any] = dict(payload)
        super().__init__(str(self.payload.get("error")), user_message, severity=Severity.WARN, recoverable=True, context=self.payload)


class NoIdentityError(RemoteError):
    def __init__(self, payload: Optional[Mapping[str, Any]] = None, user_message: str = "No identity is available."):
        super().__init__(payload or {"error": NO_IDENTITY}, user_message)


def is_error_payload(payload: Any) -> bool:
    return isinstance(payload, Mapping) and bool(payload.get("error"))


def error_from_payload(payload: Mapping[str, Any]) -> RemoteError:
    if payload.get("error") == NO_IDENTITY:
        return NoIdentityError(payload)
    return RemoteError(payload)
