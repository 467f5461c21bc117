"""
Request transport used by the identity client.

The client only depends on `Transport`; `HttpTransport` is the default
implementation on top of `requests`.
"""

from bridge.core.transport.base import DeliveryMode, Transport
from bridge.core.transport.http import HttpTransport

__all__ = ["DeliveryMode", "HttpTransport", "Transport"]
