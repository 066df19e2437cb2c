# backend/__init__.py
from __future__ import annotations

from typing import Any, Dict, Optional

from .base import GatewayError, LinkGateway, NodeLifecycleGateway, NotFoundError
from .maas import MaasClient
from .memory import InMemoryGateway

_DRIVERS = ("maas", "memory")


def get_backend_by_driver(driver: str, config: Optional[Dict[str, Any]] = None):
    """
    Returns a gateway instance for the specified 'driver'.
    The returned object implements both NodeLifecycleGateway and LinkGateway.
    """
    key = (driver or "").strip().lower()
    if key not in _DRIVERS:
        raise GatewayError(f"Unsupported backend driver '{driver}'")
    if key == "memory":
        return InMemoryGateway.from_config((config or {}).get("memory", {}))
    return MaasClient.from_config((config or {}).get("maas", {}))


__all__ = [
    "GatewayError",
    "InMemoryGateway",
    "LinkGateway",
    "MaasClient",
    "NodeLifecycleGateway",
    "NotFoundError",
    "get_backend_by_driver",
]
