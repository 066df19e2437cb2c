# backend/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from link_agent.models import LinkParams, NetworkInterface, Node, ReleaseParams


class GatewayError(Exception):
    """Remote call error. `operation` names the failing call."""

    def __init__(self, message: str, operation: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code


class NotFoundError(GatewayError):
    """The addressed object does not exist."""


class NodeLifecycleGateway(ABC):
    """Machine lifecycle operations of the managing service."""

    @abstractmethod
    def get_node(self, system_id: str) -> Node:
        """Fetch a machine. Raise NotFoundError if it does not exist."""
        raise NotImplementedError

    @abstractmethod
    def abort_node(self, system_id: str, comment: str) -> Node:
        """Abort the machine's current operation, recording `comment` in its event log."""
        raise NotImplementedError

    @abstractmethod
    def release_node(self, system_id: str, params: ReleaseParams) -> Node:
        """Release the machine back to the pool."""
        raise NotImplementedError


class LinkGateway(ABC):
    """Interface/subnet link operations of the managing service."""

    @abstractmethod
    def get_interface(self, system_id: str, interface_id: int) -> NetworkInterface:
        raise NotImplementedError

    @abstractmethod
    def link_subnet(self, system_id: str, interface_id: int, params: LinkParams) -> NetworkInterface:
        """Link the interface to a subnet. Returns the interface with its links."""
        raise NotImplementedError

    @abstractmethod
    def unlink_subnet(self, system_id: str, interface_id: int, link_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_default_gateway(self, system_id: str, interface_id: int, link_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear_default_gateways(self, system_id: str) -> None:
        """Clear the default gateway on every interface of the machine."""
        raise NotImplementedError
