"""
In-memory Gateway
=================
Process-local implementation of both gateways. Machines, interfaces and links
are held in dicts and every call is recorded in `calls` in the order issued.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, List, Optional, Tuple

from link_agent.models import Link, LinkMode, LinkParams, NetworkInterface, Node, NodeStatus, ReleaseParams, Subnet
from .base import GatewayError, LinkGateway, NodeLifecycleGateway, NotFoundError

logger = logging.getLogger("link-agent")


class InMemoryGateway(NodeLifecycleGateway, LinkGateway):
    """Dict-backed gateway used by the `memory` driver."""

    def __init__(self):
        self.nodes: Dict[str, Node] = {}
        self.interfaces: Dict[Tuple[str, int], NetworkInterface] = {}
        self.subnets: Dict[int, Subnet] = {}
        self.calls: List[Tuple[Any, ...]] = []
        # operation name -> exception raised the next time it is called
        self.failures: Dict[str, Exception] = {}
        self._next_link_id = 1

    @classmethod
    def from_config(cls, memory_cfg: Dict[str, Any]) -> "InMemoryGateway":
        """Build a gateway seeded from the `memory` section of the agent config.

        Example section::

            {"subnets": [{"id": 1, "cidr": "10.0.0.0/24"}],
             "nodes": [{"system_id": "abc123", "status": "Ready",
                        "interfaces": [{"id": 5, "name": "eth0",
                                        "links": [{"id": 9, "subnet": 1, "mode": "DHCP"}]}]}]}
        """
        gw = cls()
        for item in memory_cfg.get("subnets") or []:
            gw.add_subnet(int(item["id"]), cidr=item.get("cidr", ""), name=item.get("name", ""))
        for node_cfg in memory_cfg.get("nodes") or []:
            system_id = node_cfg["system_id"]
            gw.add_node(system_id, status=node_cfg.get("status", NodeStatus.READY), hostname=node_cfg.get("hostname", ""))
            for iface_cfg in node_cfg.get("interfaces") or []:
                iface_id = int(iface_cfg["id"])
                gw.add_interface(system_id, iface_id, name=iface_cfg.get("name", ""), mac_address=iface_cfg.get("mac_address", ""))
                for link_cfg in iface_cfg.get("links") or []:
                    params = LinkParams(
                        subnet=int(link_cfg["subnet"]),
                        mode=LinkMode.parse(link_cfg.get("mode", "AUTO")),
                        default_gateway=bool(link_cfg.get("default_gateway", False)),
                        ip_address=link_cfg.get("ip_address", ""),
                    )
                    gw.add_link(system_id, iface_id, params, link_id=int(link_cfg["id"]) if "id" in link_cfg else None)
        return gw

    # Seeding
    def add_node(self, system_id: str, status: Any = NodeStatus.READY, hostname: str = "") -> Node:
        node = Node(system_id=system_id, status=status, hostname=hostname)
        self.nodes[system_id] = node
        return node

    def add_subnet(self, subnet_id: int, cidr: str = "", name: str = "") -> Subnet:
        subnet = Subnet(id=subnet_id, cidr=cidr, name=name)
        self.subnets[subnet_id] = subnet
        return subnet

    def add_interface(self, system_id: str, interface_id: int, name: str = "", mac_address: str = "") -> NetworkInterface:
        iface = NetworkInterface(id=interface_id, name=name, mac_address=mac_address, system_id=system_id)
        self.interfaces[(system_id, interface_id)] = iface
        return iface

    def add_link(self, system_id: str, interface_id: int, params: LinkParams, link_id: Optional[int] = None) -> Link:
        iface = self._interface(system_id, interface_id)
        if link_id is None:
            link_id = self._next_link_id
        self._next_link_id = max(self._next_link_id, link_id) + 1
        link = Link(
            id=link_id,
            mode=LinkMode.parse(params.mode),
            subnet=self.subnets.get(params.subnet) or Subnet(id=params.subnet),
            ip_address=params.ip_address if LinkMode.parse(params.mode) == LinkMode.STATIC else "",
            default_gateway=params.default_gateway,
        )
        iface.links.append(link)
        return link

    def fail_next(self, operation: str, exc: Exception) -> None:
        self.failures[operation] = exc

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation,) + args)
        logger.debug("memory gateway: %s %s", operation, args)
        exc = self.failures.pop(operation, None)
        if exc is not None:
            raise exc

    def _node(self, operation: str, system_id: str) -> Node:
        node = self.nodes.get(system_id)
        if node is None:
            raise NotFoundError(f"machine ({system_id}) not found", operation=operation, status_code=404)
        return node

    def _interface(self, system_id: str, interface_id: int) -> NetworkInterface:
        iface = self.interfaces.get((system_id, int(interface_id)))
        if iface is None:
            raise NotFoundError(
                f"network interface ({interface_id}) not found on machine ({system_id})",
                operation="get_interface",
                status_code=404,
            )
        return iface

    # Machine lifecycle
    def get_node(self, system_id: str) -> Node:
        self._record("get_node", system_id)
        return dataclasses.replace(self._node("get_node", system_id))

    def abort_node(self, system_id: str, comment: str) -> Node:
        self._record("abort", system_id, comment)
        node = self._node("abort", system_id)
        return dataclasses.replace(node)

    def release_node(self, system_id: str, params: ReleaseParams) -> Node:
        self._record("release", system_id, params)
        node = self._node("release", system_id)
        node.status = NodeStatus.READY
        return dataclasses.replace(node)

    # Interface links
    def get_interface(self, system_id: str, interface_id: int) -> NetworkInterface:
        self._record("get_interface", system_id, interface_id)
        iface = self._interface(system_id, interface_id)
        return dataclasses.replace(iface, links=list(iface.links))

    def link_subnet(self, system_id: str, interface_id: int, params: LinkParams) -> NetworkInterface:
        self._record("link_subnet", system_id, interface_id, params)
        self.add_link(system_id, interface_id, params)
        iface = self._interface(system_id, interface_id)
        return dataclasses.replace(iface, links=list(iface.links))

    def unlink_subnet(self, system_id: str, interface_id: int, link_id: int) -> None:
        self._record("unlink_subnet", system_id, interface_id, link_id)
        iface = self._interface(system_id, interface_id)
        remaining = [link for link in iface.links if link.id != link_id]
        if len(remaining) == len(iface.links):
            raise GatewayError(f"link ({link_id}) is not on interface ({interface_id})", operation="unlink_subnet", status_code=400)
        iface.links = remaining

    def set_default_gateway(self, system_id: str, interface_id: int, link_id: int) -> None:
        self._record("set_default_gateway", system_id, interface_id, link_id)
        iface = self._interface(system_id, interface_id)
        for link in iface.links:
            if link.id == link_id:
                link.default_gateway = True
                return
        raise GatewayError(f"link ({link_id}) is not on interface ({interface_id})", operation="set_default_gateway", status_code=400)

    def clear_default_gateways(self, system_id: str) -> None:
        self._record("clear_default_gateways", system_id)
        self._node("clear_default_gateways", system_id)
        for (owner, _), iface in self.interfaces.items():
            if owner != system_id:
                continue
            for link in iface.links:
                link.default_gateway = False

    # Identifier resolution
    def find_node(self, ref: str) -> Node:
        ref = str(ref).strip()
        for node in self.nodes.values():
            if ref in (node.system_id, node.hostname):
                return dataclasses.replace(node)
        raise NotFoundError(f"cannot find machine ({ref})", operation="find_node")

    def find_interface(self, system_id: str, ref: str) -> NetworkInterface:
        ref = str(ref).strip()
        for (owner, iface_id), iface in self.interfaces.items():
            if owner != system_id:
                continue
            if str(iface_id) == ref or iface.name == ref or (iface.mac_address and iface.mac_address.lower() == ref.lower()):
                return dataclasses.replace(iface, links=list(iface.links))
        raise NotFoundError(f"cannot find network interface ({ref}) on machine ({system_id})", operation="find_interface")

    def find_subnet(self, ref: str) -> Subnet:
        ref = str(ref).strip()
        for subnet in self.subnets.values():
            if str(subnet.id) == ref or subnet.cidr == ref:
                return subnet
        raise NotFoundError(f"cannot find subnet ({ref})", operation="find_subnet")
