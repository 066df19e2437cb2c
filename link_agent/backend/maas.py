"""
MAAS REST Gateway
=================
This module talks to a MAAS region controller over HTTP using the 2.0 REST API.
It implements both the machine lifecycle gateway and the link gateway.

Authentication uses the MAAS API key (`consumer:token:secret`), sent as an
OAuth 1.0 PLAINTEXT `Authorization` header on every request.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, List, Optional, Set, Union

import requests

from link_agent.models import Link, LinkMode, LinkParams, NetworkInterface, Node, ReleaseParams, Subnet
from .base import GatewayError, LinkGateway, NodeLifecycleGateway, NotFoundError

logger = logging.getLogger("link-agent")


def parse_api_key(api_key: str) -> tuple[str, str, str]:
    """Split a MAAS API key into (consumer_key, token_key, token_secret)."""
    parts = (api_key or "").strip().split(":")
    if len(parts) != 3 or not all(parts):
        raise ValueError("Invalid MAAS API key. Expected format 'consumer:token:secret'")
    return parts[0], parts[1], parts[2]


def _oauth_header(consumer_key: str, token_key: str, token_secret: str) -> str:
    """Build a PLAINTEXT OAuth 1.0 Authorization header value."""
    params = [
        ("oauth_version", "1.0"),
        ("oauth_signature_method", "PLAINTEXT"),
        ("oauth_consumer_key", consumer_key),
        ("oauth_token", token_key),
        ("oauth_signature", f"&{token_secret}"),
        ("oauth_nonce", uuid.uuid4().hex),
        ("oauth_timestamp", str(int(time.time()))),
    ]
    return "OAuth " + ", ".join(f'{k}="{v}"' for k, v in params)


def _to_bool_str(value: bool) -> str:
    return "true" if value else "false"


def _node_from_json(data: Dict[str, Any]) -> Node:
    return Node(
        system_id=data.get("system_id", ""),
        status=data.get("status"),
        hostname=data.get("hostname", "") or "",
        status_name=data.get("status_name", "") or "",
    )


def _subnet_from_json(data: Any) -> Optional[Subnet]:
    if not isinstance(data, dict) or "id" not in data:
        return None
    return Subnet(id=int(data["id"]), cidr=data.get("cidr", "") or "", name=data.get("name", "") or "")


def _interface_from_json(data: Dict[str, Any]) -> NetworkInterface:
    links: List[Link] = []
    for item in data.get("links") or []:
        links.append(
            Link(
                id=int(item["id"]),
                mode=LinkMode.parse(item.get("mode", "auto")),
                subnet=_subnet_from_json(item.get("subnet")),
                ip_address=item.get("ip_address", "") or "",
            )
        )
    return NetworkInterface(
        id=int(data["id"]),
        name=data.get("name", "") or "",
        mac_address=data.get("mac_address", "") or "",
        system_id=data.get("system_id", "") or "",
        links=links,
    )


def _default_gateway_link_ids(machine: Dict[str, Any]) -> Set[int]:
    """Link IDs named in a machine's `default_gateways` (ipv4 and ipv6)."""
    ids: Set[int] = set()
    for family in (machine.get("default_gateways") or {}).values():
        if isinstance(family, dict) and family.get("link_id") is not None:
            ids.add(int(family["link_id"]))
    return ids


class MaasClient(NodeLifecycleGateway, LinkGateway):
    """MAAS 2.0 REST API client."""

    def __init__(
        self,
        url: str,
        api_key: str,
        api_version: str = "2.0",
        timeout: int = 30,
        verify: Union[bool, str] = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the client.
        Args:
            url: MAAS base URL, e.g. http://maas.example.com:5240/MAAS
            api_key: MAAS API key (consumer:token:secret)
            api_version: REST API version
            timeout: per-request timeout in seconds
            verify: TLS verification flag or CA bundle path
            session: optional pre-built requests session
        """
        self.consumer_key, self.token_key, self.token_secret = parse_api_key(api_key)
        self.base_url = f"{url.rstrip('/')}/api/{api_version}/"
        self.timeout = int(timeout or 30)
        self.verify = verify
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, maas_cfg: Dict[str, Any]) -> "MaasClient":
        """Build a client from the `maas` section of the agent config."""
        verify: Union[bool, str] = True
        if maas_cfg.get("skip_ssl_verification"):
            verify = False
        elif maas_cfg.get("ca_bundle"):
            verify = str(maas_cfg["ca_bundle"])
        return cls(
            url=maas_cfg.get("url", ""),
            api_key=maas_cfg.get("api_key", ""),
            api_version=str(maas_cfg.get("api_version", "2.0")),
            timeout=int(maas_cfg.get("timeout", 30)),
            verify=verify,
        )

    # HTTP helpers
    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Authorization": _oauth_header(self.consumer_key, self.token_key, self.token_secret),
        }

    def _req(
        self,
        operation: str,
        method: str,
        path: str,
        op: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Perform an HTTP request and map errors. Returns the decoded JSON body (or None)."""
        url = self.base_url + path
        params = {"op": op} if op else None
        logger.debug("MAAS %s %s op=%s data=%s", method, url, op, data)
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                data=data,
                headers=self._headers(),
                timeout=self.timeout,
                verify=self.verify,
            )
        except requests.exceptions.RequestException as e:
            raise GatewayError(f"HTTP error contacting MAAS during {operation}: {e}", operation=operation) from e
        if resp.status_code == 404:
            raise NotFoundError(f"{operation}: {path} not found", operation=operation, status_code=404)
        if resp.status_code >= 400:
            detail = (resp.text or "").strip()[:500]
            raise GatewayError(
                f"MAAS error during {operation} ({resp.status_code}): {detail}",
                operation=operation,
                status_code=resp.status_code,
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    # Machine lifecycle
    def get_node(self, system_id: str) -> Node:
        return _node_from_json(self._req("get_node", "GET", f"machines/{system_id}/"))

    def abort_node(self, system_id: str, comment: str) -> Node:
        data = self._req("abort", "POST", f"machines/{system_id}/", op="abort", data={"comment": comment})
        return _node_from_json(data or {"system_id": system_id})

    def release_node(self, system_id: str, params: ReleaseParams) -> Node:
        form: Dict[str, Any] = {
            "erase": _to_bool_str(params.erase),
            "secure_erase": _to_bool_str(params.secure_erase),
            "quick_erase": _to_bool_str(params.quick_erase),
            "force": _to_bool_str(params.force),
        }
        if params.comment:
            form["comment"] = params.comment
        data = self._req("release", "POST", f"machines/{system_id}/", op="release", data=form)
        return _node_from_json(data or {"system_id": system_id})

    # Interface links
    def get_interface(self, system_id: str, interface_id: int) -> NetworkInterface:
        data = self._req("get_interface", "GET", f"nodes/{system_id}/interfaces/{interface_id}/")
        iface = _interface_from_json(data)
        # Links carry no gateway flag; the machine lists its default gateway links.
        machine = self._req("get_interface", "GET", f"machines/{system_id}/") or {}
        gateway_links = _default_gateway_link_ids(machine)
        for link in iface.links:
            link.default_gateway = link.id in gateway_links
        return iface

    def link_subnet(self, system_id: str, interface_id: int, params: LinkParams) -> NetworkInterface:
        mode = LinkMode.parse(params.mode)
        form: Dict[str, Any] = {
            "subnet": params.subnet,
            "mode": mode.value.upper(),
            "default_gateway": _to_bool_str(params.default_gateway),
        }
        if mode == LinkMode.STATIC and params.ip_address:
            form["ip_address"] = params.ip_address
        data = self._req(
            "link_subnet", "POST", f"nodes/{system_id}/interfaces/{interface_id}/", op="link_subnet", data=form
        )
        return _interface_from_json(data)

    def unlink_subnet(self, system_id: str, interface_id: int, link_id: int) -> None:
        self._req(
            "unlink_subnet",
            "POST",
            f"nodes/{system_id}/interfaces/{interface_id}/",
            op="unlink_subnet",
            data={"id": link_id},
        )

    def set_default_gateway(self, system_id: str, interface_id: int, link_id: int) -> None:
        self._req(
            "set_default_gateway",
            "POST",
            f"nodes/{system_id}/interfaces/{interface_id}/",
            op="set_default_gateway",
            data={"link_id": link_id},
        )

    def clear_default_gateways(self, system_id: str) -> None:
        self._req("clear_default_gateways", "POST", f"machines/{system_id}/", op="clear_default_gateways")

    # Identifier resolution
    def find_node(self, ref: str) -> Node:
        """Resolve a machine by system ID, hostname or FQDN."""
        ref = str(ref).strip()
        items = self._req("list_machines", "GET", "machines/") or []
        for item in items:
            if ref in (item.get("system_id"), item.get("hostname"), item.get("fqdn")):
                return _node_from_json(item)
        raise NotFoundError(f"cannot find machine ({ref})", operation="find_node")

    def find_interface(self, system_id: str, ref: str) -> NetworkInterface:
        """Resolve an interface by ID, name or MAC address."""
        ref = str(ref).strip()
        items = self._req("list_interfaces", "GET", f"nodes/{system_id}/interfaces/") or []
        for item in items:
            if str(item.get("id")) == ref or item.get("name") == ref:
                return _interface_from_json(item)
            if (item.get("mac_address") or "").lower() == ref.lower():
                return _interface_from_json(item)
        raise NotFoundError(
            f"cannot find network interface ({ref}) on machine ({system_id})", operation="find_interface"
        )

    def find_subnet(self, ref: str) -> Subnet:
        """Resolve a subnet by ID or CIDR."""
        ref = str(ref).strip()
        items = self._req("list_subnets", "GET", "subnets/") or []
        for item in items:
            if str(item.get("id")) == ref or item.get("cidr") == ref:
                return _subnet_from_json(item)
        raise NotFoundError(f"cannot find subnet ({ref})", operation="find_subnet")
