#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
API handlers module for the MAAS link agent.
This module contains the API endpoint handlers for link operations.
"""
import dataclasses
import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException

from link_agent.backend import GatewayError, NotFoundError, get_backend_by_driver
from link_agent.models import Link, LinkCreateRequest, LinkParams, LinkUpdateRequest
from link_agent.orchestration import LinkBindingManager, LinkTeardown, UnsafeNodeStateError, classify
from link_agent.orchestration.classifier import parse_status
from link_agent.utils.validation import resolve_system_id

logger = logging.getLogger("link-agent")

VERSION = "1.0.0"


def link_to_dict(link: Link) -> Dict[str, Any]:
    """Serialize a Link for JSON responses."""
    data = dataclasses.asdict(link)
    data["mode"] = link.mode.name
    return data


class APIHandlers:

    def __init__(self, agent_cfg: Dict[str, Any], gateway: Optional[Any] = None):
        self.agent_cfg = agent_cfg
        if gateway is None:
            driver = agent_cfg.get("backend", {}).get("driver", "maas")
            gateway = get_backend_by_driver(driver, agent_cfg)
        self.gateway = gateway
        self.teardown = LinkTeardown(gateway, gateway)
        self.bindings = LinkBindingManager(self.teardown, gateway)

    def healthz(self) -> Dict[str, Any]:
        return {"status": "ok"}

    def v1_version(self) -> Dict[str, Any]:
        return {"status": "success", "version": VERSION}

    def v1_classify(self, status: str) -> Dict[str, Any]:
        member = parse_status(status)
        return {
            "status": "success",
            "node_status": member.name if member is not None else status,
            "category": classify(status).value,
        }

    def v1_link_create(self, system_id: str, interface: str, req: LinkCreateRequest) -> Dict[str, Any]:
        def run(system_id):
            interface_id = self._resolve_interface(system_id, interface)
            params = LinkParams(
                subnet=self._resolve_subnet(str(req.subnet)),
                mode=req.mode,
                default_gateway=req.default_gateway,
                ip_address=req.ip_address or "",
            )
            link = self.bindings.create(system_id, interface_id, params)
            return {"status": "success", "interface_id": interface_id, "link": link_to_dict(link)}

        return self._call("link create", system_id, run)

    def v1_link_read(self, system_id: str, interface: str, link_id: int) -> Dict[str, Any]:
        def run(system_id):
            interface_id = self._resolve_interface(system_id, interface)
            link = self.bindings.read(system_id, interface_id, link_id)
            return {"status": "success", "interface_id": interface_id, "link": link_to_dict(link)}

        return self._call("link read", system_id, run)

    def v1_link_update(self, system_id: str, interface: str, link_id: int, req: LinkUpdateRequest) -> Dict[str, Any]:
        def run(system_id):
            interface_id = self._resolve_interface(system_id, interface)
            self.bindings.update(system_id, interface_id, link_id, req.default_gateway)
            link = self.bindings.read(system_id, interface_id, link_id)
            return {"status": "success", "interface_id": interface_id, "link": link_to_dict(link)}

        return self._call("link update", system_id, run)

    def v1_link_delete(self, system_id: str, interface: str, link_id: int) -> Dict[str, Any]:
        def run(system_id):
            interface_id = self._resolve_interface(system_id, interface)
            action = self.bindings.delete(system_id, interface_id, link_id)
            return {"status": "success", "action": action.value}

        return self._call("link delete", system_id, run)

    # Helper methods
    def _call(self, what: str, node_ref: str, func):
        """Resolve the machine, run a handler body and map core errors to HTTP errors."""
        try:
            return func(resolve_system_id(self.gateway, node_ref))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except UnsafeNodeStateError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except GatewayError as e:
            logger.error("%s failed for machine %s: %s", what, node_ref, e)
            raise HTTPException(status_code=502, detail=f"{what} failed: {e}")

    def _resolve_interface(self, system_id: str, ref: str) -> int:
        """Interface ID from an ID, name or MAC address."""
        if str(ref).isdigit():
            return int(ref)
        finder = getattr(self.gateway, "find_interface", None)
        if finder is None:
            raise ValueError(f"Network interface must be a numeric ID, got '{ref}'")
        return finder(system_id, ref).id

    def _resolve_subnet(self, ref: str) -> int:
        """Subnet ID from an ID or CIDR."""
        if str(ref).isdigit():
            return int(ref)
        finder = getattr(self.gateway, "find_subnet", None)
        if finder is None:
            raise ValueError(f"Subnet must be a numeric ID, got '{ref}'")
        return finder(ref).id
