#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CLI commands module for the MAAS link agent.
This module contains the command-line interface commands for link operations.

Each command reads a JSON spec file. `node` is a system ID, hostname or FQDN,
`network_interface` an ID, name or MAC address and `subnet` an ID or CIDR:

    {
        "node": "abc123",
        "network_interface": "eth0",
        "subnet": "10.0.0.0/24",
        "mode": "STATIC",
        "ip_address": "10.0.0.5",
        "default_gateway": false,
        "link_id": 7
    }
"""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from link_agent.api.handlers import link_to_dict
from link_agent.backend import GatewayError, get_backend_by_driver
from link_agent.config import ConfigManager
from link_agent.models import LinkParams
from link_agent.orchestration import LinkBindingManager, LinkTeardown, UnsafeNodeStateError, classify
from link_agent.orchestration.classifier import parse_status
from link_agent.utils.validation import fail, read_json, resolve_system_id, succeed

logger = logging.getLogger("link-agent")


class CLICommands:
    """CLI commands handler."""

    def __init__(self, agent_cfg: Optional[Dict[str, Any]] = None, gateway: Optional[Any] = None):
        cfg = agent_cfg or {}
        if not cfg and gateway is None:
            cfg = ConfigManager().load_agent_config()
        self.agent_cfg = cfg
        if gateway is None:
            gateway = get_backend_by_driver(cfg.get("backend", {}).get("driver", "maas"), cfg)
        self.gateway = gateway
        self.bindings = LinkBindingManager(LinkTeardown(gateway, gateway), gateway)

    def create(self, spec_file: Path):
        """Replace the interface's links with a new subnet link."""
        try:
            obj = read_json(spec_file)
            system_id = self._system_id(obj)
            interface_id = self._interface_id(system_id, obj)
            params = LinkParams(
                subnet=self._subnet_id(obj),
                mode=obj.get("mode", "AUTO"),
                default_gateway=bool(obj.get("default_gateway", False)),
                ip_address=obj.get("ip_address", "") or "",
            )
            link = self.bindings.create(system_id, interface_id, params)
        except (ValueError, GatewayError, UnsafeNodeStateError) as e:
            fail(f"Link creation failed: {e}")
        succeed({"status": "success", "interface_id": interface_id, "link": link_to_dict(link)})

    def read(self, spec_file: Path):
        """Show a link."""
        try:
            obj = read_json(spec_file)
            system_id = self._system_id(obj)
            interface_id = self._interface_id(system_id, obj)
            link = self.bindings.read(system_id, interface_id, self._link_id(obj))
        except (ValueError, GatewayError) as e:
            fail(f"Link read failed: {e}")
        succeed({"status": "success", "interface_id": interface_id, "link": link_to_dict(link)})

    def update(self, spec_file: Path):
        """Apply the default_gateway flag of the spec to the link."""
        try:
            obj = read_json(spec_file)
            system_id = self._system_id(obj)
            interface_id = self._interface_id(system_id, obj)
            link_id = self._link_id(obj)
            self.bindings.update(system_id, interface_id, link_id, bool(obj.get("default_gateway", False)))
        except (ValueError, GatewayError) as e:
            fail(f"Link update failed: {e}")
        succeed({"status": "success", "message": f"Link {link_id} updated"})

    def delete(self, spec_file: Path):
        """Remove a link, handling the machine's lifecycle state."""
        try:
            obj = read_json(spec_file)
            system_id = self._system_id(obj)
            interface_id = self._interface_id(system_id, obj)
            action = self.bindings.delete(system_id, interface_id, self._link_id(obj))
        except (ValueError, GatewayError, UnsafeNodeStateError) as e:
            fail(f"Link delete failed: {e}")
        succeed({"status": "success", "action": action.value})

    @staticmethod
    def classify(status: str):
        """Show the teardown category of a machine status."""
        member = parse_status(status)
        succeed(
            {
                "status": "success",
                "node_status": member.name if member is not None else status,
                "category": classify(status).value,
            }
        )

    # Helper methods
    def _system_id(self, obj: Dict[str, Any]) -> str:
        return resolve_system_id(self.gateway, obj.get("node") or obj.get("machine") or "")

    def _interface_id(self, system_id: str, obj: Dict[str, Any]) -> int:
        ref = str(obj.get("network_interface", "")).strip()
        if not ref:
            raise ValueError("network_interface is required")
        if ref.isdigit():
            return int(ref)
        finder = getattr(self.gateway, "find_interface", None)
        if finder is None:
            raise ValueError(f"network_interface must be a numeric ID, got '{ref}'")
        return finder(system_id, ref).id

    def _subnet_id(self, obj: Dict[str, Any]) -> int:
        ref = str(obj.get("subnet", "")).strip()
        if not ref:
            raise ValueError("subnet is required")
        if ref.isdigit():
            return int(ref)
        finder = getattr(self.gateway, "find_subnet", None)
        if finder is None:
            raise ValueError(f"subnet must be a numeric ID, got '{ref}'")
        return finder(ref).id

    def _link_id(self, obj: Dict[str, Any]) -> int:
        try:
            return int(obj["link_id"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"link_id is required and must be an integer: {e}") from e


def build_cli(commands_factory=None) -> typer.Typer:
    """Build the typer application. `commands_factory` returns a CLICommands instance."""
    factory = commands_factory or CLICommands
    cli = typer.Typer()

    @cli.command()
    def create(spec_file: Path):
        """Replace the interface's links with a new subnet link."""
        factory().create(spec_file)

    @cli.command()
    def read(spec_file: Path):
        """Show a link."""
        factory().read(spec_file)

    @cli.command()
    def update(spec_file: Path):
        """Apply the default gateway flag to a link."""
        factory().update(spec_file)

    @cli.command()
    def delete(spec_file: Path):
        """Remove a link."""
        factory().delete(spec_file)

    @cli.command(name="classify")
    def classify_cmd(status: str):
        """Show the teardown category of a machine status."""
        CLICommands.classify(status)

    return cli

