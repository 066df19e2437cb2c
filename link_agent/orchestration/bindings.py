#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Link binding module for the MAAS link agent.
This module handles link create, read, update and delete operations.
"""
import logging

from link_agent.backend.base import GatewayError, LinkGateway, NotFoundError
from link_agent.models import Link, LinkParams
from .teardown import LinkTeardown

logger = logging.getLogger("link-agent")


class LinkNotFoundError(NotFoundError):
    """Raised when a link is not present on the interface."""

    def __init__(self, system_id: str, interface_id: int, link_id: int):
        super().__init__(
            f"cannot find link ({link_id}) on the network interface ({interface_id}) from machine ({system_id})",
            operation="read_link",
        )
        self.system_id = system_id
        self.interface_id = interface_id
        self.link_id = link_id


class LinkBindingManager:
    """Manager for link lifecycle operations. An interface carries a single link."""

    def __init__(self, teardown: LinkTeardown, links: LinkGateway):
        self.teardown = teardown
        self.links = links

    def create(self, system_id: str, interface_id: int, params: LinkParams) -> Link:
        """Clear existing links on the interface, then link it to the subnet."""
        params.validate()
        iface = self.links.get_interface(system_id, interface_id)
        for link in iface.links:
            logger.info("Clearing existing link %s on interface %s of machine %s", link.id, interface_id, system_id)
            self.teardown.unlink(system_id, interface_id, link.id)
        iface = self.links.link_subnet(system_id, interface_id, params)
        if not iface.links:
            raise GatewayError(
                f"link_subnet returned no links for interface ({interface_id}) of machine ({system_id})",
                operation="link_subnet",
            )
        link = iface.links[0]
        logger.info(
            "Created link %s (mode=%s) on interface %s of machine %s", link.id, link.mode.name, interface_id, system_id
        )
        return link

    def read(self, system_id: str, interface_id: int, link_id: int) -> Link:
        iface = self.links.get_interface(system_id, interface_id)
        for link in iface.links:
            if link.id == link_id:
                return link
        raise LinkNotFoundError(system_id, interface_id, link_id)

    def update(self, system_id: str, interface_id: int, link_id: int, default_gateway: bool) -> None:
        """Apply the default gateway flag. The flag is first cleared on every interface of the machine."""
        self.links.clear_default_gateways(system_id)
        if default_gateway:
            self.links.set_default_gateway(system_id, interface_id, link_id)
            logger.info("Set link %s as default gateway of machine %s", link_id, system_id)

    def delete(self, system_id: str, interface_id: int, link_id: int):
        return self.teardown.unlink(system_id, interface_id, link_id)
