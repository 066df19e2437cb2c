#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Link teardown module for the MAAS link agent.

Interfaces may only be unlinked from subnets when the machine they belong to is
in a state that allows it. The machine status decides the call sequence:

* machine gone: nothing to do
* New, Ready, Allocated, Broken: unlink directly
* Commissioning, Deploying, Releasing, Disk erasing, Entering/Exiting rescue
  mode, Testing: abort the running operation, release, then unlink
* failed states, Missing, Reserved, Deployed, Retired, Rescue mode: release,
  then unlink
* anything else: refuse
"""
import enum
import logging
from typing import Any

from link_agent.backend.base import LinkGateway, NodeLifecycleGateway, NotFoundError
from link_agent.models import ReleaseParams
from .classifier import StatusCategory, classify

logger = logging.getLogger("link-agent")

ABORT_COMMENT = "Link teardown requested for machine {system_id}. Aborting current operation..."


class UnsafeNodeStateError(Exception):
    """Raised when the machine status is not recognized and no safe action is known."""

    def __init__(self, system_id: str, status: Any):
        super().__init__(f"cannot unlink subnet from machine {system_id} in status {status!r}")
        self.system_id = system_id
        self.status = status


class TeardownAction(str, enum.Enum):
    SKIPPED = "skipped"
    UNLINK = "unlink"
    RELEASE_UNLINK = "release-unlink"
    ABORT_RELEASE_UNLINK = "abort-release-unlink"


class LinkTeardown:
    """Removes interface links with respect to the owning machine's lifecycle."""

    def __init__(self, nodes: NodeLifecycleGateway, links: LinkGateway):
        self.nodes = nodes
        self.links = links

    def unlink(self, system_id: str, interface_id: int, link_id: int) -> TeardownAction:
        """Remove link `link_id` from interface `interface_id` of machine `system_id`."""
        try:
            node = self.nodes.get_node(system_id)
        except NotFoundError:
            logger.info("Machine %s no longer exists, skipping unlink of link %s", system_id, link_id)
            return TeardownAction.SKIPPED

        category = classify(node.status)
        logger.info(
            "Unlinking link %s from interface %s of machine %s (status=%s, category=%s)",
            link_id,
            interface_id,
            system_id,
            node.status_name or node.status,
            category.value,
        )

        if category == StatusCategory.VALID:
            self._step("unlink_subnet", system_id, self.links.unlink_subnet, system_id, interface_id, link_id)
            return TeardownAction.UNLINK

        if category == StatusCategory.TRANSITIONAL:
            comment = ABORT_COMMENT.format(system_id=system_id)
            self._step("abort", system_id, self.nodes.abort_node, system_id, comment)
            self._step("release", system_id, self.nodes.release_node, system_id, ReleaseParams())
            self._step("unlink_subnet", system_id, self.links.unlink_subnet, system_id, interface_id, link_id)
            return TeardownAction.ABORT_RELEASE_UNLINK

        if category == StatusCategory.NON_TRANSITIONAL:
            self._step("release", system_id, self.nodes.release_node, system_id, ReleaseParams())
            self._step("unlink_subnet", system_id, self.links.unlink_subnet, system_id, interface_id, link_id)
            return TeardownAction.RELEASE_UNLINK

        logger.error("Refusing to unlink link %s: machine %s has unknown status %r", link_id, system_id, node.status)
        raise UnsafeNodeStateError(system_id, node.status)

    def _step(self, name: str, system_id: str, func, *args):
        """Run one gateway call; log the failing step and re-raise the original error."""
        try:
            return func(*args)
        except Exception as e:
            logger.error("Teardown step '%s' failed for machine %s: %s", name, system_id, e)
            raise
