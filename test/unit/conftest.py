from unittest.mock import MagicMock

import pytest
from common.shared_utils import INTERFACE_ID, SUBNET_ID, SYSTEM_ID

from link_agent.backend import InMemoryGateway
from link_agent.models import LinkMode, LinkParams, NodeStatus
from link_agent.orchestration import LinkBindingManager, LinkTeardown


@pytest.fixture
def gateway():
    gw = InMemoryGateway()
    gw.add_node(SYSTEM_ID, status=NodeStatus.READY, hostname="node-1")
    gw.add_subnet(SUBNET_ID, cidr="10.0.0.0/24")
    gw.add_interface(SYSTEM_ID, INTERFACE_ID, name="eth0", mac_address="52:54:00:12:34:56")
    gw.add_link(SYSTEM_ID, INTERFACE_ID, LinkParams(subnet=SUBNET_ID, mode=LinkMode.DHCP), link_id=9)
    return gw


@pytest.fixture
def bindings(gateway):
    return LinkBindingManager(LinkTeardown(gateway, gateway), gateway)


@pytest.fixture
def mock_gateway():
    """A single mock standing in for both gateways, so method_calls keeps the global order."""
    return MagicMock()
