import pytest

from link_agent.backend import GatewayError, InMemoryGateway, NotFoundError, get_backend_by_driver
from link_agent.models import LinkMode, LinkParams, NodeStatus, ReleaseParams
from link_agent.orchestration import StatusCategory, classify


def test_driver_registry():
    assert isinstance(get_backend_by_driver("memory"), InMemoryGateway)
    assert isinstance(get_backend_by_driver(" MEMORY "), InMemoryGateway)
    with pytest.raises(GatewayError):
        get_backend_by_driver("ovs")


def test_seeded_from_config():
    gw = get_backend_by_driver(
        "memory",
        {
            "memory": {
                "subnets": [{"id": 1, "cidr": "10.0.0.0/24"}],
                "nodes": [
                    {
                        "system_id": "abc123",
                        "status": "Deployed",
                        "interfaces": [{"id": 5, "name": "eth0", "links": [{"id": 9, "subnet": 1, "mode": "DHCP"}]}],
                    }
                ],
            }
        },
    )
    node = gw.get_node("abc123")
    assert classify(node.status) == StatusCategory.NON_TRANSITIONAL
    iface = gw.find_interface("abc123", "eth0")
    assert iface.links[0].id == 9
    assert iface.links[0].mode == LinkMode.DHCP
    assert gw.find_subnet("10.0.0.0/24").id == 1


def test_missing_objects(gateway):
    with pytest.raises(NotFoundError):
        gateway.get_node("zzz999")
    with pytest.raises(NotFoundError):
        gateway.get_interface("abc123", 77)


def test_release_returns_node_to_ready(gateway):
    gateway.nodes["abc123"].status = NodeStatus.FAILED_DEPLOYMENT
    assert gateway.release_node("abc123", ReleaseParams()).status == NodeStatus.READY


def test_fail_next_is_one_shot(gateway):
    gateway.fail_next("get_node", GatewayError("flaky", operation="get_node"))
    with pytest.raises(GatewayError):
        gateway.get_node("abc123")
    assert gateway.get_node("abc123").system_id == "abc123"


def test_seeded_link_id_from_string():
    gw = InMemoryGateway.from_config(
        {
            "subnets": [{"id": 1, "cidr": "10.0.0.0/24"}],
            "nodes": [
                {
                    "system_id": "abc123",
                    "interfaces": [{"id": 5, "links": [{"id": "9", "subnet": 1, "mode": "DHCP"}]}],
                }
            ],
        }
    )
    assert gw.get_interface("abc123", 5).links[0].id == 9
    created = gw.link_subnet("abc123", 5, LinkParams(subnet=1, mode=LinkMode.DHCP))
    assert created.links[-1].id == 10


def test_find_node(gateway):
    assert gateway.find_node("abc123").system_id == "abc123"
    assert gateway.find_node("node-1").system_id == "abc123"
    with pytest.raises(NotFoundError):
        gateway.find_node("node-9")
