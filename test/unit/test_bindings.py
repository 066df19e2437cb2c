import pytest
from common.shared_utils import INTERFACE_ID, SUBNET_ID, SYSTEM_ID, call_names

from link_agent.backend import GatewayError, NotFoundError
from link_agent.models import Link, LinkMode, LinkParams, NetworkInterface, Node, NodeStatus
from link_agent.orchestration import LinkBindingManager, LinkNotFoundError, LinkTeardown, UnsafeNodeStateError


@pytest.fixture
def mock_bindings(mock_gateway):
    return LinkBindingManager(LinkTeardown(mock_gateway, mock_gateway), mock_gateway)


def test_create_replaces_existing_link_and_reads_back(gateway, bindings):
    params = LinkParams(subnet=SUBNET_ID, mode=LinkMode.STATIC, ip_address="10.0.0.5")
    link = bindings.create(SYSTEM_ID, INTERFACE_ID, params)
    assert link.mode == LinkMode.STATIC
    assert link.ip_address == "10.0.0.5"
    assert [c[0] for c in gateway.calls] == ["get_interface", "get_node", "unlink_subnet", "link_subnet"]
    assert gateway.calls[2] == ("unlink_subnet", SYSTEM_ID, INTERFACE_ID, 9)

    read = bindings.read(SYSTEM_ID, INTERFACE_ID, link.id)
    assert read.mode == LinkMode.STATIC
    assert read.ip_address == "10.0.0.5"
    assert read.subnet.cidr == "10.0.0.0/24"


def test_create_tears_down_every_existing_link(mock_gateway, mock_bindings):
    mock_gateway.get_interface.return_value = NetworkInterface(
        id=INTERFACE_ID, links=[Link(id=i, mode=LinkMode.AUTO) for i in (1, 2, 3)]
    )
    mock_gateway.get_node.return_value = Node(system_id=SYSTEM_ID, status=NodeStatus.READY)
    mock_gateway.link_subnet.return_value = NetworkInterface(id=INTERFACE_ID, links=[Link(id=4, mode=LinkMode.DHCP)])

    link = mock_bindings.create(SYSTEM_ID, INTERFACE_ID, LinkParams(subnet=SUBNET_ID, mode="dhcp"))

    assert link.id == 4
    assert call_names(mock_gateway) == [
        "get_interface",
        "get_node",
        "unlink_subnet",
        "get_node",
        "unlink_subnet",
        "get_node",
        "unlink_subnet",
        "link_subnet",
    ]
    assert [c.args[2] for c in mock_gateway.unlink_subnet.call_args_list] == [1, 2, 3]


def test_create_aborts_when_teardown_fails(mock_gateway, mock_bindings):
    mock_gateway.get_interface.return_value = NetworkInterface(
        id=INTERFACE_ID, links=[Link(id=1, mode=LinkMode.AUTO), Link(id=2, mode=LinkMode.AUTO)]
    )
    mock_gateway.get_node.return_value = Node(system_id=SYSTEM_ID, status=NodeStatus.READY)
    mock_gateway.unlink_subnet.side_effect = GatewayError("busy", operation="unlink_subnet", status_code=409)

    with pytest.raises(GatewayError):
        mock_bindings.create(SYSTEM_ID, INTERFACE_ID, LinkParams(subnet=SUBNET_ID))
    mock_gateway.link_subnet.assert_not_called()
    assert mock_gateway.unlink_subnet.call_count == 1


def test_create_refuses_unknown_status(mock_gateway, mock_bindings):
    mock_gateway.get_interface.return_value = NetworkInterface(id=INTERFACE_ID, links=[Link(id=1, mode=LinkMode.AUTO)])
    mock_gateway.get_node.return_value = Node(system_id=SYSTEM_ID, status=42)
    with pytest.raises(UnsafeNodeStateError):
        mock_bindings.create(SYSTEM_ID, INTERFACE_ID, LinkParams(subnet=SUBNET_ID))
    mock_gateway.link_subnet.assert_not_called()


def test_create_without_existing_links_only_links(mock_gateway, mock_bindings):
    mock_gateway.get_interface.return_value = NetworkInterface(id=INTERFACE_ID, links=[])
    mock_gateway.link_subnet.return_value = NetworkInterface(id=INTERFACE_ID, links=[Link(id=7, mode=LinkMode.AUTO)])
    mock_bindings.create(SYSTEM_ID, INTERFACE_ID, LinkParams(subnet=SUBNET_ID))
    assert call_names(mock_gateway) == ["get_interface", "link_subnet"]


def test_create_empty_response_is_an_error(mock_gateway, mock_bindings):
    mock_gateway.get_interface.return_value = NetworkInterface(id=INTERFACE_ID, links=[])
    mock_gateway.link_subnet.return_value = NetworkInterface(id=INTERFACE_ID, links=[])
    with pytest.raises(GatewayError) as exc_info:
        mock_bindings.create(SYSTEM_ID, INTERFACE_ID, LinkParams(subnet=SUBNET_ID))
    assert exc_info.value.operation == "link_subnet"


@pytest.mark.parametrize(
    "params",
    [
        LinkParams(subnet=SUBNET_ID, mode=LinkMode.STATIC),
        LinkParams(subnet=SUBNET_ID, mode=LinkMode.STATIC, ip_address="not-an-ip"),
        LinkParams(subnet=SUBNET_ID, mode=LinkMode.DHCP, default_gateway=True),
        LinkParams(subnet=SUBNET_ID, mode="bogus"),
    ],
)
def test_create_rejects_invalid_params_before_any_call(mock_gateway, mock_bindings, params):
    with pytest.raises(ValueError):
        mock_bindings.create(SYSTEM_ID, INTERFACE_ID, params)
    assert mock_gateway.method_calls == []


def test_read_missing_link(bindings):
    with pytest.raises(LinkNotFoundError) as exc_info:
        bindings.read(SYSTEM_ID, INTERFACE_ID, 1234)
    msg = str(exc_info.value)
    assert "1234" in msg and str(INTERFACE_ID) in msg and SYSTEM_ID in msg
    assert isinstance(exc_info.value, NotFoundError)


def test_read_missing_interface_surfaces(bindings):
    with pytest.raises(NotFoundError):
        bindings.read(SYSTEM_ID, 999, 9)


def test_update_sets_default_gateway_after_clearing(mock_gateway, mock_bindings):
    mock_bindings.update(SYSTEM_ID, INTERFACE_ID, 9, True)
    assert call_names(mock_gateway) == ["clear_default_gateways", "set_default_gateway"]
    mock_gateway.set_default_gateway.assert_called_once_with(SYSTEM_ID, INTERFACE_ID, 9)


def test_update_without_default_gateway_only_clears(mock_gateway, mock_bindings):
    mock_bindings.update(SYSTEM_ID, INTERFACE_ID, 9, False)
    assert call_names(mock_gateway) == ["clear_default_gateways"]


def test_update_keeps_single_default_gateway_per_node(gateway, bindings):
    gateway.add_interface(SYSTEM_ID, 6, name="eth1")
    other = gateway.add_link(SYSTEM_ID, 6, LinkParams(subnet=SUBNET_ID, mode=LinkMode.AUTO, default_gateway=True))

    bindings.update(SYSTEM_ID, INTERFACE_ID, 9, True)

    assert bindings.read(SYSTEM_ID, INTERFACE_ID, 9).default_gateway is True
    assert bindings.read(SYSTEM_ID, 6, other.id).default_gateway is False


def test_delete_delegates_to_teardown(gateway, bindings):
    gateway.nodes[SYSTEM_ID].status = NodeStatus.DEPLOYED
    bindings.delete(SYSTEM_ID, INTERFACE_ID, 9)
    assert [c[0] for c in gateway.calls] == ["get_node", "release", "unlink_subnet"]


def test_delete_on_missing_node_is_noop(gateway, bindings):
    del gateway.nodes[SYSTEM_ID]
    bindings.delete(SYSTEM_ID, INTERFACE_ID, 9)
    assert [c[0] for c in gateway.calls] == ["get_node"]
