import ipaddress
import pytest
from dvhop_simulator.core.channel import Channel
from dvhop_simulator.core.events import EventType
from dvhop_simulator.core.simulator import Event
from dvhop_simulator.nodes.node import Interface, Node
from dvhop_simulator.utils.metrics import Metrics

SUBNET = ipaddress.IPv4Network("10.0.0.0/24")
OTHER_SUBNET = ipaddress.IPv4Network("192.168.1.0/24")


class RecordingSimulator:
    def __init__(self):
        self.events = []

    def schedule_event(self, time, event_type, target_obj, data=None):
        event = Event(time, event_type, target_obj, data)
        self.events.append(event)
        return event


@pytest.fixture
def line():
    """Three nodes 50 m apart plus one far away"""
    metrics = Metrics()
    channel = Channel(metrics=metrics, ideal_channel=True)
    positions = [(0.0, 0.0), (50.0, 0.0), (100.0, 0.0), (1000.0, 0.0)]
    nodes = [
        Node(i, channel, position=p, interfaces=[Interface(0, SUBNET[i + 1], SUBNET)], metrics=metrics)
        for i, p in enumerate(positions)
    ]
    channel.set_nodes(nodes)
    channel.simulator = RecordingSimulator()
    return channel, nodes


class TestChannel:
    """Broadcast delivery"""

    def test_in_range_is_inclusive(self):
        channel = Channel()
        assert channel.in_range((0.0, 0.0), (60.0, 0.0))
        assert not channel.in_range((0.0, 0.0), (60.1, 0.0))

    def test_neighbors(self, line):
        channel, nodes = line
        assert channel.neighbors_of(nodes[1]) == [nodes[0], nodes[2]]
        assert channel.neighbors_of(nodes[3]) == []

    def test_broadcast_reaches_neighbors_only(self, line):
        channel, nodes = line
        sender = nodes[1]

        assert channel.broadcast(sender, sender.interfaces[0], SUBNET.broadcast_address, b"x" * 24, 1.0)

        events = channel.simulator.events
        assert [e.target_obj for e in events] == [nodes[0], nodes[2]]
        assert all(e.event_type == EventType.RECEPTION for e in events)
        assert all(e.time > 1.0 for e in events)
        assert events[0].data["source"] == sender.interfaces[0].local
        assert events[0].data["interface"] == 0
        assert channel.metrics.packets_sent == 1

    def test_isolated_sender(self, line):
        channel, nodes = line
        assert not channel.broadcast(nodes[3], nodes[3].interfaces[0], SUBNET.broadcast_address, b"x" * 24, 1.0)
        assert channel.simulator.events == []

    def test_foreign_subnet_is_not_delivered(self, line):
        channel, nodes = line
        sender = nodes[1]
        assert not channel.broadcast(sender, sender.interfaces[0], OTHER_SUBNET.broadcast_address, b"x" * 24, 1.0)

    def test_limited_broadcast_reaches_any_subnet(self, line):
        channel, nodes = line
        sender = nodes[1]
        channel.broadcast(sender, sender.interfaces[0], ipaddress.IPv4Address("255.255.255.255"), b"x" * 24, 1.0)
        assert len(channel.simulator.events) == 2

    def test_lossy_channel_counts_losses(self, line, isolated_config):
        isolated_config.set('network', 'delivery_prob', 0.0)
        metrics = Metrics()
        channel = Channel(metrics=metrics, ideal_channel=False)
        _, nodes = line
        channel.set_nodes(nodes)
        channel.simulator = RecordingSimulator()

        channel.broadcast(nodes[1], nodes[1].interfaces[0], SUBNET.broadcast_address, b"x" * 24, 1.0)

        assert channel.simulator.events == []
        assert metrics.packets_lost == 2
