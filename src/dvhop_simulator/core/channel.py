import math
import random
import ipaddress
from typing import Tuple
from dvhop_simulator.core.events import EventType
from dvhop_simulator.config.config_handler import ConfigHandler
from dvhop_simulator.protocols.packet import LIMITED_BROADCAST
from dvhop_simulator.utils import logging

class Channel:
    """
    Shared broadcast medium. Best effort only: packets may be lost on a
    lossy channel, and ordering across senders is whatever the event
    clock produces.
    """

    def __init__(self, metrics = None, ideal_channel = None):
        cfg = ConfigHandler()

        self.metrics = metrics
        self.nodes = []
        self.simulator = None

        self.ideal_channel = ideal_channel if ideal_channel is not None else cfg.get('simulation', 'ideal_channel')
        self.bit_rate = cfg.get('network', 'bit_rate')
        self.speed_of_light = cfg.get('network', 'speed_of_light')
        self.comm_range = cfg.get('network', 'communication_range')
        self.delivery_prob = cfg.get('network', 'delivery_prob')
        self.port = cfg.get('network', 'port')

    def set_nodes(self, nodes):
        self.nodes = nodes

    def broadcast(self, sender, interface, destination, payload: bytes, sim_time: float) -> bool:
        """Send `payload` from `sender` on `interface`. Returns False when nobody can hear it."""
        logging.log_debug(f"Broadcasting {len(payload)} bytes from {interface.local} to {destination}:{self.port} at {sim_time:.3f}s")

        if self.metrics:
            self.metrics.log_sent()

        transmission_time = len(payload) * 8 / self.bit_rate
        end_time = sim_time + transmission_time

        receivers = 0
        for receiver in self.nodes:
            if receiver is sender:
                continue
            if not self.in_range(sender.position, receiver.position):
                continue
            attachment = self._receiving_interface(receiver, destination)
            if attachment is None:
                continue

            receivers += 1
            if not self.ideal_channel and random.random() >= self.delivery_prob:
                if self.metrics:
                    self.metrics.log_lost(1)
                continue

            distance = math.dist(sender.position, receiver.position)
            reception_time = end_time + distance / self.speed_of_light
            self.simulator.schedule_event(
                reception_time,
                EventType.RECEPTION,
                receiver,
                {"interface": attachment.index, "source": interface.local, "payload": payload}
            )

        return receivers > 0

    def _receiving_interface(self, receiver, destination: ipaddress.IPv4Address):
        for attachment in receiver.interfaces:
            if destination == LIMITED_BROADCAST or destination in attachment.network:
                return attachment
        return None

    def in_range(self, pos1: Tuple[float, float], pos2: Tuple[float, float]) -> bool:
        return math.dist(pos1, pos2) <= self.comm_range

    def neighbors_of(self, node) -> list:
        return [other for other in self.nodes if other is not node and self.in_range(node.position, other.position)]

    def __repr__(self):
        return f"<Channel nodes={len(self.nodes)} range={self.comm_range} ideal={self.ideal_channel}>"
