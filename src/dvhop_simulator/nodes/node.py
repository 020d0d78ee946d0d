import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple
from dvhop_simulator.config.config_handler import ConfigHandler
from dvhop_simulator.core.events import EventType
from dvhop_simulator.protocols.distance_table import DistanceTable
from dvhop_simulator.protocols.errors import DecodeError, EstimationError, NoInterfacesConfigured, NoRouteToHost
from dvhop_simulator.protocols.hello_timer import HelloTimer
from dvhop_simulator.protocols.localization import MIN_BEACONS, estimate_position
from dvhop_simulator.protocols.packet import LIMITED_BROADCAST, U16_MAX, FloodingPacket, NodeIdentity, decode, encode
from dvhop_simulator.utils import logging

Point = Tuple[float, float]

class Role(Enum):
    UNKNOWN = 0
    BEACON = 1

@dataclass
class Interface:
    index: int
    local: NodeIdentity
    network: ipaddress.IPv4Network

    @property
    def broadcast(self) -> NodeIdentity:
        # All-hosts broadcast on /32 addresses, subnet-directed otherwise
        if self.network.prefixlen == 32:
            return LIMITED_BROADCAST
        return self.network.broadcast_address

@dataclass
class NodeState:
    role: Role = Role.UNKNOWN
    true_position: Optional[Point] = None       # only meaningful for beacons
    estimated_position: Optional[Point] = None  # only meaningful for unknown nodes
    sequence_counter: int = 0

    @property
    def is_beacon(self) -> bool:
        return self.role is Role.BEACON

    def next_sequence_number(self) -> int:
        self.sequence_counter += 1
        return self.sequence_counter & U16_MAX


class Node:
    def __init__(
        self,
        node_id: int,
        channel,
        position: Point = (0.0, 0.0),
        interfaces: Optional[List[Interface]] = None,
        metrics = None
    ):
        cfg = ConfigHandler()

        self.node_id = node_id
        self.position = position  # ground truth, used by the channel and for evaluation only
        self.channel = channel
        self.metrics = metrics
        self.simulator = None
        self.running = False

        self.interfaces: List[Interface] = []
        self.state = NodeState()
        self.distance_table = DistanceTable()
        self.hello_timer = HelloTimer()

        self.hop_unit_distance = cfg.get('protocol', 'hop_unit_distance')
        self.estimator = cfg.get('protocol', 'estimator')

        for interface in interfaces or []:
            self.interface_up(interface)

    @property
    def addresses(self) -> List[NodeIdentity]:
        return [interface.local for interface in self.interfaces]

    @property
    def is_beacon(self) -> bool:
        return self.state.is_beacon

    # Role assignment (driver side)

    def set_is_beacon(self, is_beacon: bool):
        self.state.role = Role.BEACON if is_beacon else Role.UNKNOWN
        if is_beacon:
            self.state.estimated_position = None

    def set_true_position(self, x: float, y: float):
        self.state.true_position = (x, y)

    def reported_position(self) -> Optional[Point]:
        if self.is_beacon:
            return self.state.true_position
        return self.state.estimated_position

    # Attachment points

    def interface_up(self, interface: Interface):
        if interface.local.is_loopback:
            return
        if any(i.index == interface.index for i in self.interfaces):
            logging.log_warning(f"Node {self.node_id} already has interface {interface.index}, ignoring")
            return

        self.interfaces.append(interface)
        self.distance_table.owner = set(self.addresses)

        if self.running and not self.hello_timer.running:
            self._start_hello_timer(self.simulator.now)

    def interface_down(self, index: int):
        self.interfaces = [i for i in self.interfaces if i.index != index]
        self.distance_table.owner = set(self.addresses)

        if not self.interfaces:
            logging.log_info(f"Node {self.node_id} has no interfaces left, cancelling HELLO timer")
            self.hello_timer.cancel()

    def _interface(self, index: int) -> Optional[Interface]:
        return next((i for i in self.interfaces if i.index == index), None)

    # Route lookups

    def route_output(self, destination: NodeIdentity):
        if not self.interfaces:
            raise NoInterfacesConfigured(f"Node {self.node_id} has no interfaces")
        # Only localization control traffic is handled, no data-plane routes
        raise NoRouteToHost(f"Node {self.node_id} has no route to {destination}")

    def forward(self, payload: bytes, destination: NodeIdentity) -> bool:
        return False

    # Events

    def handle_event(self, event, sim_time: float):
        handlers = {
            EventType.NODE_START: self._handle_node_start,
            EventType.HELLO_TIMER: self._handle_hello_timer,
            EventType.SEND_PACKET: self._handle_send_packet,
            EventType.RECEPTION: self._handle_reception,
        }

        handler = handlers.get(event.event_type)
        if handler:
            handler(event, sim_time)
        else:
            logging.log_error(f"Node {self.node_id} received unhandled event: {event.event_type}")

    def _handle_node_start(self, event, sim_time: float):
        self.running = True
        if self.interfaces:
            self._start_hello_timer(sim_time)
        else:
            logging.log_warning(f"Node {self.node_id} started without interfaces")

    def _start_hello_timer(self, sim_time: float):
        generation = self.hello_timer.start()
        logging.log_info(f"Node {self.node_id} HELLO timer started (every {self.hello_timer.interval}s)")
        self.simulator.schedule_event(
            sim_time + self.hello_timer.interval, EventType.HELLO_TIMER, self, {"generation": generation}
        )

    def _handle_hello_timer(self, event, sim_time: float):
        generation = event.data.get("generation")
        if not self.hello_timer.is_current(generation):
            return

        self.send_hello(sim_time)

        self.simulator.schedule_event(
            sim_time + self.hello_timer.interval, EventType.HELLO_TIMER, self, {"generation": generation}
        )

    def build_hello_packets(self, interface: Interface) -> List[FloodingPacket]:
        packets = []
        # Stored hop count as is: the receiver adds the hop it just crossed
        for beacon, record in self.distance_table.items():
            packets.append(FloodingPacket(
                beacon_address=beacon,
                hop_count=record.hop_count,
                sequence_number=self.state.next_sequence_number(),
                x=record.position[0],
                y=record.position[1],
            ))

        if self.is_beacon and self.state.true_position is not None:
            packets.append(FloodingPacket(
                beacon_address=interface.local,
                hop_count=0,
                sequence_number=self.state.next_sequence_number(),
                x=self.state.true_position[0],
                y=self.state.true_position[1],
            ))
        return packets

    def send_hello(self, sim_time: float):
        generation = self.hello_timer.generation
        for interface in self.interfaces:
            for packet in self.build_hello_packets(interface):
                self.simulator.schedule_event(
                    sim_time + self.hello_timer.next_jitter(),
                    EventType.SEND_PACKET,
                    self,
                    {
                        "generation": generation,
                        "interface": interface.index,
                        "destination": interface.broadcast,
                        "payload": encode(packet),
                    }
                )

    def _handle_send_packet(self, event, sim_time: float):
        # Sends scheduled under a cancelled timer are dropped
        if not self.hello_timer.is_current(event.data.get("generation")):
            return
        interface = self._interface(event.data.get("interface"))
        if interface is None:
            return

        self.channel.broadcast(self, interface, event.data["destination"], event.data["payload"], sim_time)

    def _handle_reception(self, event, sim_time: float):
        self.receive(event.data.get("interface"), event.data.get("source"), event.data.get("payload", b""), sim_time)

    def receive(self, interface_index: int, source: NodeIdentity, payload: bytes, now: float) -> bool:
        """Apply one received flooding packet. Returns True when the distance table changed."""
        if self.metrics:
            self.metrics.log_received()

        try:
            packet = decode(payload)
        except DecodeError as e:
            logging.log_warning(f"Node {self.node_id} dropped packet from {source}: {e}")
            if self.metrics:
                self.metrics.log_decode_error()
            return False

        if packet.beacon_address in self.addresses:
            logging.log_debug(f"Node {self.node_id}: own address {packet.beacon_address}, not updating table")
            return False

        hops = packet.hop_count + 1
        if hops > U16_MAX:
            logging.log_warning(f"Node {self.node_id}: hop count overflow for {packet.beacon_address}, dropping")
            return False

        accepted = self.distance_table.record_update(packet.beacon_address, hops, packet.x, packet.y, now)
        if not accepted:
            return False

        logging.log_debug(f"Node {self.node_id}: new shortest path to {packet.beacon_address}, {hops} hops")
        if self.metrics:
            self.metrics.log_table_update()

        if not self.is_beacon and len(self.distance_table) >= MIN_BEACONS:
            self.update_estimate()
        return True

    def update_estimate(self) -> Optional[Point]:
        try:
            estimate = estimate_position(self.distance_table, self.hop_unit_distance, self.estimator)
        except EstimationError as e:
            logging.log_debug(f"Node {self.node_id} keeps previous estimate: {e}")
            if self.metrics:
                self.metrics.log_estimation_failure()
            return self.state.estimated_position

        self.state.estimated_position = estimate
        return estimate

    # Diagnostics

    def format_routing_table(self) -> str:
        lines = [f"Routing table for Node {self.node_id}:"]
        for beacon, record in self.distance_table.items():
            lines.append(
                f"Beacon: {beacon} - Hops: {record.hop_count}"
                f" - Position: ({record.position[0]}, {record.position[1]})"
            )
        return "\n".join(lines) + "\n"

    def format_distance_table(self) -> str:
        header = f"----------------- Node {self.node_id}-----------------\n"
        return header + self.distance_table.format()

    def __repr__(self):
        role = "beacon" if self.is_beacon else "unknown"
        return f"<Node id={self.node_id} addr={self.addresses} pos={self.position} {role} beacons={len(self.distance_table)}>"
