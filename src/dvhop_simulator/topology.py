import math
import random
import ipaddress
from typing import List, Tuple
from dvhop_simulator.nodes.node import Interface, Node
from dvhop_simulator.utils import logging

BEACON_FRACTIONS = (0.125, 0.25, 0.5)

def grid_position(index: int, step: float, grid_width: int) -> Tuple[float, float]:
    # Row-first layout starting at the origin
    return ((index % grid_width) * step, (index // grid_width) * step)

def build_grid(size: int, step: float, grid_width: int, network: str, channel, metrics=None) -> List[Node]:
    subnet = ipaddress.IPv4Network(network)
    hosts = subnet.hosts()

    nodes = []
    for i in range(size):
        try:
            address = next(hosts)
        except StopIteration:
            raise ValueError(f"Network {network} has fewer than {size} host addresses")
        node = Node(
            node_id=i,
            channel=channel,
            position=grid_position(i, step, grid_width),
            interfaces=[Interface(index=0, local=address, network=subnet)],
            metrics=metrics,
        )
        nodes.append(node)

    logging.log_info(f"Created {size} nodes {step} m apart, {grid_width} per row")
    return nodes

def assign_beacons(nodes: List[Node], fraction: float) -> List[Node]:
    """Pick `fraction` of the nodes at random and turn them into beacons at their grid position."""
    count = max(1, math.floor(len(nodes) * fraction)) if nodes else 0
    beacons = random.sample(nodes, count)
    for node in beacons:
        node.set_is_beacon(True)
        node.set_true_position(*node.position)
        logging.log_info(f"Node {node.node_id} ({node.addresses[0]}) is a beacon at {node.position}")
    return beacons
