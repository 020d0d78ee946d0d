from itertools import combinations
from typing import List, Tuple
import numpy as np
from dvhop_simulator.protocols.distance_table import DistanceTable
from dvhop_simulator.protocols.errors import DegenerateGeometry, InsufficientBeacons
from dvhop_simulator.protocols.packet import NodeIdentity
from dvhop_simulator.protocols.trilateration import Point, trilaterate

MIN_BEACONS = 3

ESTIMATORS = ("closest_triple", "triple_average")


def select_anchors(table: DistanceTable, count: int = MIN_BEACONS) -> List[NodeIdentity]:
    # Fewest hops first, ties broken by address
    ranked = sorted(table.known_beacons(), key=lambda beacon: (table.hops_to(beacon), beacon))
    return ranked[:count]

def _anchor(table: DistanceTable, beacon: NodeIdentity, hop_unit_distance: float) -> Tuple[Point, float]:
    return table.position_of(beacon), table.hops_to(beacon) * hop_unit_distance

def estimate_position(
    table: DistanceTable,
    hop_unit_distance: float,
    strategy: str = "closest_triple",
) -> Point:
    """
    Turn the distance table into a position fix.

    Ranges are hop counts scaled by `hop_unit_distance`. `closest_triple`
    trilaterates the three nearest beacons only; `triple_average` averages
    the fix of every non-degenerate triple of known beacons.
    """
    if len(table) < MIN_BEACONS:
        raise InsufficientBeacons(f"Need {MIN_BEACONS} beacons, know {len(table)}")

    if strategy == "closest_triple":
        anchors = [_anchor(table, b, hop_unit_distance) for b in select_anchors(table)]
        (p1, r1), (p2, r2), (p3, r3) = anchors
        return trilaterate(p1, p2, p3, r1, r2, r3)

    if strategy == "triple_average":
        fixes = []
        for triple in combinations(table.known_beacons(), MIN_BEACONS):
            (p1, r1), (p2, r2), (p3, r3) = [_anchor(table, b, hop_unit_distance) for b in triple]
            try:
                fixes.append(trilaterate(p1, p2, p3, r1, r2, r3))
            except DegenerateGeometry:
                continue
        if not fixes:
            raise DegenerateGeometry("Every beacon triple is collinear")
        mean = np.mean(np.array(fixes), axis=0)
        return (float(mean[0]), float(mean[1]))

    raise ValueError(f"Unknown estimator: {strategy}")
