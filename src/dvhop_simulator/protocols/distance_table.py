from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
from dvhop_simulator.protocols.packet import NodeIdentity

@dataclass
class BeaconRecord:
    hop_count: int
    position: Tuple[float, float]
    last_update: float  # in simulation time

    def __str__(self):
        return f"{self.hop_count}\t({self.position[0]},{self.position[1]})\t{self.last_update}"


class DistanceTable:
    """
    Best known hop distance and position for every beacon a node heard of.

    Updates follow the shortest-path-first rule: an entry is written when
    the beacon is new or the candidate hop count is strictly smaller than
    the stored one. Anything else is discarded without touching the
    timestamp, so duplicated or late packets leave the table unchanged.
    """

    def __init__(self, owner: Iterable[NodeIdentity] = ()):
        self._table: Dict[NodeIdentity, BeaconRecord] = {}
        self.owner = set(owner)

    def hops_to(self, beacon: NodeIdentity) -> Optional[int]:
        # None means "unknown"; 0 is only ever a real distance
        record = self._table.get(beacon)
        return record.hop_count if record else None

    def position_of(self, beacon: NodeIdentity) -> Optional[Tuple[float, float]]:
        record = self._table.get(beacon)
        return record.position if record else None

    def last_updated_at(self, beacon: NodeIdentity) -> Optional[float]:
        record = self._table.get(beacon)
        return record.last_update if record else None

    def known_beacons(self) -> List[NodeIdentity]:
        return sorted(self._table)

    def record(self, beacon: NodeIdentity) -> Optional[BeaconRecord]:
        return self._table.get(beacon)

    def record_update(self, beacon: NodeIdentity, hops: int, x: float, y: float, now: float) -> bool:
        if beacon in self.owner:
            return False

        current = self._table.get(beacon)
        if current is not None and hops >= current.hop_count:
            return False

        self._table[beacon] = BeaconRecord(hop_count=hops, position=(x, y), last_update=now)
        return True

    def items(self) -> List[Tuple[NodeIdentity, BeaconRecord]]:
        return [(beacon, self._table[beacon]) for beacon in self.known_beacons()]

    def format(self) -> str:
        lines = [f"{len(self._table)} entries"]
        for beacon, record in self.items():
            lines.append(f"{beacon}\t{record}")
        return "\n".join(lines) + "\n"

    def __len__(self):
        return len(self._table)

    def __contains__(self, beacon):
        return beacon in self._table

    def __repr__(self):
        return f"<DistanceTable beacons={len(self._table)}>"
