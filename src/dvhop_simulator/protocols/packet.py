import struct
import ipaddress
from dataclasses import dataclass
from typing import Tuple
from dvhop_simulator.protocols.errors import TruncatedPacket, MalformedAddress

NodeIdentity = ipaddress.IPv4Address

LIMITED_BROADCAST = ipaddress.IPv4Address("255.255.255.255")

# x(8) + y(8) + seq_no(2) + hop_count(2) + beacon address(4), network byte order
_WIRE_FORMAT = struct.Struct(">ddHH4s")
PACKET_SIZE = _WIRE_FORMAT.size  # 24 bytes

U16_MAX = 0xFFFF

@dataclass(frozen=True)
class FloodingPacket:
    beacon_address: NodeIdentity # 4 bytes
    hop_count: int # 2 bytes
    sequence_number: int # 2 bytes
    x: float # 8 bytes
    y: float # 8 bytes

    def __post_init__(self):
        if not isinstance(self.beacon_address, ipaddress.IPv4Address):
            object.__setattr__(self, "beacon_address", ipaddress.IPv4Address(self.beacon_address))
        for name in ("hop_count", "sequence_number"):
            value = getattr(self, name)
            if not 0 <= value <= U16_MAX:
                raise ValueError(f"{name} must fit in 16 bits, got {value}")

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def size_bytes(self) -> int:
        return PACKET_SIZE

    def size_bits(self) -> int:
        return self.size_bytes() * 8

    def __str__(self):
        return f"Beacon: {self.beacon_address}, hopCount: {self.hop_count}, ({self.x}, {self.y})"


def is_valid_identity(address: NodeIdentity) -> bool:
    """A node identity must be a plain unicast address."""
    return not (
        address.is_unspecified
        or address.is_multicast
        or address.is_loopback
        or address == LIMITED_BROADCAST
    )

def encode(packet: FloodingPacket) -> bytes:
    return _WIRE_FORMAT.pack(
        packet.x,
        packet.y,
        packet.sequence_number,
        packet.hop_count,
        packet.beacon_address.packed,
    )

def decode(data: bytes) -> FloodingPacket:
    """
    Parse the first PACKET_SIZE bytes of `data`.

    Raises TruncatedPacket when fewer bytes are available and
    MalformedAddress when the beacon field is not a unicast identity.
    """
    if len(data) < PACKET_SIZE:
        raise TruncatedPacket(f"Need {PACKET_SIZE} bytes for a flooding packet, got {len(data)}")

    x, y, seq_no, hop_count, raw_address = _WIRE_FORMAT.unpack_from(data)
    address = ipaddress.IPv4Address(raw_address)
    if not is_valid_identity(address):
        raise MalformedAddress(f"Invalid beacon address {address}")

    return FloodingPacket(
        beacon_address=address,
        hop_count=hop_count,
        sequence_number=seq_no,
        x=x,
        y=y,
    )
