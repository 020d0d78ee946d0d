"""
Tests for the 24-byte flooding packet codec
"""

import ipaddress
import math
import struct
import pytest
from dvhop_simulator.protocols.errors import DecodeError, MalformedAddress, TruncatedPacket
from dvhop_simulator.protocols.packet import PACKET_SIZE, FloodingPacket, decode, encode, is_valid_identity


def make_packet(**overrides):
    fields = dict(beacon_address="10.0.0.7", hop_count=3, sequence_number=258, x=1.5, y=-2.0)
    fields.update(overrides)
    return FloodingPacket(**fields)


class TestFloodingPacket:
    """Construction and field validation"""

    def test_address_is_coerced(self):
        packet = make_packet()
        assert packet.beacon_address == ipaddress.IPv4Address("10.0.0.7")

    def test_size_is_fixed(self):
        packet = make_packet()
        assert PACKET_SIZE == 24
        assert packet.size_bytes() == 24
        assert packet.size_bits() == 192

    @pytest.mark.parametrize("field", ["hop_count", "sequence_number"])
    def test_u16_fields_are_bounded(self, field):
        with pytest.raises(ValueError):
            make_packet(**{field: 0x10000})
        with pytest.raises(ValueError):
            make_packet(**{field: -1})

    def test_u16_max_is_accepted(self):
        packet = make_packet(hop_count=0xFFFF, sequence_number=0xFFFF)
        assert packet.hop_count == 0xFFFF

    def test_position(self):
        assert make_packet(x=30.0, y=40.0).position == (30.0, 40.0)


class TestEncode:
    """Wire layout"""

    def test_encoded_length(self):
        assert len(encode(make_packet())) == PACKET_SIZE

    def test_field_order_is_big_endian(self):
        data = encode(make_packet())

        assert data[0:8] == struct.pack(">d", 1.5)
        assert data[8:16] == struct.pack(">d", -2.0)
        assert data[16:18] == b"\x01\x02"   # sequence number 258
        assert data[18:20] == b"\x00\x03"   # hop count 3
        assert data[20:24] == bytes([10, 0, 0, 7])


class TestDecode:
    """Parsing and rejection of malformed input"""

    def test_round_trip_is_bit_exact(self):
        packet = make_packet(x=123.456789, y=-0.1, hop_count=0, sequence_number=65535)
        decoded = decode(encode(packet))

        assert decoded == packet
        assert struct.pack(">d", decoded.x) == struct.pack(">d", packet.x)

    def test_non_finite_coordinates_survive(self):
        decoded = decode(encode(make_packet(x=float("inf"), y=-0.0)))
        assert math.isinf(decoded.x)
        assert math.copysign(1.0, decoded.y) == -1.0

    def test_trailing_bytes_are_ignored(self):
        packet = make_packet()
        assert decode(encode(packet) + b"\xff\xff") == packet

    @pytest.mark.parametrize("length", [0, 1, 20, 23])
    def test_truncated_input(self, length):
        with pytest.raises(TruncatedPacket):
            decode(encode(make_packet())[:length])

    @pytest.mark.parametrize("raw", [
        bytes([0, 0, 0, 0]),
        bytes([255, 255, 255, 255]),
        bytes([224, 0, 0, 1]),
        bytes([127, 0, 0, 1]),
    ])
    def test_malformed_address(self, raw):
        data = encode(make_packet())[:20] + raw
        with pytest.raises(MalformedAddress):
            decode(data)

    def test_decode_errors_share_a_base(self):
        assert issubclass(TruncatedPacket, DecodeError)
        assert issubclass(MalformedAddress, DecodeError)


def test_is_valid_identity():
    assert is_valid_identity(ipaddress.IPv4Address("10.0.0.1"))
    assert not is_valid_identity(ipaddress.IPv4Address("0.0.0.0"))
    assert not is_valid_identity(ipaddress.IPv4Address("255.255.255.255"))
