import ipaddress

import pytest

from portmon.config import PACKET_INFO_SIZE, PacketInfo, Protocol


def _packet(**overrides):
    fields = dict(
        src_ip="10.0.0.1",
        dst_ip="192.168.1.20",
        src_port=5555,
        dst_port=80,
        proto=Protocol.TCP,
        payload_size=12,
    )
    fields.update(overrides)
    return PacketInfo(**fields)


def test_packet_size_matches_kernel_layout():
    assert len(PacketInfo(0, 0, 0, 0, "\x00").pack()) == 20


def test_pack_length_is_record_size():
    assert len(_packet().pack()) == PACKET_INFO_SIZE


def test_round_trip():
    packet = _packet()
    assert PacketInfo.from_bytes(packet.pack()) == packet


def test_addresses_are_packed_in_network_order():
    data = _packet().pack()
    assert data[:4] == ipaddress.IPv4Address("10.0.0.1").packed
    assert data[4:8] == ipaddress.IPv4Address("192.168.1.20").packed


def test_protocol_byte_in_record():
    data = _packet(proto=Protocol.UDP).pack()
    assert b"U" in data[16:17]


def test_from_bytes_rejects_wrong_length():
    with pytest.raises(ValueError):
        PacketInfo.from_bytes(b"\x00" * (PACKET_INFO_SIZE - 1))


def test_protocol_enum_normalised_to_char():
    assert _packet(proto=Protocol.TCP).proto == "T"
    assert Protocol("U") is Protocol.UDP


@pytest.mark.parametrize(
    "proto, name", [(Protocol.TCP, "TCP"), (Protocol.UDP, "UDP"), ("X", "other")]
)
def test_protocol_name(proto, name):
    assert _packet(proto=proto).protocol_name() == name


def test_stop_record():
    stop = PacketInfo(0, 0, 0, 0, "\x00")
    assert stop.is_stop()
    assert PacketInfo.from_bytes(stop.pack()).is_stop()


def test_regular_packet_is_not_stop():
    assert _packet().is_stop() is False
    assert _packet(src_ip=0, dst_ip=0, src_port=0).is_stop() is False


def test_invalid_port_rejected():
    with pytest.raises(ValueError):
        _packet(dst_port=70000)


def test_invalid_protocol_rejected():
    with pytest.raises(ValueError):
        _packet(proto="TCP")


def test_packets_are_hashable_and_comparable():
    assert len({_packet(), _packet(), _packet(dst_port=81)}) == 2