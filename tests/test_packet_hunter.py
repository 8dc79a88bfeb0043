from pathlib import Path

import pytest

from portmon.config import PacketInfo
from portmon.packet_hunter import default_log_path, format_packet_line, save_packet_map
from portmon.pid_packets_map import PidToPacketsInfoMap


def make_packet(proto="T", src="10.0.0.1", dst="10.0.0.2", sport=1234, dport=80):
    return PacketInfo(src, dst, sport, dport, proto)


def test_format_packet_line_with_known_pid():
    line = format_packet_line(make_packet(), 42)
    assert line == "PID: 42 | Proto: TCP | Src: 10.0.0.1:1234 → Dst: 10.0.0.2:80"


def test_format_packet_line_with_unknown_pid():
    line = format_packet_line(make_packet(proto="U"), -1)
    assert line == "PID: unknown  | Proto: UDP | Src: 10.0.0.1:1234 → Dst: 10.0.0.2:80"


def test_format_packet_line_none_pid_matches_minus_one():
    packet = make_packet()
    assert format_packet_line(packet, None) == format_packet_line(packet, -1)


def test_format_packet_line_other_protocol():
    assert "| Proto: other |" in format_packet_line(make_packet(proto="X"), 7)


def test_save_packet_map_writes_one_line_per_packet(tmp_path):
    packet_map = PidToPacketsInfoMap()
    first = make_packet()
    second = make_packet(proto="U", dport=53)
    third = make_packet(sport=999)
    packet_map.insert_packet_info(7, first)
    packet_map.insert_packet_info(8, second)
    packet_map.insert_packet_info(7, third)

    target = tmp_path / "out.log"
    saved = save_packet_map(packet_map, target)

    assert saved == target
    lines = target.read_text(encoding="utf-8").splitlines()
    assert lines == [
        format_packet_line(first, 7),
        format_packet_line(third, 7),
        format_packet_line(second, 8),
    ]


def test_save_packet_map_capitalises_other_protocol(tmp_path):
    packet_map = PidToPacketsInfoMap()
    packet_map.insert_packet_info(5, make_packet(proto="X"))
    target = save_packet_map(packet_map, tmp_path / "other.log")
    assert "| Proto: Other |" in target.read_text(encoding="utf-8")


def test_save_empty_map_gives_empty_file(tmp_path):
    target = save_packet_map(PidToPacketsInfoMap(), str(tmp_path / "empty.log"))
    assert target.read_text(encoding="utf-8") == ""


def test_save_packet_map_to_directory_raises(tmp_path):
    with pytest.raises(OSError):
        save_packet_map(PidToPacketsInfoMap(), tmp_path)


def test_default_log_path_is_in_working_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = default_log_path()
    assert path.name == "packets.log"
    assert path.parent == Path.cwd()