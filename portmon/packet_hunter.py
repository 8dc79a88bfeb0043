"""Packet hunter: shows which process receives each new packet and can save them."""

from __future__ import annotations

import argparse
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Union

from .config import SOCKET_FILE_ADDRESS, PacketInfo
from .message_queue import MessageQueue
from .netlink_client import NetLinkClient
from .pid_packets_map import PidToPacketsInfoMap
from .shared import drain_queue, recv_packet_info_loop
from .unix_client import UnixSocketClient

_POLL_INTERVAL = 0.005
_LOOKUP_DELAY = 0.01
_LOG_FILE_NAME = "packets.log"


def _format(packet: PacketInfo, pid_text: str, proto: str) -> str:
    return (
        f"PID: {pid_text} | Proto: {proto} | "
        f"Src: {packet.src_ip}:{packet.src_port} → "
        f"Dst: {packet.dst_ip}:{packet.dst_port}"
    )


def format_packet_line(packet: PacketInfo, pid: Optional[int]) -> str:
    """The console line for a packet and the pid that receives it (-1 or None: unknown)."""
    pid_text = "unknown " if pid is None or pid == -1 else str(pid)
    return _format(packet, pid_text, packet.protocol_name())


def save_packet_map(packet_map: PidToPacketsInfoMap, path: Union[str, Path]) -> Path:
    """Write every stored packet, one line each, to ``path``; raises OSError on failure."""
    target = Path(path)
    with target.open("w", encoding="utf-8") as out:
        for pid, packets in packet_map.items():
            for packet in packets:
                proto = packet.protocol_name()
                if proto == "other":
                    proto = "Other"
                out.write(_format(packet, str(pid), proto) + "\n")
    return target


def default_log_path() -> Path:
    """The default file for saved packets: packets.log in the working directory."""
    return Path.cwd() / _LOG_FILE_NAME


def _ask_to_save(packet_map: PidToPacketsInfoMap) -> None:
    try:
        choice = input("Do you want to save the packets hunted to a file? (y/n): ").strip()
    except EOFError:
        return
    if not choice or choice[0] not in "yY":
        return

    path = default_log_path()
    try:
        entered = input(f"Enter file path [default: {path}]: ").strip()
    except EOFError:
        entered = ""
    if entered:
        path = Path(entered)

    try:
        saved = save_packet_map(packet_map, path)
    except OSError:
        print(f"Error: failed to open file for writing: {path}", file=sys.stderr)
        return
    print(f"Saved packet map to: {saved}")


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="portmon-hunter", description=__doc__)
    parser.add_argument(
        "--socket-path",
        default=SOCKET_FILE_ADDRESS,
        help="unix socket of the port monitor daemon",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Hunt packets until SIGINT, SIGTERM or the daemon goes away."""
    args = _parse_args(argv)

    running = threading.Event()
    running.set()

    def _stop(signum: int, frame: object) -> None:
        running.clear()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    try:
        netlink_client = NetLinkClient()
    except OSError as exc:
        print(f"Error: Failed to create Netlink socket: {exc}", file=sys.stderr)
        return 1

    with netlink_client:
        try:
            unix_client = UnixSocketClient(args.socket_path)
        except ConnectionError as exc:
            print(exc, file=sys.stderr)
            return 1

        with unix_client:
            queue = MessageQueue()
            packet_map = PidToPacketsInfoMap()

            try:
                netlink_client.send_message("packet_hunter_subscribe")
            except OSError:
                print("Failed to send message to kernel", file=sys.stderr)
                return 1

            listener = threading.Thread(
                target=recv_packet_info_loop,
                args=(netlink_client, queue, running),
                daemon=True,
            )
            listener.start()

            while running.is_set():
                packet = queue.pop()
                if packet is None:
                    time.sleep(_POLL_INTERVAL)
                    if not unix_client.is_server_alive():
                        running.clear()
                    continue
                if packet_map.contains_packet(packet):
                    continue

                # Give the daemon a moment to resolve a port it has just seen.
                time.sleep(_LOOKUP_DELAY)
                if not unix_client.send_port(packet.dst_port):
                    break
                pid = unix_client.receive_pid()
                if pid is None:
                    break

                print(format_packet_line(packet, pid))
                packet_map.insert_packet_info(pid, packet)

            try:
                netlink_client.send_message("packet_hunter_unsubscribe")
            except OSError:
                print("Failed to send message to kernel", file=sys.stderr)
                return 1
            listener.join()
            drain_queue(queue)

    _ask_to_save(packet_map)
    print("Packet hunter terminated ")
    return 0


if __name__ == "__main__":
    sys.exit(main())