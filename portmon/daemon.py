"""Port monitor daemon: keeps the port-to-pid map and answers client requests."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import os
import signal
import sys
import threading
import time
from typing import List, Optional

from .config import SOCKET_FILE_ADDRESS
from .message_queue import MessageQueue
from .netlink_client import NetLinkClient
from .port_pid_map import PortToPidMap
from .shared import drain_queue, recv_packet_info_loop
from .unix_server import UNKNOWN_PID, UnixSocketServer

log = logging.getLogger("portmon_daemon")

_POLL_INTERVAL = 0.005
_SYSLOG_DEVICE = "/dev/log"


def handle_client_connection(
    port_pid_map: PortToPidMap, server: UnixSocketServer, running: threading.Event
) -> None:
    """Answer port requests from the connected client until it leaves or we stop."""
    if not server.client_connected:
        return
    while running.is_set():
        port = server.receive_port()
        if port is None:
            break
        pid = port_pid_map.get_pid(port)
        if pid is not None:
            log.info("Client requested port %u, sent PID: %d", port, pid)
            server.send_pid(pid)
        else:
            log.info("Client requested port %u, sent PID: unknown", port)
            server.send_pid(UNKNOWN_PID)


def client_connection_thread(
    port_pid_map: PortToPidMap, server: UnixSocketServer, running: threading.Event
) -> None:
    """Accept clients one at a time and serve each until the daemon stops."""
    while running.is_set():
        log.info("Waiting for client to connect")
        if not server.connect_to_client():
            if running.is_set():
                log.warning("Client failed to connect")
            server.close_client()
            continue
        handle_client_connection(port_pid_map, server, running)
        log.info("Client disconnected")
        server.close_client()


def daemonize() -> None:
    """Detach from the terminal session where possible and redirect standard streams."""
    try:
        os.setsid()
    except OSError as exc:
        log.warning("setsid failed: %s", exc)

    os.chdir("/")
    devnull = os.open(os.devnull, os.O_RDWR)
    for target in (0, 1, 2):
        os.dup2(devnull, target)
    if devnull > 2:
        os.close(devnull)


def _configure_logging() -> None:
    if os.path.exists(_SYSLOG_DEVICE):
        handler: logging.Handler = logging.handlers.SysLogHandler(
            address=_SYSLOG_DEVICE, facility=logging.handlers.SysLogHandler.LOG_DAEMON
        )
        handler.ident = f"portmon_daemon[{os.getpid()}]: "
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.INFO)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="portmon-daemon", description=__doc__)
    parser.add_argument(
        "--socket-path",
        default=SOCKET_FILE_ADDRESS,
        help="unix socket the packet hunter connects to",
    )
    parser.add_argument(
        "--daemonize",
        action="store_true",
        help="detach from the terminal before starting",
    )
    return parser.parse_args(argv)


def _stop_server(
    server: UnixSocketServer, connection_thread: threading.Thread, running: threading.Event
) -> None:
    running.clear()
    server.close_client()
    server.stop_listening_for_new_clients()
    connection_thread.join()
    server.close_socket()


def main(argv: Optional[List[str]] = None) -> int:
    """Run the daemon until SIGINT or SIGTERM; returns the exit status."""
    args = _parse_args(argv)
    if args.daemonize:
        daemonize()
    _configure_logging()

    running = threading.Event()
    running.set()

    def _stop(signum: int, frame: object) -> None:
        running.clear()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    log.info("Activated Port Monitor Terminal")

    try:
        client = NetLinkClient()
    except OSError as exc:
        log.error("Failed to create Netlink socket: %s", exc)
        return 1

    with client:
        port_pid_map = PortToPidMap()
        queue = MessageQueue()
        try:
            server = UnixSocketServer(args.socket_path)
        except OSError:
            return 1

        connection_thread = threading.Thread(
            target=client_connection_thread,
            args=(port_pid_map, server, running),
            daemon=True,
        )
        connection_thread.start()

        try:
            client.send_message("daemon_subscribe")
        except OSError as exc:
            log.error("Failed to send message to kernel: %s", exc)
            _stop_server(server, connection_thread, running)
            return 1

        listener = threading.Thread(
            target=recv_packet_info_loop, args=(client, queue, running), daemon=True
        )
        listener.start()

        while running.is_set():
            packet = queue.pop()
            if packet is None:
                time.sleep(_POLL_INTERVAL)
                continue
            if port_pid_map.add_pid_mapping(packet.dst_port, packet.proto):
                log.info(
                    "Port: %u, PID: %d mapping added",
                    packet.dst_port,
                    port_pid_map.get_pid(packet.dst_port),
                )

        try:
            client.send_message("daemon_unsubscribe")
        except OSError as exc:
            log.error("Failed to send message to kernel: %s", exc)
            _stop_server(server, connection_thread, running)
            return 1
        listener.join()

        drain_queue(queue)
        _stop_server(server, connection_thread, running)

    log.info("Port Monitor Daemon terminated")
    return 0


if __name__ == "__main__":
    sys.exit(main())