# portmon

portmon shows which local process each incoming IPv4 TCP or UDP packet
is headed for. It runs on Linux as two cooperating commands:

- **`portmon-daemon`** subscribes to packet notifications on netlink
  protocol 31. At startup it builds a port → PID map from
  `/proc/net/tcp`, `/proc/net/udp` and the `/proc/<pid>/fd` links (TCP
  entries win when a port appears in both). For every packet it receives,
  it looks up the owner of the destination port and records it. It
  answers lookups from clients on a Unix socket, by default
  `/var/run/hut_karish-daemon.sock`.
- **`portmon-hunter`** subscribes to the same packet feed. For each packet
  it has not seen before (same addresses, ports and protocol), it asks the
  daemon which PID owns the destination port and prints a line such as:

  ```
  PID: 1234 | Proto: TCP | Src: 10.0.0.5:51514 → Dst: 10.0.0.2:22
  ```

  When the daemon does not know the port, the line starts with
  `PID: unknown`. Only packets with a known PID are kept, so a packet
  whose owner is unknown may be printed again later.

Both commands stop cleanly on `SIGINT` (Ctrl+C) or `SIGTERM`. The hunter
also stops when the daemon's connection goes away.

## Requirements

- Linux, with something in the kernel sending packet records on netlink
  protocol 31 and accepting the subscribe/unsubscribe commands
  (`daemon_subscribe`, `daemon_unsubscribe`, `packet_hunter_subscribe`,
  `packet_hunter_unsubscribe`)
- Python 3.10 or newer
- Enough privileges to open netlink sockets, read other processes'
  `/proc/<pid>/fd` entries and create the socket file (normally root)

## Installation

```
pip install .
```

## Usage

Start the daemon first:

```
sudo portmon-daemon
```

Options:

- `--socket-path PATH`: the Unix socket to listen on.
- `--daemonize`: start a new session if possible, change to `/` and
  redirect the standard streams to `/dev/null`. It does not fork.

The daemon logs through syslog (`/dev/log`, facility daemon, ident
`portmon_daemon`) when that is available, otherwise to standard error.

Then start the hunter in another terminal:

```
sudo portmon-hunter
```

Option:

- `--socket-path PATH`: the daemon's Unix socket.

When it stops, the hunter asks:

```
Do you want to save the packets hunted to a file? (y/n):
```

Answer `y`, then press Enter to accept the default path (`packets.log`
in the current working directory) or type your own. Each saved packet is
written as one line in the same format as on screen, with `Other` as the
protocol name for anything that is neither TCP nor UDP.

## Using the pieces as a library

- `portmon.config`: `PacketInfo`, the packet record, with `pack()`,
  `PacketInfo.from_bytes(data)`, `is_stop()` and `protocol_name()`;
  the `Protocol` enum; and the constants `NETLINK_USER`, `MAX_PAYLOAD`
  and `SOCKET_FILE_ADDRESS`.
- `portmon.netlink_client`: `NetLinkClient` (`send_message`,
  `receive_packet_info`, `close`, usable as a context manager), plus
  `build_message(msg, pid)` and `parse_packet_message(data)` for framing
  and unframing netlink messages.
- `portmon.scan_files`: `parse_listening_sockets`,
  `find_pid_by_sock_inode`, `initialize_port_pid_map` and
  `scan_for_pid_by_port`. Every procfs path can be overridden, which
  makes them easy to point at test fixtures. Lookups that find nothing
  return `None`.
- `portmon.port_pid_map.PortToPidMap`: a thread-safe port → PID map,
  filled at creation, with `add_pid_mapping(port, protocol)` and
  `get_pid(port)` (`None` when unknown).
- `portmon.pid_packets_map.PidToPacketsInfoMap`: packets grouped by PID,
  with `insert_packet_info`, `contains_packet` and `items`.
- `portmon.message_queue.MessageQueue` and
  `portmon.thread_safe_map.ThreadSafeMap`: small thread-safe containers.
- `portmon.shared`: `recv_packet_info_loop(client, queue, running)` moves
  packets from a `NetLinkClient` into a queue until the `threading.Event`
  is cleared or the stop record arrives; `drain_queue(queue)` empties a
  queue.
- `portmon.unix_server.UnixSocketServer` and
  `portmon.unix_client.UnixSocketClient`: the two ends of the lookup
  protocol. The client sends a port as a native 16-bit integer and gets
  back a native 32-bit PID, or -1 when the port is unknown.
  `receive_pid()` returns `None` when the exchange fails.
- `portmon.daemon` and `portmon.packet_hunter`: the two commands'
  `main(argv=None)`, along with `format_packet_line`, `save_packet_map`
  and `default_log_path` for the hunter's output.

## What this package does not do

portmon does not capture packets itself. It has no kernel component and
no packet-capture fallback: without a kernel module sending packet
records on netlink protocol 31, both commands start but never receive
any packets. It handles only IPv4 TCP and UDP as reported by that feed.

## Running the tests

```
pip install .[test]
pytest
```