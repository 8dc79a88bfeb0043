import os
import shutil
import socket
import struct
import tempfile

import pytest

from portmon.unix_client import UnixSocketClient


@pytest.fixture
def sock_path():
    directory = tempfile.mkdtemp(prefix="pm-")
    yield os.path.join(directory, "c.sock")
    shutil.rmtree(directory, ignore_errors=True)


@pytest.fixture
def listener(sock_path):
    srv = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    srv.bind(sock_path)
    srv.listen(1)
    srv.settimeout(5)
    yield srv
    srv.close()


def test_connect_to_missing_socket_raises(sock_path):
    with pytest.raises(ConnectionError):
        UnixSocketClient(sock_path)


def test_send_port_wire_format(listener, sock_path):
    with UnixSocketClient(sock_path) as client:
        peer, _ = listener.accept()
        with peer:
            assert client.send_port(443) is True
            assert struct.unpack("=H", peer.recv(2))[0] == 443


def test_receive_pid_round_trip(listener, sock_path):
    with UnixSocketClient(sock_path) as client:
        peer, _ = listener.accept()
        with peer:
            peer.sendall(struct.pack("=i", 1234))
            assert client.receive_pid() == 1234
            peer.sendall(struct.pack("=i", -1))
            assert client.receive_pid() == -1


def test_receive_pid_after_server_close_is_none(listener, sock_path):
    with UnixSocketClient(sock_path) as client:
        peer, _ = listener.accept()
        peer.close()
        assert client.receive_pid() is None


def test_disconnected_client_refuses_work(listener, sock_path):
    client = UnixSocketClient(sock_path)
    client.disconnect()
    assert not client.connected
    assert client.send_port(80) is False
    assert client.receive_pid() is None
    assert client.is_server_alive() is False


def test_unconnected_client_without_autoconnect(sock_path):
    client = UnixSocketClient(sock_path, autoconnect=False)
    assert client.connected is False
    assert client.send_port(80) is False


def test_server_alive_while_connected(listener, sock_path):
    with UnixSocketClient(sock_path) as client:
        peer, _ = listener.accept()
        with peer:
            assert client.is_server_alive() is True


def test_server_not_alive_after_peer_closes(listener, sock_path):
    with UnixSocketClient(sock_path) as client:
        peer, _ = listener.accept()
        peer.close()
        assert client.is_server_alive() is False


def test_connect_prints_message(listener, sock_path, capsys):
    with UnixSocketClient(sock_path) as client:
        assert client.connected
    assert "port monitor daemon" in capsys.readouterr().out