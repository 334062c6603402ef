import io
import socket
import threading
import time

import pytest

from echonet.chat import (
    ChatRoom,
    format_message,
    handle_client,
    main,
    run_chat_client,
    serve_chat,
)
from echonet.iterative_server import create_tcp_listener


def _recv_exact(sock, size, timeout=5.0):
    sock.settimeout(timeout)
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_format_message_brackets_name():
    assert format_message("Alice", "hi\n") == "[Alice] hi\n"


def test_room_add_and_remove():
    a, b = socket.socketpair()
    with a, b:
        room = ChatRoom()
        room.add(a)
        room.add(b)
        assert len(room) == 2
        assert room.remove(a) is True
        assert room.remove(a) is False
        assert len(room) == 1


def test_room_full_raises():
    a, b = socket.socketpair()
    with a, b:
        room = ChatRoom(max_clients=1)
        room.add(a)
        with pytest.raises(OverflowError):
            room.add(b)
        assert len(room) == 1


def test_room_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        ChatRoom(max_clients=0)


def test_broadcast_reaches_every_client():
    a1, a2 = socket.socketpair()
    b1, b2 = socket.socketpair()
    with a1, a2, b1, b2:
        room = ChatRoom()
        room.add(a1)
        room.add(b1)
        assert room.broadcast(b"hello") == 2
        assert _recv_exact(a2, 5) == b"hello"
        assert _recv_exact(b2, 5) == b"hello"


def test_broadcast_skips_closed_client():
    a1, a2 = socket.socketpair()
    b1, b2 = socket.socketpair()
    with a2, b1, b2:
        room = ChatRoom()
        room.add(a1)
        room.add(b1)
        a1.close()
        assert room.broadcast(b"x") == 1
        assert _recv_exact(b2, 1) == b"x"


def test_handle_client_relays_and_removes():
    conn, peer = socket.socketpair()
    other, other_peer = socket.socketpair()
    with other, other_peer:
        room = ChatRoom()
        room.add(conn)
        room.add(other)
        result = {}
        worker = threading.Thread(
            target=lambda: result.setdefault("n", handle_client(room, conn))
        )
        worker.start()
        peer.sendall(b"msg")
        assert _recv_exact(other_peer, 3) == b"msg"
        assert _recv_exact(peer, 3) == b"msg"
        peer.close()
        worker.join(5)
        assert result["n"] == 3
        assert len(room) == 1


def test_serve_chat_relays_between_clients():
    listener = create_tcp_listener(0, "127.0.0.1")
    port = listener.getsockname()[1]
    listener.settimeout(1.0)
    room = ChatRoom()
    out = io.StringIO()
    result = {}
    server = threading.Thread(
        target=lambda: result.setdefault("n", serve_chat(listener, room, out))
    )
    server.start()
    first = socket.create_connection(("127.0.0.1", port))
    second = socket.create_connection(("127.0.0.1", port))
    with first, second:
        assert _wait_for(lambda: len(room) == 2)
        first.sendall(b"[A] hi\n")
        assert _recv_exact(second, 7) == b"[A] hi\n"
    server.join(10)
    listener.close()
    assert result["n"] == 2
    assert out.getvalue().count("Connected client IP: 127.0.0.1 \n") == 2


def test_run_chat_client_stops_at_quit():
    listener = create_tcp_listener(0, "127.0.0.1")
    port = listener.getsockname()[1]
    listener.settimeout(1.0)
    room = ChatRoom()
    server = threading.Thread(target=serve_chat, args=(listener, room, io.StringIO()))
    server.start()
    out = io.StringIO()
    with socket.create_connection(("127.0.0.1", port)) as sock:
        sent = run_chat_client(sock, "Bob", ["hi\n", "q\n", "ignored\n"], out)
    server.join(10)
    listener.close()
    assert sent == 1
    assert out.getvalue() == format_message("Bob", "hi\n")


def test_main_without_arguments_prints_usage(capsys):
    assert main([]) == 1
    assert "Usage" in capsys.readouterr().out


def test_main_rejects_bad_port(capsys):
    assert main(["notaport"]) == 1
    assert "Usage" in capsys.readouterr().out