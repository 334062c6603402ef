"""Multi-client TCP chat server that relays every message to all clients."""

from __future__ import annotations

import codecs
import socket
import sys
import threading
from typing import Iterable, Iterator, List, Optional, Sequence, TextIO

from echonet.iterative_server import create_tcp_listener

BUF_SIZE = 100
NAME_SIZE = 20
MAX_CLIENTS = 256
QUIT_COMMANDS = frozenset({"q\n", "Q\n"})


class ChatRoom:
    """Thread-safe set of connected client sockets."""

    def __init__(self, max_clients: int = MAX_CLIENTS) -> None:
        if max_clients < 1:
            raise ValueError("max_clients must be at least 1")
        self.max_clients = max_clients
        self._clients: List[socket.socket] = []
        self._lock = threading.Lock()

    def add(self, conn: socket.socket) -> None:
        """Register a client; raise OverflowError when the room is full."""
        with self._lock:
            if len(self._clients) >= self.max_clients:
                raise OverflowError("chat room is full")
            self._clients.append(conn)

    def remove(self, conn: socket.socket) -> bool:
        """Unregister a client; return whether it was present."""
        with self._lock:
            try:
                self._clients.remove(conn)
            except ValueError:
                return False
            return True

    def broadcast(self, data: bytes) -> int:
        """Send data to every client; return how many received it."""
        delivered = 0
        with self._lock:
            for conn in self._clients:
                try:
                    conn.sendall(data)
                except OSError:
                    continue
                delivered += 1
        return delivered

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)


def handle_client(room: ChatRoom, conn: socket.socket, bufsize: int = BUF_SIZE) -> int:
    """Relay everything conn sends to the room until it disconnects.

    The client is then removed from the room and closed. Returns the number
    of bytes relayed.
    """
    total = 0
    try:
        while True:
            try:
                data = conn.recv(bufsize)
            except OSError:
                break
            if not data:
                break
            room.broadcast(data)
            total += len(data)
    finally:
        room.remove(conn)
        conn.close()
    return total


def serve_chat(
    listener: socket.socket,
    room: ChatRoom,
    out: Optional[TextIO] = None,
) -> int:
    """Accept clients and relay their messages, each in its own thread.

    Returns when accepting fails (for example on a listener timeout or after
    the listener is closed), giving the number of clients admitted.
    """
    out = sys.stdout if out is None else out
    admitted = 0
    while True:
        try:
            conn, address = listener.accept()
        except OSError:
            break
        try:
            room.add(conn)
        except OverflowError:
            conn.close()
            continue
        threading.Thread(target=handle_client, args=(room, conn), daemon=True).start()
        out.write(f"Connected client IP: {address[0]} \n")
        out.flush()
        admitted += 1
    return admitted


def format_message(name: str, text: str) -> str:
    """Prefix a message with the sender's bracketed name."""
    return f"[{name}] {text}"


def _pieces(lines: Iterable[str], size: int) -> Iterator[str]:
    for line in lines:
        while line:
            yield line[:size]
            line = line[size:]


def run_chat_client(
    sock: socket.socket, name: str, lines: Iterable[str], out: TextIO
) -> int:
    """Send named lines to the server while printing whatever arrives.

    Sending stops at a quit command or when lines run out; the write side is
    then shut down and incoming text is printed until the server closes.
    Returns the number of messages sent.
    """

    def receive() -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            try:
                data = sock.recv(NAME_SIZE + BUF_SIZE - 1)
            except OSError:
                break
            if not data:
                break
            text = decoder.decode(data)
            if text:
                out.write(text)
                out.flush()

    receiver = threading.Thread(target=receive, daemon=True)
    receiver.start()
    sent = 0
    try:
        for piece in _pieces(lines, BUF_SIZE - 1):
            if piece in QUIT_COMMANDS:
                break
            sock.sendall(format_message(name, piece).encode("utf-8"))
            sent += 1
    finally:
        try:
            sock.shutdown(socket.SHUT_WR)
        except OSError:
            pass
        receiver.join()
    return sent


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    usage = "Usage : chat <port> | chat <IP> <port> <name>"
    if len(args) not in (1, 3):
        print(usage)
        return 1
    try:
        port = int(args[0] if len(args) == 1 else args[1])
    except ValueError:
        print(usage)
        return 1

    if len(args) == 1:
        try:
            listener = create_tcp_listener(port)
        except (OSError, OverflowError):
            print("bind() error", file=sys.stderr)
            return 1
        with listener:
            serve_chat(listener, ChatRoom())
        return 0

    host, _, name = args
    try:
        sock = socket.create_connection((host, port))
    except (OSError, OverflowError):
        print("connect() error", file=sys.stderr)
        return 1
    with sock:
        run_chat_client(sock, name, sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())