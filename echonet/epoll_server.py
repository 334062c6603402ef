"""TCP echo server driven by epoll in level- or edge-triggered mode."""

from __future__ import annotations

import contextlib
import enum
import select
import socket
import sys
from typing import Dict, Optional, Sequence, TextIO

from echonet.iterative_server import _emit, _listen_or_report, _parse_command_line

BUF_SIZE = 100
SMALL_BUF_SIZE = 4
EPOLL_SIZE = 50


class TriggerMode(enum.Enum):
    """How client sockets are registered with epoll."""

    LEVEL = "level"
    EDGE = "edge"


class EpollEchoServer:
    """Echo server that waits on epoll for connections and client data."""

    def __init__(
        self,
        listener: socket.socket,
        mode: TriggerMode = TriggerMode.LEVEL,
        bufsize: int = BUF_SIZE,
        max_events: int = EPOLL_SIZE,
        out: Optional[TextIO] = None,
    ) -> None:
        self.listener = listener
        self.mode = mode
        self.bufsize = bufsize
        self.max_events = max_events
        self.out = sys.stdout if out is None else out
        self._epoll = select.epoll(max_events)
        self._clients: Dict[int, socket.socket] = {}
        self.closed = False
        if mode is TriggerMode.EDGE:
            listener.setblocking(False)
        self._epoll.register(listener.fileno(), select.EPOLLIN)

    def _accept(self) -> None:
        try:
            conn, _ = self.listener.accept()
        except BlockingIOError:
            return
        flags = select.EPOLLIN
        if self.mode is TriggerMode.EDGE:
            conn.setblocking(False)
            flags |= select.EPOLLET
        fd = conn.fileno()
        self._clients[fd] = conn
        self._epoll.register(fd, flags)
        _emit(self.out, f"connected client: {fd} \n")

    def _drop(self, fd: int) -> None:
        conn = self._clients.pop(fd)
        self._epoll.unregister(fd)
        conn.close()
        _emit(self.out, f"closed client: {fd} \n")

    def _read(self, fd: int) -> None:
        """Echo what fd has to offer: one read in level mode, all of it in edge mode."""
        conn = self._clients[fd]
        while True:
            try:
                data = conn.recv(self.bufsize)
            except BlockingIOError:
                return
            except ConnectionError:
                data = b""
            if not data:
                self._drop(fd)
                return
            conn.sendall(data)
            if self.mode is TriggerMode.LEVEL:
                return

    def poll_once(self, timeout: Optional[float] = None) -> int:
        """Wait for events once and handle them; return the number of events."""
        if self.closed:
            raise ValueError("server is closed")
        events = self._epoll.poll(-1 if timeout is None else timeout, self.max_events)
        _emit(self.out, "return epoll_wait\n")
        listener_fd = self.listener.fileno()
        for fd, _ in events:
            if fd == listener_fd:
                self._accept()
            elif fd in self._clients:
                self._read(fd)
        return len(events)

    def serve_forever(self) -> int:
        """Poll until waiting fails or the server is closed; return events handled."""
        total = 0
        while not self.closed:
            try:
                total += self.poll_once()
            except (OSError, ValueError):
                _emit(self.out, "epoll_wait() error\n")
                break
        return total

    def close(self) -> None:
        for conn in self._clients.values():
            conn.close()
        self._clients.clear()
        self.listener.close()
        self._epoll.close()
        self.closed = True


def main(argv: Optional[Sequence[str]] = None) -> int:
    parsed = _parse_command_line(argv, "Usage : epoll-echo [--edge] <port>", (1,), "--edge")
    if parsed is None:
        return 1
    _, port, edge = parsed
    listener = _listen_or_report(port)
    if listener is None:
        return 1
    if edge:
        server = EpollEchoServer(listener, TriggerMode.EDGE, SMALL_BUF_SIZE)
    else:
        server = EpollEchoServer(listener)
    with contextlib.closing(server):
        server.serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())