"""TCP echo server multiplexing its clients with select()."""

from __future__ import annotations

import contextlib
import select
import socket
import sys
from typing import Dict, Optional, Sequence, TextIO

from echonet.iterative_server import _emit, _listen_or_report, _parse_command_line

BUF_SIZE = 100
TIMEOUT = 5.005


class SelectEchoServer:
    """Echo server that watches the listener and all clients with select()."""

    def __init__(
        self,
        listener: socket.socket,
        bufsize: int = BUF_SIZE,
        timeout: Optional[float] = TIMEOUT,
        out: Optional[TextIO] = None,
    ) -> None:
        self.listener = listener
        self.bufsize = bufsize
        self.timeout = timeout
        self.out = sys.stdout if out is None else out
        self._watched: Dict[int, socket.socket] = {listener.fileno(): listener}
        self.closed = False

    def _accept(self) -> None:
        conn, _ = self.listener.accept()
        fd = conn.fileno()
        self._watched[fd] = conn
        _emit(self.out, f"connected client: {fd} \n")

    def _service(self, fd: int) -> None:
        conn = self._watched[fd]
        data = conn.recv(self.bufsize)
        if data:
            conn.sendall(data)
            return
        del self._watched[fd]
        conn.close()
        _emit(self.out, f"closed client: {fd} \n")

    def poll_once(self) -> int:
        """Wait for activity once and handle it; return the number of ready sockets."""
        if self.closed:
            raise ValueError("server is closed")
        ready, _, _ = select.select(sorted(self._watched), [], [], self.timeout)
        listener_fd = self.listener.fileno()
        for fd in sorted(ready):
            if fd == listener_fd:
                self._accept()
            else:
                self._service(fd)
        return len(ready)

    def serve_forever(self) -> int:
        """Poll until select fails or the server is closed; return sockets handled."""
        total = 0
        while not self.closed:
            try:
                total += self.poll_once()
            except (OSError, ValueError):
                break
        return total

    def close(self) -> None:
        for sock in self._watched.values():
            sock.close()
        self._watched.clear()
        self.listener.close()
        self.closed = True


def main(argv: Optional[Sequence[str]] = None) -> int:
    parsed = _parse_command_line(argv, "Usage : select-echo <port>", (1,))
    if parsed is None:
        return 1
    listener = _listen_or_report(parsed[1])
    if listener is None:
        return 1
    with contextlib.closing(SelectEchoServer(listener)) as server:
        server.serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())