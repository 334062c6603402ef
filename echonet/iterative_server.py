"""Iterative TCP echo server serving one client at a time."""

from __future__ import annotations

import itertools
import socket
import sys
from typing import Iterable, Optional, Sequence, TextIO, Tuple

BUF_SIZE = 1024
BACKLOG = 5
MAX_CLIENTS = 5
GREETING_LINES = (
    "FROM SERVER: Hi~ client? \n",
    "I love all of the world \n",
    "You are awesome! \n",
)


def _emit(out: TextIO, text: str) -> None:
    """Write text to out and flush it at once."""
    out.write(text)
    out.flush()


def _rounds(limit: Optional[int]) -> Iterable[int]:
    """Count up forever, or up to limit when one is given."""
    return itertools.count() if limit is None else range(limit)


def _parse_command_line(
    argv: Optional[Sequence[str]],
    usage: str,
    arg_counts: Sequence[int],
    flag: Optional[str] = None,
) -> Optional[Tuple[list, int, bool]]:
    """Split argv into (arguments, port, flag given); the port is the last argument.

    Prints usage and returns None when the arguments do not fit.
    """
    args = sys.argv[1:] if argv is None else list(argv)
    flagged = flag is not None and flag in args
    args = [arg for arg in args if arg != flag]
    try:
        if len(args) not in arg_counts:
            raise ValueError(len(args))
        port = int(args[-1])
    except ValueError:
        print(usage)
        return None
    return args, port, flagged


def _listen_or_report(port: int) -> Optional[socket.socket]:
    """Open a listener on port, or report the failure and return None."""
    try:
        return create_tcp_listener(port)
    except (OSError, OverflowError):
        print("bind() error", file=sys.stderr)
        return None


def create_tcp_listener(port: int, host: str = "", backlog: int = BACKLOG) -> socket.socket:
    """Create a TCP socket bound to host:port and listening."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((host, port))
        sock.listen(backlog)
    except BaseException:
        sock.close()
        raise
    return sock


def echo_stream(conn: socket.socket, bufsize: int = BUF_SIZE) -> int:
    """Echo everything received on conn until the peer closes; return bytes echoed."""
    total = 0
    while data := conn.recv(bufsize):
        conn.sendall(data)
        total += len(data)
    return total


def serve_iterative(
    listener: socket.socket,
    max_clients: int = MAX_CLIENTS,
    out: Optional[TextIO] = None,
) -> int:
    """Accept and echo clients one after another; return how many were served."""
    out = sys.stdout if out is None else out
    served = 0
    for number in range(1, max_clients + 1):
        conn, _ = listener.accept()
        _emit(out, f"Connected client {number} \n")
        with conn:
            echo_stream(conn)
        served += 1
    return served


def send_greeting_and_half_close(
    conn: socket.socket, lines: Iterable[str] = GREETING_LINES
) -> str:
    """Send lines, close the write side, then read one reply line from the peer."""
    conn.sendall("".join(lines).encode("utf-8"))
    conn.shutdown(socket.SHUT_WR)
    with conn.makefile("rb") as reader:
        reply = reader.readline(BUF_SIZE - 1)
    return reply.decode("utf-8", errors="replace")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parsed = _parse_command_line(
        argv, "Usage: echo-server [--half-close] <port>", (1,), "--half-close"
    )
    if parsed is None:
        return 1
    _, port, half_close = parsed
    listener = _listen_or_report(port)
    if listener is None:
        return 1
    with listener:
        try:
            if half_close:
                conn, _ = listener.accept()
                with conn:
                    sys.stdout.write(send_greeting_and_half_close(conn))
            else:
                serve_iterative(listener)
        except OSError:
            print("accept() error", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())