"""UDP echo server and client."""

from __future__ import annotations

import socket
import sys
from typing import Iterable, Iterator, Optional, Sequence, TextIO, Tuple

from echonet.client import is_quit_command
from echonet.iterative_server import _emit, _parse_command_line, _rounds

BUF_SIZE = 30
PROMPT = "Insert message(Q to quit): "
REPLY_PREFIX = "Message from server: "


def serve_udp_echo(
    sock: socket.socket,
    bufsize: int = BUF_SIZE,
    max_datagrams: Optional[int] = None,
) -> int:
    """Send every datagram received on sock back to its sender.

    Datagrams longer than bufsize are truncated. Runs forever unless
    max_datagrams is given; returns the number of datagrams echoed.
    """
    count = 0
    for _ in _rounds(max_datagrams):
        data, address = sock.recvfrom(bufsize)
        sock.sendto(data, address)
        count += 1
    return count


def udp_exchange(
    sock: socket.socket,
    address: Tuple[str, int],
    message: str,
    bufsize: int = BUF_SIZE,
) -> str:
    """Send message to address as one datagram and return the reply."""
    sock.sendto(message.encode("utf-8"), address)
    data, _ = sock.recvfrom(bufsize)
    return data.decode("utf-8", errors="replace")


def _line_pieces(lines: Iterable[str], bufsize: int) -> Iterator[str]:
    """Split lines into pieces of at most bufsize - 1 characters."""
    size = max(bufsize - 1, 1)
    for line in lines:
        while line:
            yield line[:size]
            line = line[size:]


def run_udp_client(
    host: str,
    port: int,
    lines: Iterable[str],
    out: TextIO,
    bufsize: int = BUF_SIZE,
) -> int:
    """Send each input line to the server and print the reply.

    Stops at a quit command; returns the number of exchanges.
    """
    count = 0
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        for piece in _line_pieces(lines, bufsize):
            _emit(out, PROMPT)
            if is_quit_command(piece):
                break
            reply = udp_exchange(sock, (host, port), piece, bufsize)
            _emit(out, f"{REPLY_PREFIX}{reply}")
            count += 1
    return count


def _run_server(port: int) -> int:
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    except OSError:
        print("UDP socket creation error", file=sys.stderr)
        return 1
    with sock:
        try:
            sock.bind(("", port))
        except (OSError, OverflowError):
            print("bind() error", file=sys.stderr)
            return 1
        serve_udp_echo(sock)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parsed = _parse_command_line(
        argv, "Usage : udp-echo <port> | udp-echo <IP> <port>", (1, 2)
    )
    if parsed is None:
        return 1
    args, port, _ = parsed
    if len(args) == 1:
        return _run_server(port)
    try:
        run_udp_client(args[0], port, sys.stdin, sys.stdout)
    except (OSError, OverflowError):
        print("socket() error!", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())