"""Send a news file over UDP multicast or broadcast, and receive it."""

from __future__ import annotations

import socket
import sys
import time
from pathlib import Path
from typing import Iterator, Optional, Sequence, TextIO, Tuple, Union

from echonet.iterative_server import _emit, _parse_command_line, _rounds
from echonet.udp_echo import _line_pieces

BUF_SIZE = 30
TTL = 64
NEWS_FILE = "news.txt"


def read_news_chunks(
    path: Union[str, Path], chunk_size: int = BUF_SIZE
) -> Iterator[str]:
    """Yield the file's text in pieces of at most chunk_size - 1 characters.

    A piece never runs past the end of a line.
    """
    if chunk_size < 2:
        raise ValueError("chunk_size must be at least 2")
    with open(path, "r", encoding="utf-8", newline="") as handle:
        yield from _line_pieces(handle, chunk_size)


def _udp_socket(level: int, option: int, value: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.setsockopt(level, option, value)
    return sock


def make_multicast_sender(ttl: int = TTL) -> socket.socket:
    """Create a UDP socket for sending multicast datagrams with the given TTL."""
    return _udp_socket(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, ttl)


def make_broadcast_sender() -> socket.socket:
    """Create a UDP socket allowed to send broadcast datagrams."""
    return _udp_socket(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)


def send_news(
    sock: socket.socket,
    address: Tuple[str, int],
    path: Union[str, Path] = NEWS_FILE,
    interval: float = 2.0,
    chunk_size: int = BUF_SIZE,
) -> int:
    """Send the file to address one piece per datagram; return datagrams sent."""
    count = 0
    for chunk in read_news_chunks(path, chunk_size):
        sock.sendto(chunk.encode("utf-8"), address)
        count += 1
        if interval > 0:
            time.sleep(interval)
    return count


def make_receiver(port: int, group: Optional[str] = None) -> socket.socket:
    """Create a UDP socket bound to port, joining the multicast group if given."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.bind(("", port))
        if group is not None:
            membership = socket.inet_aton(group) + socket.inet_aton("0.0.0.0")
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, membership)
    except BaseException:
        sock.close()
        raise
    return sock


def receive_news(
    sock: socket.socket,
    out: TextIO,
    bufsize: int = BUF_SIZE,
    limit: Optional[int] = None,
) -> int:
    """Write received datagrams to out until an error or limit; return the count."""
    count = 0
    for _ in _rounds(limit):
        try:
            data, _ = sock.recvfrom(bufsize - 1)
        except OSError:
            break
        _emit(out, data.decode("utf-8", errors="replace"))
        count += 1
    return count


_USAGE = (
    "Usage : news send <GroupIP> <PORT>\n"
    "        news broadcast <Broadcast IP> <PORT>\n"
    "        news receive <GroupIP> <PORT>\n"
    "        news receive-broadcast <PORT>"
)
_ARG_COUNTS = {"send": 3, "broadcast": 3, "receive": 3, "receive-broadcast": 2}


def _run_sender(command: str, address: Tuple[str, int]) -> int:
    interval = 2.0 if command == "send" else 1.0
    try:
        sock = make_multicast_sender() if command == "send" else make_broadcast_sender()
    except OSError:
        print("socket() error", file=sys.stderr)
        return 1
    with sock:
        try:
            send_news(sock, address, NEWS_FILE, interval)
        except FileNotFoundError:
            print("fopen() error", file=sys.stderr)
            return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parsed = _parse_command_line(argv, _USAGE, (2, 3))
    if parsed is None:
        return 1
    args, port, _ = parsed
    command = args[0]
    if _ARG_COUNTS.get(command) != len(args):
        print(_USAGE)
        return 1
    if command in ("send", "broadcast"):
        return _run_sender(command, (args[1], port))
    group = args[1] if command == "receive" else None
    try:
        sock = make_receiver(port, group)
    except (OSError, OverflowError):
        print("bind() error", file=sys.stderr)
        return 1
    with sock:
        receive_news(sock, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())