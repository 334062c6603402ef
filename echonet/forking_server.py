"""TCP echo server with one concurrent handler per client, and a split client."""

from __future__ import annotations

import codecs
import os
import socket
import sys
import threading
from typing import Iterable, List, Optional, Sequence, TextIO

from echonet.client import is_quit_command
from echonet.iterative_server import (
    _emit,
    _listen_or_report,
    _parse_command_line,
    echo_stream,
)
from echonet.udp_echo import REPLY_PREFIX

BUF_SIZE = 30


def reap_children(signum, frame) -> List[int]:
    """Collect every finished child process without blocking.

    Prints and returns the ids of the reaped processes.
    """
    reaped = []
    while True:
        try:
            pid, _ = os.waitpid(-1, os.WNOHANG)
        except ChildProcessError:
            break
        if pid == 0:
            break
        _emit(sys.stdout, f"removed proc id: {pid} \n")
        reaped.append(pid)
    return reaped


def _serve_client(conn: socket.socket, out: TextIO) -> None:
    try:
        with conn:
            echo_stream(conn, BUF_SIZE)
    except OSError:
        return
    _emit(out, "client disconnected...\n")


def serve_forking(
    listener: socket.socket,
    out: Optional[TextIO] = None,
    max_clients: Optional[int] = None,
) -> int:
    """Accept clients and echo each one in its own concurrent handler.

    Runs forever unless max_clients is given; returns the number of
    clients handed to a handler.
    """
    out = sys.stdout if out is None else out
    handed = 0
    while max_clients is None or handed < max_clients:
        try:
            conn, _ = listener.accept()
        except (InterruptedError, ConnectionError):
            continue
        _emit(out, "new client connected...\n")
        try:
            threading.Thread(target=_serve_client, args=(conn, out), daemon=True).start()
        except RuntimeError:
            conn.close()
            continue
        handed += 1
    return handed


def run_split_client(sock: socket.socket, lines: Iterable[str], out: TextIO) -> int:
    """Send lines and print replies concurrently.

    Sending stops at a quit command or when lines run out, after which the
    write side is shut down; replies are read until the server closes.
    Returns the number of bytes received.
    """

    def write_routine() -> None:
        for line in lines:
            if is_quit_command(line):
                break
            sock.sendall(line.encode("utf-8"))
        sock.shutdown(socket.SHUT_WR)

    writer = threading.Thread(target=write_routine, daemon=True)
    writer.start()
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    total = 0
    while data := sock.recv(BUF_SIZE):
        total += len(data)
        text = decoder.decode(data)
        if text:
            _emit(out, f"{REPLY_PREFIX}{text}")
    writer.join()
    return total


def main(argv: Optional[Sequence[str]] = None) -> int:
    parsed = _parse_command_line(
        argv, "Usage : forking-echo <port> | forking-echo <IP> <port>", (1, 2)
    )
    if parsed is None:
        return 1
    args, port, _ = parsed
    if len(args) == 1:
        listener = _listen_or_report(port)
        if listener is None:
            return 1
        with listener:
            serve_forking(listener)
        return 0
    try:
        sock = socket.create_connection((args[0], port))
    except (OSError, OverflowError):
        print("connect() error!", file=sys.stderr)
        return 1
    with sock:
        run_split_client(sock, sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())