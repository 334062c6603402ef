"""Line-oriented TCP echo client."""

from __future__ import annotations

import socket
import sys
from typing import Iterable, Optional, Sequence, TextIO

BUF_SIZE = 1024
PROMPT = "Input message(Q to quit): "
REPLY_PREFIX = "Message from server: "
QUIT_COMMANDS = frozenset({"q\n", "Q\n"})


def is_quit_command(line: str) -> bool:
    """Return True if the input line asks the client to quit."""
    return line in QUIT_COMMANDS


class EchoClient:
    """A TCP connection to an echo server that sends a message and reads it back."""

    def __init__(self, host: str, port: int, bufsize: int = BUF_SIZE) -> None:
        if bufsize < 2:
            raise ValueError("bufsize must be at least 2")
        self.bufsize = bufsize
        self.sock = socket.create_connection((host, port))

    def exchange(self, message: str) -> str:
        """Send a message and wait until as many bytes have come back."""
        data = message.encode("utf-8")
        self.sock.sendall(data)
        chunks = []
        received = 0
        while received < len(data):
            chunk = self.sock.recv(self.bufsize - 1)
            if not chunk:
                raise ConnectionError("connection closed by server")
            chunks.append(chunk)
            received += len(chunk)
        return b"".join(chunks).decode("utf-8", errors="replace")

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "EchoClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def run_interactive(client: EchoClient, lines: Iterable[str], out: TextIO) -> int:
    """Prompt, echo each line through the server, and stop at a quit command.

    Returns the number of messages exchanged.
    """
    count = 0
    for line in lines:
        out.write(PROMPT)
        out.flush()
        if is_quit_command(line):
            break
        reply = client.exchange(line)
        out.write(f"{REPLY_PREFIX}{reply}")
        out.flush()
        count += 1
    return count


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    usage = "Usage : echo-client <IP> <port>"
    if len(args) != 2:
        print(usage)
        return 1
    host, port_text = args
    try:
        port = int(port_text)
    except ValueError:
        print(usage)
        return 1
    try:
        client = EchoClient(host, port)
    except (OSError, OverflowError):
        print("connect() error!", file=sys.stderr)
        return 1
    print("Connected......")
    with client:
        try:
            run_interactive(client, sys.stdin, sys.stdout)
        except OSError:
            print("read() error!", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())