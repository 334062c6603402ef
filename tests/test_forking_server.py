import io
import signal
import socket
import threading
import time

import pytest

from echonet.forking_server import (
    REPLY_PREFIX,
    main,
    reap_children,
    run_split_client,
    serve_forking,
)
from echonet.iterative_server import create_tcp_listener, echo_stream


def _recv_exactly(sock, size):
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


@pytest.mark.parametrize(
    "lines, expected",
    [
        (["hello\n", "world\n", "q\n", "ignored\n"], "hello\nworld\n"),
        ([], ""),
    ],
)
def test_run_split_client(lines, expected):
    client_end, server_end = socket.socketpair()
    for end in (client_end, server_end):
        end.settimeout(5)

    def serve():
        with server_end:
            echo_stream(server_end)

    thread = threading.Thread(target=serve)
    thread.start()
    out = io.StringIO()
    with client_end:
        total = run_split_client(client_end, lines, out)
    thread.join(5)

    assert out.getvalue().replace(REPLY_PREFIX, "") == expected
    assert total == len(expected.encode())


@pytest.mark.parametrize("argv", [[], ["a", "b", "c"], ["port"]])
def test_main_rejects_bad_arguments(argv, capsys):
    assert main(argv) == 1
    assert "Usage" in capsys.readouterr().out