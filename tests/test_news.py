import io
import socket

import pytest

from echonet.news import (
    make_broadcast_sender,
    make_multicast_sender,
    make_receiver,
    main,
    read_news_chunks,
    receive_news,
    send_news,
)


def test_short_lines_are_kept_whole(tmp_path):
    path = tmp_path / "news.txt"
    path.write_text("hello\nworld\n", encoding="utf-8")
    assert list(read_news_chunks(path)) == ["hello\n", "world\n"]


def test_long_line_is_split(tmp_path):
    text = "x" * 70 + "\n" + "tail"
    path = tmp_path / "news.txt"
    path.write_text(text, encoding="utf-8")
    chunks = list(read_news_chunks(path, 30))
    assert "".join(chunks) == text
    assert all(len(chunk) <= 29 for chunk in chunks)
    assert chunks[-1] == "tail"


def test_chunk_size_too_small(tmp_path):
    path = tmp_path / "news.txt"
    path.write_text("a\n", encoding="utf-8")
    with pytest.raises(ValueError):
        list(read_news_chunks(path, 1))


def test_multicast_sender_ttl():
    with make_multicast_sender() as sock:
        assert sock.getsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL) == 64


def test_broadcast_sender_flag():
    with make_broadcast_sender() as sock:
        assert sock.getsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST) != 0
        assert sock.type == socket.SOCK_DGRAM


def test_send_and_receive_round_trip(tmp_path):
    text = "Breaking news: the quick brown fox jumps over the lazy dog.\nSecond line\n"
    path = tmp_path / "news.txt"
    path.write_text(text, encoding="utf-8")
    with make_receiver(0) as receiver, socket.socket(
        socket.AF_INET, socket.SOCK_DGRAM
    ) as sender:
        receiver.settimeout(2.0)
        port = receiver.getsockname()[1]
        sent = send_news(sender, ("127.0.0.1", port), path, interval=0)
        assert sent == len(list(read_news_chunks(path)))
        out = io.StringIO()
        assert receive_news(receiver, out, limit=sent) == sent
        assert out.getvalue() == text


def test_receive_stops_on_timeout():
    with make_receiver(0) as receiver:
        receiver.settimeout(0.05)
        out = io.StringIO()
        assert receive_news(receiver, out) == 0
        assert out.getvalue() == ""


def test_send_missing_file_raises(tmp_path):
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sender:
        with pytest.raises(FileNotFoundError):
            send_news(sender, ("127.0.0.1", 9), tmp_path / "missing.txt", interval=0)


def test_main_reports_missing_news_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main(["broadcast", "127.0.0.1", "9"]) == 1
    assert "fopen() error" in capsys.readouterr().err


def test_main_usage(capsys):
    assert main(["receive-broadcast"]) == 1
    assert "Usage" in capsys.readouterr().out