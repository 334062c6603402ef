# echonet

A small collection of socket servers and clients built on the standard
library: echo services over TCP and UDP, several ways of serving many clients
(one after another, a thread per client, `select`, `epoll`), delivery of a
news file by UDP multicast or broadcast, and a multi-client chat room.

The `epoll` server needs Linux; the rest needs a POSIX system.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Commands

Servers take the port to listen on; clients take the server's IP address and
port. In every interactive client a line of just `q` or `Q` ends the session.

| Command | What it does |
|---------|--------------|
| `echonet-client <IP> <port>` | Interactive TCP echo client |
| `echonet-iterative-server <port>` | TCP echo server serving five clients, one after another, then exiting |
| `echonet-iterative-server --half-close <port>` | Accepts one client, sends it three greeting lines, closes its write side, then prints one line read back |
| `echonet-udp <port>` | UDP echo server (datagrams over 30 bytes are cut short) |
| `echonet-udp <IP> <port>` | UDP echo client |
| `echonet-forking-server <port>` | TCP echo server handling each client in its own thread |
| `echonet-forking-server <IP> <port>` | Client that sends input lines and prints replies concurrently |
| `echonet-select-server <port>` | TCP echo server multiplexing clients with `select` |
| `echonet-epoll-server [--edge] <port>` | TCP echo server using `epoll`, level-triggered by default; `--edge` switches to edge-triggered mode with a 4-byte read buffer |
| `echonet-news send <GroupIP> <PORT>` | Sends `news.txt` to a multicast group, one piece every 2 seconds |
| `echonet-news broadcast <Broadcast IP> <PORT>` | Sends `news.txt` by broadcast, one piece every second |
| `echonet-news receive <GroupIP> <PORT>` | Joins a multicast group and prints what arrives |
| `echonet-news receive-broadcast <PORT>` | Prints broadcast datagrams arriving on a port |
| `echonet-chat <port>` | Chat server relaying every message to all connected clients |
| `echonet-chat <IP> <port> <name>` | Chat client; each line is sent as `[name] line` |

The news sender reads `news.txt` from the current directory and sends it in
pieces of at most 29 characters, never running past the end of a line.

A typical session:

```
echonet-iterative-server 9190
```

and in another terminal:

```
echonet-client 127.0.0.1 9190
Connected......
Input message(Q to quit): hello
Message from server: hello
Input message(Q to quit): q
```

## Using the library

The TCP echo client is a context manager; `exchange` sends a message and
waits until as many bytes have come back:

```python
from echonet.client import EchoClient, is_quit_command

with EchoClient("127.0.0.1", 9190, 1024) as client:
    reply = client.exchange("hello\n")
```

`is_quit_command` is true only for `"q\n"` and `"Q\n"`.

Other building blocks:

- `echonet.iterative_server`: `create_tcp_listener`, `echo_stream`,
  `serve_iterative`, `send_greeting_and_half_close`.
- `echonet.udp_echo`: `serve_udp_echo` (with an optional `max_datagrams`),
  `udp_exchange`, `run_udp_client`.
- `echonet.forking_server`: `serve_forking` (with an optional `max_clients`),
  `run_split_client`, and `reap_children`, a signal handler that collects
  finished child processes without blocking.
- `echonet.select_server.SelectEchoServer` and
  `echonet.epoll_server.EpollEchoServer` (with `TriggerMode.LEVEL` or
  `TriggerMode.EDGE`) wrap a listening socket and can be driven one step at a
  time with `poll_once` or run with `serve_forever`, and are released with
  `close`.
- `echonet.news`: `read_news_chunks`, `make_multicast_sender`,
  `make_broadcast_sender`, `send_news`, `make_receiver`, `receive_news`.
- `echonet.chat`: `ChatRoom`, `handle_client`, `serve_chat`,
  `format_message`, `run_chat_client`.

The chat room keeps track of connected sockets and relays data to all of
them; adding a client to a full room raises `OverflowError`:

```python
from echonet.chat import ChatRoom, format_message

room = ChatRoom(256)
line = format_message("alice", "hi everyone\n")   # "[alice] hi everyone\n"
```

## What it does not do

- There is no encryption or authentication; everything travels in the clear.
- The UDP client sets no timeout: if a datagram or its reply is lost, it
  waits for ever.
- The chat server keeps no history and does not check names; a client's name
  is only a prefix it adds to its own lines.
- The forking server's command uses threads rather than child processes.