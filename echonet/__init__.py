"""Echo, news and chat servers and clients over TCP and UDP sockets."""

__version__ = "0.1.0"