"""Ownership of the node's bound UDP socket."""

from __future__ import annotations

import ipaddress
import socket

from sswarm.utils import Endpoint


class UdpSocketManager:
    """Opens a UDP socket and binds it to the given endpoint."""

    def __init__(self, endpoint: Endpoint) -> None:
        version = ipaddress.ip_address(endpoint.address).version
        family = socket.AF_INET6 if version == 6 else socket.AF_INET
        self.endpoint = endpoint
        self.sock = socket.socket(family, socket.SOCK_DGRAM)
        try:
            self.sock.bind((endpoint.address, endpoint.port))
        except OSError:
            self.sock.close()
            raise

    def local_endpoint(self) -> Endpoint:
        """The address and port the socket is actually bound to."""
        host, port = self.sock.getsockname()[:2]
        return Endpoint(host, port)

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "UdpSocketManager":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()