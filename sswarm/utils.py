"""Endpoint helpers shared by the node, the message pool and the DHT."""

from __future__ import annotations

import ipaddress
import random
import shutil
from dataclasses import dataclass

MIN_RANDOM_PORT = 1024
MAX_PORT = 65535


@dataclass(frozen=True)
class Endpoint:
    """A UDP endpoint: an IP address and a port."""

    address: str
    port: int

    def __post_init__(self) -> None:
        try:
            normalized = str(ipaddress.ip_address(self.address))
        except ValueError as exc:
            raise ValueError(f"invalid IP address: {self.address!r}") from exc
        if not isinstance(self.port, int) or not 0 <= self.port <= MAX_PORT:
            raise ValueError(f"invalid port: {self.port!r}")
        object.__setattr__(self, "address", normalized)

    def __str__(self) -> str:
        return endpoint_to_str(self)


def endpoint_to_binary(ep: Endpoint) -> bytes:
    """Return the address text followed by the port as two little-endian bytes."""
    return ep.address.encode("ascii") + ep.port.to_bytes(2, "little")


def endpoint_to_str(ep: Endpoint) -> str:
    """Encode an endpoint as ``address:port``."""
    return f"{ep.address}:{ep.port}"


def str_to_endpoint(text: str) -> Endpoint:
    """Decode an ``address:port`` string; raises ValueError when malformed."""
    host, sep, port_text = text.partition(":")
    if not sep:
        raise ValueError(f"missing port in endpoint: {text!r}")
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ValueError(f"invalid port in endpoint: {text!r}") from exc
    return Endpoint(host, port)


def addr_pair_to_endpoint(host: str, port: int) -> Endpoint:
    """Build an endpoint from an address string and a port."""
    return Endpoint(host, port)


def generate_random_endpoint(rng: random.Random | None = None) -> Endpoint:
    """Return an IPv4 endpoint with non-zero octets and a non-privileged port."""
    rng = rng or random.SystemRandom()
    octets = [rng.randint(1, 255) for _ in range(4)]
    port = rng.randint(MIN_RANDOM_PORT, MAX_PORT)
    return Endpoint(".".join(map(str, octets)), port)


def get_console_width() -> int:
    """Return the width of the terminal in columns."""
    return shutil.get_terminal_size(fallback=(80, 24)).columns