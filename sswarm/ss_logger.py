"""System and packet logging for a node."""

from __future__ import annotations

import enum
import logging
from typing import Any

from sswarm.utils import Endpoint, endpoint_to_str

HEADER = "[SS_P2P]"
SYSTEM_LOG_NAME = "ss_system"
PACKET_LOG_NAME = "ss_packet"


class PacketDirection(enum.Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class SsLogger:
    """Writes general events and packet traffic to two separate loggers."""

    def __init__(self, name: str = "sswarm") -> None:
        self.header = HEADER
        self.system_logger = logging.getLogger(f"{name}.{SYSTEM_LOG_NAME}")
        self.packet_logger = logging.getLogger(f"{name}.{PACKET_LOG_NAME}")

    def _compose(self, args: tuple[Any, ...]) -> str:
        return " ".join([self.header, *map(str, args)])

    def log(self, level: int, *args: Any) -> str:
        """Log the arguments, joined by spaces, and return the logged text."""
        text = self._compose(args)
        self.system_logger.log(level, "%s", text)
        return text

    def log_packet(
        self, level: int, direction: PacketDirection, endpoint: Endpoint, *args: Any
    ) -> str:
        """Log a packet sent to or received from ``endpoint``; return the text."""
        tag = "(receive):" if direction is PacketDirection.INCOMING else "(send):"
        text = self._compose((tag, endpoint_to_str(endpoint), *args))
        self.packet_logger.log(level, "%s", text)
        return text