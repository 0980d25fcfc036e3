"""Sending messages from the node's socket."""

from __future__ import annotations

from typing import Any

from sswarm.message import Message
from sswarm.socket_manager import UdpSocketManager
from sswarm.utils import Endpoint


class Sender:
    """Wraps payloads into messages tagged with the application id and sends them."""

    def __init__(self, socket_manager: UdpSocketManager, app_id: str | bytes) -> None:
        self.socket_manager = socket_manager
        self.app_id = app_id

    def send(self, dest: Endpoint, param: str, payload: Any) -> bool:
        """Send ``payload`` under the key ``param``; True when the send succeeded."""
        msg = Message.for_app(self.app_id)
        msg.set_param(param, payload)
        return self.send_message(dest, msg)

    def send_message(self, dest: Endpoint, msg: Message) -> bool:
        """Send a complete message; True when the send succeeded."""
        data = msg.encode()
        try:
            self.socket_manager.sock.sendto(data, (dest.address, dest.port))
        except OSError:
            return False
        return True