"""A node of the overlay: socket, receive pool, DHT and command handling."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from sswarm.kademlia.dht_manager import DhtManager
from sswarm.kademlia.direct_routing_table_controller import DirectRoutingTableController
from sswarm.message import Message
from sswarm.message_pool import MessageHub, MessagePool
from sswarm.multicast_manager import MulticastManager
from sswarm.peer import Peer, calc_peer_id
from sswarm.sender import Sender
from sswarm.socket_manager import UdpSocketManager
from sswarm.ss_logger import SsLogger
from sswarm.udp_server import UdpServer
from sswarm.utils import Endpoint, endpoint_to_str, str_to_endpoint

APP_ID = "abcdefgh"
DEFAULT_NODE_CONTROLLER_TICK_TIME_S = 30
DEFAULT_GLOBAL_ADDRESS_REFRESH_TICK_TIME_S = 60


class NodeController:
    """Owns every part of a node and routes incoming packets between them."""

    def __init__(self, self_endpoint: Endpoint) -> None:
        self.logger = SsLogger()
        self.message_pool = MessagePool(self.get_peer, self.logger, requires_refresh=True)
        self.socket_manager = UdpSocketManager(self_endpoint)
        self.self_endpoint = self.socket_manager.local_endpoint()
        self.global_self_endpoint = Endpoint("0.0.0.0", 0)
        self.sender = Sender(self.socket_manager, APP_ID)
        self.udp_server = UdpServer(self.socket_manager, self.on_receive_packet, self.logger)
        self.dht_manager = DhtManager(self.self_endpoint, self.sender, self.logger)
        self.dht_manager.init(self.sender.send)

    @property
    def message_hub(self) -> MessageHub:
        return self.message_pool.message_hub

    @property
    def direct_routing_table_controller(self) -> DirectRoutingTableController:
        return self.dht_manager.direct_routing_table_controller

    def on_receive_packet(self, raw: bytes, endpoint: Endpoint) -> None:
        """Decode a datagram, let the DHT see it and keep it in the pool.

        Raises ValueError when the datagram is not a valid message.
        """
        msg = Message.decode(raw)
        if "kademlia" in msg:
            self.dht_manager.income_message(msg, endpoint)
        self.message_pool.store(msg, endpoint)

    def on_command_input(self, inputs: Sequence[str]) -> None:
        """Run an already split command: ``stop`` or ``send <address:port> <payload>``."""
        if not inputs:
            return
        command = inputs[0]
        if command == "stop":
            self.stop()
        elif command == "send":
            if len(inputs) < 3:
                raise ValueError("usage: send <address:port> <payload>")
            peer = self.get_peer(str_to_endpoint(inputs[1]))
            peer.send(inputs[2])

    def start(self, boot_eps: Iterable[Endpoint] | None = None) -> None:
        """Start receiving, DHT maintenance and pool refreshing.

        Each boot endpoint is pinged and added to the routing table when it answers.
        """
        self.udp_server.start()
        self.dht_manager.start()
        controller = self.direct_routing_table_controller
        for ep in boot_eps or ():
            self.dht_manager.rpc_manager.ping_request(
                ep, controller.auto_update, lambda _ep: None
            )
        self.message_pool.set_requires_refresh(True)
        self.logger.log(logging.INFO, "(@node_controller)", "start")
        self.logger.log(
            logging.INFO,
            "(@node_controller)",
            "self endpoint: " + endpoint_to_str(self.self_endpoint),
        )

    def stop(self) -> None:
        self.udp_server.stop()
        self.message_pool.set_requires_refresh(False)
        self.dht_manager.stop()
        self.logger.log(logging.WARNING, "(@node_controller)", "stop")

    def close(self) -> None:
        """Stop the node and release its socket."""
        self.stop()
        self.socket_manager.close()

    def __enter__(self) -> "NodeController":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def get_peer(self, endpoint: Endpoint) -> Peer:
        buffer = self.message_pool.get_peer_message_buffer(calc_peer_id(endpoint))
        return Peer(endpoint, buffer, self.sender.send)

    def get_multicast_manager(self) -> MulticastManager:
        return MulticastManager(self.dht_manager.routing_table, self.get_peer)

    def update_global_self_endpoint(self, endpoint: Endpoint) -> None:
        previous = self.global_self_endpoint
        self.global_self_endpoint = endpoint
        self.logger.log(
            logging.INFO,
            "(@node_controller)",
            "update global self endpoint",
            endpoint_to_str(previous),
            "->",
            endpoint_to_str(endpoint),
        )
        self.dht_manager.update_global_self_endpoint(endpoint)