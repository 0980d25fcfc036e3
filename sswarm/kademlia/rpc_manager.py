"""Kademlia RPCs: sending requests and answering incoming ones."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from sswarm.kademlia.direct_routing_table_controller import DirectRoutingTableController
from sswarm.kademlia.k_message import KMessage, MessageType, Rpc
from sswarm.kademlia.k_observer import (
    DEFAULT_PING_RESPONSE_TIMEOUT_S,
    EndpointHandler,
    FindNodeObserver,
    KObserverStore,
    PingObserver,
)
from sswarm.kademlia.k_routing_table import KRoutingTable
from sswarm.kademlia.node_id import NodeId
from sswarm.message import Message
from sswarm.sender import Sender
from sswarm.ss_logger import PacketDirection, SsLogger
from sswarm.utils import Endpoint

DEFAULT_FIND_NODE_SIZE = 10

SendFunc = Callable[[Endpoint, str, Any], None]


class RpcManager:
    """Owns the routing table and handles ping and find_node RPCs."""

    def __init__(
        self,
        self_id: NodeId,
        observer_store: KObserverStore,
        sender: Sender,
        send_func: SendFunc | None,
        logger: SsLogger | None = None,
    ) -> None:
        self.self_id = self_id
        self.observer_store = observer_store
        self.sender = sender
        self.send_func = send_func
        self.ping_timeout: float = DEFAULT_PING_RESPONSE_TIMEOUT_S
        self.routing_table = KRoutingTable(self_id)
        self.direct_routing_table_controller = DirectRoutingTableController(
            self.routing_table
        )
        self._logger = logger

    def _log_outgoing(self, endpoint: Endpoint, what: str) -> None:
        if self._logger is not None:
            self._logger.log_packet(logging.INFO, PacketDirection.OUTGOING, endpoint, what)

    def _send_request(self, endpoint: Endpoint, k_msg: KMessage) -> None:
        if self.send_func is None:
            raise RuntimeError("no send function configured for requests")
        self.send_func(endpoint, "kademlia", k_msg.encode())

    def ping_request(
        self, endpoint: Endpoint, on_pong: EndpointHandler, on_timeout: EndpointHandler
    ) -> PingObserver:
        """Ping ``endpoint``; the observer is stored before the request goes out."""
        obs = PingObserver(endpoint, on_pong, on_timeout, self.ping_timeout)
        obs.init()
        self.observer_store.add(obs)

        k_msg = KMessage.request(Rpc.PING)
        k_msg.observer_id = obs.id
        self._send_request(endpoint, k_msg)
        self._log_outgoing(endpoint, "(kademlia ping request)")
        return obs

    def find_node_request(
        self,
        endpoint: Endpoint,
        ignore_eps: Iterable[Endpoint],
        on_response: EndpointHandler,
    ) -> FindNodeObserver:
        """Ask ``endpoint`` for nodes it knows, excluding ``ignore_eps``."""
        obs = FindNodeObserver(on_response)
        obs.init()
        self.observer_store.add(obs)

        k_msg = KMessage.request(Rpc.FIND_NODE)
        k_msg.observer_id = obs.id
        k_msg.ignore_endpoints = ignore_eps
        self._send_request(endpoint, k_msg)
        self._log_outgoing(endpoint, "(kademlia find_node request)")
        return obs

    def ping_response(self, k_msg: KMessage, endpoint: Endpoint) -> None:
        """Answer a ping and record the pinging node in the routing table."""
        k_msg.message_type = MessageType.RESPONSE
        self.sender.send(endpoint, "kademlia", k_msg.encode())
        self.direct_routing_table_controller.auto_update_batch([endpoint])
        self._log_outgoing(endpoint, "(kademlia ping response)")

    def find_node_response(self, k_msg: KMessage, endpoint: Endpoint) -> None:
        """Answer with known endpoints, leaving out the requester and ignored ones."""
        ignore_eps = k_msg.ignore_endpoints + [endpoint]
        k_msg.found_endpoints = self.direct_routing_table_controller.collect_endpoint(
            endpoint, DEFAULT_FIND_NODE_SIZE, ignore_eps
        )
        k_msg.message_type = MessageType.RESPONSE
        self.sender.send(endpoint, "kademlia", k_msg.encode())
        self._log_outgoing(endpoint, "(kademlia find_node response)")

    def income_request(self, k_msg: KMessage, endpoint: Endpoint) -> int:
        if k_msg.rpc is Rpc.PING:
            self.ping_response(k_msg, endpoint)
        elif k_msg.rpc is Rpc.FIND_NODE:
            self.find_node_response(k_msg, endpoint)
        return 0

    def income_response(self, k_msg: KMessage, endpoint: Endpoint) -> int:
        """Responses are handled by observers; nothing is left to do here."""
        return 0

    def income_message(self, msg: Message, endpoint: Endpoint) -> int:
        param = msg.get_param("kademlia")
        if param is None:
            return 0
        k_msg = KMessage(param)
        if k_msg.message_type is MessageType.REQUEST:
            return self.income_request(k_msg, endpoint)
        return self.income_response(k_msg, endpoint)

    def update_self_id(self, node_id: NodeId) -> None:
        self.self_id = node_id
        self.routing_table.update_self_id(node_id)