"""The DHT front: routes incoming Kademlia messages and keeps the table alive."""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable

from sswarm.kademlia.k_message import KMessage, Rpc
from sswarm.kademlia.k_observer import FindNodeObserver, KObserverStore, PingObserver
from sswarm.kademlia.node_id import calc_node_id
from sswarm.kademlia.rpc_manager import RpcManager, SendFunc
from sswarm.message import Message
from sswarm.sender import Sender
from sswarm.ss_logger import PacketDirection, SsLogger
from sswarm.utils import Endpoint, endpoint_to_str

MINIMUM_NODES = 5
FIND_NODE_FANOUT = 5
_ROOT_ENDPOINT = Endpoint("0.0.0.0", 0)


class ConnectionMaintainer:
    """Periodically pings known nodes and looks for more when there are few."""

    def __init__(self, manager: "DhtManager", rpc_manager: RpcManager, logger: SsLogger | None = None) -> None:
        self._manager = manager
        self._rpc_manager = rpc_manager
        self._logger = logger
        self.requires_tick = False
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def _schedule(self, delay: float, action: Callable[[], None]) -> None:
        with self._lock:
            if not self.requires_tick:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(delay, action)
            self._timer.daemon = True
            self._timer.start()

    def tick(self) -> None:
        if not self.requires_tick:
            return
        wait = self.send_refresh_ping()
        self._schedule(wait + 1, self.get_remote_nodes)

    def tick_done(self) -> None:
        count = self._manager.direct_routing_table_controller.get_node_count()
        next_tick = 10 if count < MINIMUM_NODES else count * 20
        if not self.requires_tick:
            return
        self._schedule(next_tick, self.tick)

    def get_remote_nodes(self) -> None:
        """When too few nodes are known, ask known nodes for theirs and ping
        every node they report."""
        controller = self._manager.direct_routing_table_controller
        if controller.get_node_count() < MINIMUM_NODES:
            request_eps = controller.collect_endpoint(_ROOT_ENDPOINT, FIND_NODE_FANOUT)

            def on_found(ep: Endpoint) -> None:
                self._rpc_manager.ping_request(ep, controller.auto_update, lambda _ep: None)

            for ep in request_eps:
                self._rpc_manager.find_node_request(ep, request_eps, on_found)
        self.tick_done()

    def send_refresh_ping(self) -> float:
        """Ping every known node: a pong moves it to the back of its bucket,
        a timeout removes it. Returns how long the pings may take."""
        controller = self._manager.direct_routing_table_controller
        for _branch, bucket in controller.iter_buckets():
            for node in bucket.nodes():
                self._rpc_manager.ping_request(
                    node.endpoint,
                    lambda _ep, b=bucket, n=node: b.move_back(n),
                    lambda _ep, b=bucket, n=node: b.delete_node(n),
                )
                if self._logger is not None:
                    self._logger.log_packet(
                        logging.INFO,
                        PacketDirection.OUTGOING,
                        node.endpoint,
                        "(@dht_manager::connection_maintainer)",
                        "refresh ping",
                    )
        return self._rpc_manager.ping_timeout

    def start(self) -> None:
        self.requires_tick = True
        self.tick()

    def stop(self) -> None:
        with self._lock:
            self.requires_tick = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class DhtManager:
    """Entry point for Kademlia traffic of one node."""

    def __init__(self, self_endpoint: Endpoint, sender: Sender, logger: SsLogger | None = None) -> None:
        self.self_endpoint = self_endpoint
        self.self_id = calc_node_id(self_endpoint)
        self.sender = sender
        self.send_func: SendFunc | None = None
        self.observer_store = KObserverStore()
        self.rpc_manager = RpcManager(self.self_id, self.observer_store, sender, None, logger)
        self.maintainer = ConnectionMaintainer(self, self.rpc_manager, logger)
        self._logger = logger

    @property
    def routing_table(self):
        return self.rpc_manager.routing_table

    @property
    def direct_routing_table_controller(self):
        return self.rpc_manager.direct_routing_table_controller

    def init(self, send_func: SendFunc) -> None:
        """Set the function used to send requests; required before starting."""
        self.send_func = send_func
        self.rpc_manager.send_func = send_func

    def income_message(self, msg: Message, endpoint: Endpoint) -> int:
        """Hand a message to the observer waiting for it, else to the RPC manager."""
        param = msg.get_param("kademlia")
        if param is None:
            return 0
        k_msg = KMessage(param)
        try:
            obs_id: uuid.UUID | None = k_msg.observer_id
        except (KeyError, ValueError, TypeError, AttributeError):
            obs_id = None

        if obs_id is not None:
            kind = PingObserver if k_msg.rpc is Rpc.PING else FindNodeObserver
            found = self.observer_store.find(kind, obs_id)
            if found:
                return found[0].income_message(msg, endpoint)

        self.rpc_manager.income_message(msg, endpoint)
        return 0

    def update_global_self_endpoint(self, endpoint: Endpoint) -> None:
        previous = self.self_endpoint
        self.self_endpoint = endpoint
        self.self_id = calc_node_id(endpoint)
        if self._logger is not None:
            self._logger.log(
                logging.INFO,
                "(@dht_manager)",
                "update global self endpoint",
                endpoint_to_str(previous),
                "->",
                endpoint_to_str(endpoint),
            )
        self.rpc_manager.update_self_id(self.self_id)

    def start(self) -> None:
        self.maintainer.start()

    def stop(self) -> None:
        self.maintainer.stop()