"""Receiving datagrams on the node's socket and handing them to a handler."""

from __future__ import annotations

import logging
import select
import threading
from typing import Callable

from sswarm.socket_manager import UdpSocketManager
from sswarm.ss_logger import PacketDirection, SsLogger
from sswarm.utils import Endpoint

RECV_BUFFER_SIZE = 65535
_POLL_INTERVAL_S = 0.1

PacketHandler = Callable[[bytes, Endpoint], None]

_log = logging.getLogger(__name__)


class UdpServer:
    """Reads datagrams on a background thread and passes each one to ``handler``."""

    def __init__(
        self,
        socket_manager: UdpSocketManager,
        handler: PacketHandler,
        logger: SsLogger | None = None,
    ) -> None:
        self.socket_manager = socket_manager
        self._handler = handler
        self._logger = logger
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Begin receiving; False when the socket is not open."""
        if self.socket_manager.sock.fileno() == -1:
            return False
        if self.is_running:
            return True
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._serve, name="sswarm-udp-server", daemon=True
        )
        self._thread.start()
        return True

    def _serve(self) -> None:
        sock = self.socket_manager.sock
        while not self._stop_event.is_set():
            try:
                ready, _, _ = select.select([sock], [], [], _POLL_INTERVAL_S)
            except (OSError, ValueError):
                break
            if not ready:
                continue
            try:
                data, addr = sock.recvfrom(RECV_BUFFER_SIZE)
            except OSError:
                continue
            try:
                src = Endpoint(addr[0], addr[1])
            except ValueError:
                continue
            if self._logger is not None:
                self._logger.log_packet(logging.INFO, PacketDirection.INCOMING, src)
            try:
                self._handler(data, src)
            except Exception:
                _log.exception("packet handler failed for datagram from %s", src)

    def stop(self) -> None:
        """Stop receiving and wait for the receiving thread to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None
        if self._logger is not None:
            self._logger.log(logging.WARNING, "(@udp_server)", "stop")