#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 19:30:55 krylon>
#
# /data/code/python/whoisit/listener.py
# created on 14. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.listener

(c) 2026 Benjamin Walkenhorst
"""

import logging
import socket
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import BoundedSemaphore, RLock, Thread
from typing import Final

from whoisit import common
from whoisit.common import WhoisitError
from whoisit.handler import ConnectionHandler

accept_poll: Final[float] = 0.5
accept_backoff: Final[float] = 0.1
backlog: Final[int] = 64

HandlerFactory = Callable[[socket.socket, float, Callable[[], None]], ConnectionHandler]


class ListenError(WhoisitError):
    """ListenError indicates we could not set up a listening socket."""


@dataclass(kw_only=True, slots=True)
class Listener:
    """Listener accepts connections and hands each one to a handler thread."""

    addresses: list[str]
    port: int
    make_handler: HandlerFactory
    max_clients: int = 256
    clock: Callable[[], float] = time.monotonic
    log: logging.Logger = field(default_factory=lambda: common.get_logger("listener"))
    lock: RLock = field(default_factory=RLock)
    sockets: list[socket.socket] = field(default_factory=list)
    threads: list[Thread] = field(default_factory=list)
    slots: BoundedSemaphore = field(init=False)
    _active: bool = False
    _conn_cnt: int = 0
    _clients: int = 0

    def __post_init__(self) -> None:
        assert self.max_clients > 0
        self.slots = BoundedSemaphore(self.max_clients)

    @property
    def active(self) -> bool:
        """Return the Listener's active flag."""
        with self.lock:
            return self._active

    @property
    def clients(self) -> int:
        """Return the number of connections currently being handled."""
        with self.lock:
            return self._clients

    @property
    def bound(self) -> list[tuple[str, int]]:
        """Return the addresses and ports we are actually listening on."""
        with self.lock:
            return [s.getsockname()[:2] for s in self.sockets]

    def bind(self) -> None:
        """Create the listening sockets. Raise ListenError if that fails."""
        with self.lock:
            for addr in self.addresses:
                family = socket.AF_INET6 if ":" in addr else socket.AF_INET
                if family == socket.AF_INET6 and not socket.has_ipv6:
                    self.log.warning("IPv6 is not supported here, not listening on %s", addr)
                    continue

                try:
                    sock = socket.create_server((addr, self.port),
                                                family=family,
                                                backlog=backlog)
                except OSError as err:
                    self.log.critical("Cannot listen on %s port %d: %s",
                                      addr,
                                      self.port,
                                      err)
                    self._close_sockets()
                    raise ListenError(f"Cannot listen on {addr} port {self.port}: {err}") \
                        from err

                sock.settimeout(accept_poll)
                self.sockets.append(sock)
                self.log.debug("Bound to %s port %d", addr, sock.getsockname()[1])

            if len(self.sockets) == 0:
                raise ListenError("No address to listen on")

    def start(self) -> None:
        """Start accepting connections, binding first if necessary."""
        with self.lock:
            if self._active:
                return
            if len(self.sockets) == 0:
                self.bind()

            self._active = True
            for sock in self.sockets:
                host, port = sock.getsockname()[:2]
                t: Thread = Thread(target=self._accept_loop,
                                   name=f"accept_{host}_{port}",
                                   args=(sock, ),
                                   daemon=True)
                t.start()
                self.threads.append(t)

    def stop(self) -> None:
        """Stop accepting connections. Connections in progress finish on their own."""
        with self.lock:
            if not self._active:
                self._close_sockets()
                return
            self._active = False
            threads: list[Thread] = list(self.threads)
            self.threads.clear()

        for t in threads:
            t.join()

        with self.lock:
            self._close_sockets()

    def _close_sockets(self) -> None:
        for sock in self.sockets:
            sock.close()
        self.sockets.clear()

    def _accept_loop(self, sock: socket.socket) -> None:
        host, port = sock.getsockname()[:2]
        self.log.info("Accepting connections on %s port %d", host, port)
        try:
            while self.active:
                try:
                    conn, addr = sock.accept()
                except TimeoutError:
                    continue
                except OSError as err:
                    if not self.active:
                        break
                    self.log.error("%s accepting connection: %s",
                                   err.__class__.__name__,
                                   err)
                    time.sleep(accept_backoff)
                    continue

                self._dispatch(conn, addr[0])
        finally:
            self.log.info("Accept loop for %s port %d is quitting.", host, port)

    def _dispatch(self, conn: socket.socket, peer: str) -> None:
        accepted_at: Final[float] = self.clock()

        if not self.slots.acquire(blocking=False):
            self.log.warning("Too many clients (%d), dropping connection from %s",
                             self.max_clients,
                             peer)
            conn.close()
            return

        with self.lock:
            self._conn_cnt += 1
            self._clients += 1
            cid: int = self._conn_cnt

        try:
            handler: ConnectionHandler = self.make_handler(conn, accepted_at, self._release)
            t: Thread = Thread(target=handler.run,
                               name=f"conn_{cid:06d}",
                               daemon=True)
            t.start()
        except RuntimeError as err:
            self.log.error("Cannot start handler thread for %s: %s", peer, err)
            conn.close()
            self._release()

    def _release(self) -> None:
        with self.lock:
            self._clients -= 1
        self.slots.release()

# Local Variables: #
# python-indent: 4 #
# End: #
