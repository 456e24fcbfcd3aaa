#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 20:40:13 krylon>
#
# /data/code/python/whoisit/server.py
# created on 15. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.server

(c) 2026 Benjamin Walkenhorst
"""

import logging
import socket
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import RLock
from typing import Optional

from whoisit import common
from whoisit.config import Config
from whoisit.gate import LookupGate
from whoisit.handler import ConnectionHandler
from whoisit.hostinfo import PeerNamer
from whoisit.listener import Listener
from whoisit.lookup import LsofLookup, OwnershipLookup
from whoisit.resolver import IdentityResolver


@dataclass(kw_only=True, slots=True)
class Server:
    """Server brings together all the moving parts, so to speak."""

    cfg: Config
    lookup: Optional[OwnershipLookup] = None
    clock: Callable[[], float] = time.monotonic
    log: logging.Logger = field(default_factory=lambda: common.get_logger("server"))
    lock: RLock = field(default_factory=RLock)
    gate: LookupGate = field(init=False)
    resolver: IdentityResolver = field(init=False)
    namer: Optional[PeerNamer] = field(init=False, default=None)
    listener: Listener = field(init=False)

    def __post_init__(self) -> None:
        self.cfg.validate()
        if self.lookup is None:
            self.lookup = LsofLookup(path=self.cfg.lsof)
        self.gate = LookupGate(size=self.cfg.max_lookups)
        self.resolver = IdentityResolver(lookup=self.lookup,
                                         gate=self.gate,
                                         lookup_timeout=self.cfg.lookup_timeout,
                                         clock=self.clock)
        if self.cfg.resolve_peers:
            self.namer = PeerNamer()
        self.listener = Listener(addresses=self.cfg.addresses,
                                 port=self.cfg.port,
                                 make_handler=self.make_handler,
                                 max_clients=self.cfg.max_clients,
                                 clock=self.clock)

    @property
    def active(self) -> bool:
        """Return the Server's active flag."""
        return self.listener.active

    def make_handler(self,
                     conn: socket.socket,
                     accepted_at: float,
                     on_close: Callable[[], None]) -> ConnectionHandler:
        """Create a handler for a freshly accepted connection."""
        return ConnectionHandler(conn=conn,
                                 resolver=self.resolver,
                                 timeout=self.cfg.timeout,
                                 max_line=self.cfg.max_line,
                                 clock=self.clock,
                                 accepted_at=accepted_at,
                                 namer=self.namer,
                                 on_close=on_close)

    def start(self) -> None:
        """Bind the listening sockets and start accepting connections.

        Raises ListenError if we cannot listen on any of the configured addresses.
        """
        with self.lock:
            if self.listener.active:
                self.log.debug("%s is already running", common.AppName)
                return
            self.listener.bind()
            self.listener.start()
            self.log.info("%s %s is answering ident queries on %s",
                          common.AppName,
                          common.AppVersion,
                          ", ".join(f"{h} port {p}" for h, p in self.listener.bound))

    def stop(self) -> None:
        """Stop accepting connections."""
        with self.lock:
            self.listener.stop()
            self.log.info("%s has stopped.", common.AppName)

# Local Variables: #
# python-indent: 4 #
# End: #
