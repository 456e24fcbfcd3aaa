#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 18:47:19 krylon>
#
# /data/code/python/whoisit/handler.py
# created on 14. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.handler

(c) 2026 Benjamin Walkenhorst

A ConnectionHandler deals with exactly one ident connection: it reads one
query, answers it, and closes the connection. Each connection has a fixed
amount of time to get all of this done; once that is used up, we hang up
without saying anything.
"""

import logging
import socket
import time
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Final, Optional

from whoisit import common
from whoisit.common import WhoisitError
from whoisit.hostinfo import PeerNamer
from whoisit.model import Address, ConnectionQuery, ErrorKind, LookupKey, canonical_address
from whoisit.query import ParseFailure, parse_query
from whoisit.resolver import IdentityResolver
from whoisit.response import format_error, format_parse_failure, format_result

rcv_buf: Final[int] = 512
default_timeout: Final[float] = 30.0
default_max_line: Final[int] = 1000
default_poll: Final[float] = 1.0


class LineTooLong(WhoisitError):
    """LineTooLong indicates the peer sent more than we are willing to read."""


class State(Enum):
    """State is the stage a connection is in."""

    AwaitingQuery = auto()
    Resolving = auto()
    Responding = auto()
    Closed = auto()


@dataclass(kw_only=True, slots=True)
class ConnectionHandler:
    """ConnectionHandler answers a single ident query."""

    conn: socket.socket
    resolver: IdentityResolver
    timeout: float = default_timeout
    max_line: int = default_max_line
    poll: float = default_poll
    clock: Callable[[], float] = time.monotonic
    accepted_at: Optional[float] = None
    namer: Optional[PeerNamer] = None
    on_close: Optional[Callable[[], None]] = None
    log: logging.Logger = field(default_factory=lambda: common.get_logger("handler"))
    state: State = State.AwaitingQuery
    deadline: float = field(init=False)
    peer: Optional[Address] = None
    local: Optional[Address] = None
    line: Optional[str] = None
    response: Optional[bytes] = None
    sent: bool = False

    def __post_init__(self) -> None:
        if self.accepted_at is None:
            self.accepted_at = self.clock()
        self.deadline = self.accepted_at + self.timeout

    def remaining(self) -> float:
        """Return the number of seconds left until the connection's deadline."""
        return self.deadline - self.clock()

    def run(self) -> None:
        """Handle the connection from start to finish. Never raises."""
        try:
            self._serve()
        except Exception as err:  # pylint: disable-msg=W0718
            self.log.error("%s handling connection from %s: %s\n%s",
                           err.__class__.__name__,
                           self.peer,
                           err,
                           "\n".join(traceback.format_exception(err)))
        finally:
            self.close()

        self._report()

    def _serve(self) -> None:
        try:
            self.local = canonical_address(self.conn.getsockname()[0])
            self.peer = canonical_address(self.conn.getpeername()[0])
        except OSError as err:
            self.log.debug("Peer is gone before we got started: %s", err)
            return

        try:
            self.line = self._read_line()
        except LineTooLong:
            self.log.warning("%s sent a query longer than %d bytes",
                             self.peer,
                             self.max_line)
            self._respond(format_error(ErrorKind.UnknownError))
            return
        except TimeoutError:
            self.log.debug("%s did not send a query in time", self.peer)
            return
        except OSError as err:
            self.log.debug("Error reading query from %s: %s", self.peer, err)
            return

        if self.line is None:
            self.log.debug("%s hung up without sending a query", self.peer)
            return

        self.state = State.Resolving
        query = parse_query(self.line)
        match query:
            case ParseFailure():
                response = format_parse_failure(query)
            case ConnectionQuery():
                key: LookupKey = LookupKey.derive(query, self.local, self.peer)
                result = self.resolver.resolve(key, self.deadline)
                response = format_result(query, result)

        self._respond(response)

    def _read_line(self) -> Optional[str]:
        """Read one line from the peer, without its line terminator.

        Return None if the peer closed the connection before sending anything.
        Raise TimeoutError if the deadline passes first.
        """
        buf: bytearray = bytearray()

        while True:
            remaining: float = self.remaining()
            if remaining <= 0:
                raise TimeoutError("Deadline passed while waiting for query")

            self.conn.settimeout(min(remaining, self.poll))
            try:
                chunk: bytes = self.conn.recv(rcv_buf)
            except TimeoutError:
                continue

            if len(chunk) == 0:
                # Peer sent EOF, take what we have as the query.
                if len(buf) == 0:
                    return None
                break

            buf.extend(chunk)
            idx: int = buf.find(b"\n")
            if idx >= 0:
                del buf[idx:]
                break
            if len(buf) > self.max_line + 1:
                raise LineTooLong(f"Received {len(buf)} bytes without line terminator")

        if buf.endswith(b"\r"):
            del buf[-1:]
        if len(buf) > self.max_line:
            raise LineTooLong(f"Query is {len(buf)} bytes long")

        return buf.decode("latin-1")

    def _respond(self, response: bytes) -> None:
        self.state = State.Responding
        self.response = response

        remaining: float = self.remaining()
        if remaining <= 0:
            self.log.debug("Deadline for %s passed before we could respond", self.peer)
            return

        try:
            self.conn.settimeout(remaining)
            self.conn.sendall(response)
            self.sent = True
        except OSError as err:
            self.log.debug("Failed to send response to %s: %s", self.peer, err)

    def close(self) -> None:
        """Close the connection, if that has not happened, yet."""
        if self.state == State.Closed:
            return

        self.state = State.Closed
        try:
            self.conn.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Not connected anymore.
            pass
        self.conn.close()

        if self.on_close is not None:
            self.on_close()

    def _report(self) -> None:
        if self.line is None and not self.sent:
            return

        peer: str = str(self.peer)
        if self.namer is not None and self.peer is not None:
            name: Optional[str] = self.namer.name(self.peer)
            if name is not None:
                peer = f"{name} ({self.peer})"

        answer: str = self.response.decode("ascii").strip() if self.sent else "nothing"
        self.log.info("Query %r from %s, answered %s",
                      self.line,
                      peer,
                      answer)

# Local Variables: #
# python-indent: 4 #
# End: #
