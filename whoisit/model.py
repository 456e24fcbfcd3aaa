#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 14:32:50 krylon>
#
# /data/code/python/whoisit/model.py
# created on 12. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.model

(c) 2026 Benjamin Walkenhorst

Value types shared by the parser, the resolver and the formatter. None of
these outlive the connection they were created for.
"""

from dataclasses import dataclass
from enum import Enum
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Final, Union

Address = Union[IPv4Address, IPv6Address]

port_min: Final[int] = 1
port_max: Final[int] = 65535


def valid_port(port: int) -> bool:
    """Return True if <port> is a usable TCP port number."""
    return isinstance(port, int) and not isinstance(port, bool) and \
        port_min <= port <= port_max


def canonical_address(addr: Union[str, Address]) -> Address:
    """Parse <addr> and unwrap IPv4-mapped IPv6 addresses.

    A dual-stack socket reports IPv4 peers as ::ffff:a.b.c.d, while lsof
    reports the same connection with the plain IPv4 address.
    """
    if isinstance(addr, str):
        # Link-local addresses may carry a zone index.
        addr = ip_address(addr.split("%", 1)[0])
    if isinstance(addr, IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


@dataclass(frozen=True, slots=True)
class Endpoint:
    """Endpoint is one end of a TCP connection, an address and a port."""

    address: Address
    port: int

    def __post_init__(self) -> None:
        if not valid_port(self.port):
            raise ValueError(f"Port must be a number between {port_min} and {port_max}, "
                             f"not {self.port!r}")
        object.__setattr__(self, "address", canonical_address(self.address))

    def __str__(self) -> str:
        if self.address.version == 6:
            return f"[{self.address}]:{self.port}"
        return f"{self.address}:{self.port}"


@dataclass(frozen=True, slots=True)
class ConnectionQuery:
    """ConnectionQuery holds the two ports named in an ident query."""

    server_port: int
    client_port: int

    def __post_init__(self) -> None:
        for p in (self.server_port, self.client_port):
            if not valid_port(p):
                raise ValueError(f"Invalid port in query: {p!r}")

    def __str__(self) -> str:
        return f"{self.server_port} , {self.client_port}"


@dataclass(frozen=True, slots=True)
class LookupKey:
    """LookupKey identifies the connection an ident query asks about.

    Local and remote are relative to the connection being interrogated,
    which shares its addresses with the ident connection itself: the
    querying host is the remote end, we are the local end.
    """

    local_address: Address
    local_port: int
    remote_address: Address
    remote_port: int

    @classmethod
    def derive(cls,
               query: ConnectionQuery,
               local_address: Union[str, Address],
               remote_address: Union[str, Address]) -> "LookupKey":
        """Build a LookupKey from a query and the ident connection's own addresses."""
        return cls(local_address=canonical_address(local_address),
                   local_port=query.server_port,
                   remote_address=canonical_address(remote_address),
                   remote_port=query.client_port)

    @property
    def valid(self) -> bool:
        """Return True if both ports are usable."""
        return valid_port(self.local_port) and valid_port(self.remote_port)

    @property
    def local(self) -> Endpoint:
        """Return the local end of the connection."""
        return Endpoint(address=self.local_address, port=self.local_port)

    @property
    def remote(self) -> Endpoint:
        """Return the remote end of the connection."""
        return Endpoint(address=self.remote_address, port=self.remote_port)


class ErrorKind(Enum):
    """ErrorKind enumerates the error responses RFC 1413 defines."""

    InvalidPort = "INVALID-PORT"
    NoUser = "NO-USER"
    HiddenUser = "HIDDEN-USER"
    UnknownError = "UNKNOWN-ERROR"

    @property
    def token(self) -> str:
        """Return the token sent over the wire."""
        return self.value


@dataclass(frozen=True, slots=True)
class Identified:
    """Identified is a successful lookup."""

    user_name: str
    opsys_tag: str = "UNIX"


@dataclass(frozen=True, slots=True)
class Failed:
    """Failed is a lookup that did not yield a user."""

    reason: ErrorKind


ResolutionResult = Union[Identified, Failed]

# Local Variables: #
# python-indent: 4 #
# End: #
