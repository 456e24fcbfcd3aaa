#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 15:20:44 krylon>
#
# /data/code/python/whoisit/response.py
# created on 12. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.response

(c) 2026 Benjamin Walkenhorst

Render lookup results as RFC 1413 response lines. Every function in here
returns exactly one CRLF-terminated ASCII line.
"""

import re
from typing import Final, Optional, Union

from whoisit.model import (ConnectionQuery, ErrorKind, Failed, Identified,
                           ResolutionResult)
from whoisit.query import ParseFailure

eol: Final[str] = "\r\n"

# Printable ASCII minus the field separators.
user_pat: Final[re.Pattern] = re.compile(r"^[\x20-\x2b\x2d-\x39\x3b-\x7e]+\Z", re.ASCII)
opsys_pat: Final[re.Pattern] = re.compile(r"^[A-Za-z0-9_\-]+\Z", re.ASCII)


def safe_user_name(name: str) -> bool:
    """Return True if <name> can be sent without breaking the response grammar."""
    return bool(user_pat.match(name)) and name.strip() != ""


def _ports(server: Optional[Union[int, str]], client: Optional[Union[int, str]]) -> str:
    if server is None or client is None:
        return " ,"
    return f"{server} , {client}"


def format_error(kind: ErrorKind,
                 server_port: Optional[Union[int, str]] = None,
                 client_port: Optional[Union[int, str]] = None) -> bytes:
    """Render an ERROR response. Missing ports leave the port fields empty."""
    return f"{_ports(server_port, client_port)} : ERROR : {kind.token}{eol}".encode("ascii")


def format_result(query: ConnectionQuery, result: ResolutionResult) -> bytes:
    """Render the outcome of a lookup for <query>."""
    match result:
        case Identified(user_name=user, opsys_tag=opsys) \
                if safe_user_name(user) and opsys_pat.match(opsys):
            line: str = f"{query} : USERID : {opsys} : {user}{eol}"
            return line.encode("ascii")
        case Identified():
            return format_error(ErrorKind.UnknownError, query.server_port, query.client_port)
        case Failed(reason=reason):
            return format_error(reason, query.server_port, query.client_port)

    raise TypeError(f"Unexpected resolution result {result!r}")


def format_parse_failure(failure: ParseFailure) -> bytes:
    """Render the response to a query line that did not parse."""
    if failure.recovered:
        return format_error(failure.reason, failure.server_text, failure.client_text)
    return format_error(ErrorKind.UnknownError)

# Local Variables: #
# python-indent: 4 #
# End: #
