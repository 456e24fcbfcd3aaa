#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 15:02:11 krylon>
#
# /data/code/python/whoisit/query.py
# created on 12. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.query

(c) 2026 Benjamin Walkenhorst

Parse ident query lines. A query looks like "6193, 23", the port on our
side first, the port on the querying host second.
"""

import re
from dataclasses import dataclass
from typing import Final, Optional, Union

from whoisit.model import ConnectionQuery, ErrorKind, valid_port

query_pat: Final[re.Pattern] = re.compile(
    r"^[ \t]*([0-9]{1,5})[ \t]*,[ \t]*([0-9]{1,5})[ \t]*(?:#.*)?\Z",
    re.ASCII | re.DOTALL)

echo_pat: Final[re.Pattern] = re.compile(r"^[\x21-\x2b\x2d-\x39\x3b-\x7e]+\Z", re.ASCII)


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """ParseFailure is a query line we could not make sense of.

    If we can make out the two port fields, we keep their text around so the
    error response can echo them back. Surplus fields are dropped, and a line
    without a comma is split on blanks instead.
    """

    line: str
    reason: ErrorKind = ErrorKind.InvalidPort
    server_text: Optional[str] = None
    client_text: Optional[str] = None

    @property
    def recovered(self) -> bool:
        """Return True if the port fields could be extracted from the line."""
        return self.server_text is not None and self.client_text is not None


def _recover_fields(line: str) -> tuple[Optional[str], Optional[str]]:
    text: Final[str] = line.split("#", 1)[0]
    fields: list[str] = text.split(",")
    if len(fields) == 1:
        # No comma, maybe the ports are separated by blanks.
        fields = text.split()
    if len(fields) < 2:
        return None, None
    srv, cli = fields[0].strip(" \t"), fields[1].strip(" \t")
    if echo_pat.match(srv) and echo_pat.match(cli):
        return srv, cli
    return None, None


def parse_query(line: str) -> Union[ConnectionQuery, ParseFailure]:
    """Parse a query line, stripped of its line terminator."""
    m = query_pat.match(line)
    if m is not None:
        srv: int = int(m[1])
        cli: int = int(m[2])
        if valid_port(srv) and valid_port(cli):
            return ConnectionQuery(server_port=srv, client_port=cli)

    srv_text, cli_text = _recover_fields(line)
    return ParseFailure(line=line,
                        server_text=srv_text,
                        client_text=cli_text)

# Local Variables: #
# python-indent: 4 #
# End: #
