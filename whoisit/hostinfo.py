#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 17:40:02 krylon>
#
# /data/code/python/whoisit/hostinfo.py
# created on 14. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.hostinfo

(c) 2026 Benjamin Walkenhorst
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from dns.exception import DNSException, Timeout
from dns.rcode import Rcode
from dns.resolver import (NXDOMAIN, Answer, LifetimeTimeout, NoAnswer,
                          NoNameservers, NoResolverConfiguration, Resolver)

from whoisit import common
from whoisit.model import Address


@dataclass(kw_only=True, slots=True)
class PeerNamer:
    """PeerNamer looks up the hostnames of peers, so our log is easier to read."""

    timeout: float = 2.0
    log: logging.Logger = field(default_factory=lambda: common.get_logger("hostinfo"))
    res: Optional[Resolver] = None

    def __post_init__(self) -> None:
        if self.res is None:
            try:
                self.res = Resolver()
            except NoResolverConfiguration as err:
                self.log.warning("Cannot configure DNS resolver, peer names will not be "
                                 "looked up: %s",
                                 err)
                return

        self.res.timeout = self.timeout
        self.res.lifetime = self.timeout

    def name(self, addr: Address) -> Optional[str]:
        """Attempt to resolve an IP address into a hostname."""
        if self.res is None:
            return None

        try:
            answer: Answer = self.res.resolve_address(str(addr))
            match answer.response.rcode():
                case Rcode.NOERROR if answer.rrset is not None:
                    return answer.rrset[0].to_text().rstrip(".")
                case _:
                    self.log.debug("Unexpected response code %s for %s",
                                   answer.response.rcode(),
                                   addr)
        except NXDOMAIN:
            pass
        except NoNameservers as fail:
            self.log.debug("Failed to get a response for %s from upstream resolver(s): %s",
                           addr,
                           fail)
        except (LifetimeTimeout, NoAnswer, Timeout):
            pass
        except DNSException as err:
            self.log.debug("%s looking up name of %s: %s",
                           err.__class__.__name__,
                           addr,
                           err)
        return None

# Local Variables: #
# python-indent: 4 #
# End: #
