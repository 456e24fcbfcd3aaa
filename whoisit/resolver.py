#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 17:12:48 krylon>
#
# /data/code/python/whoisit/resolver.py
# created on 13. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.resolver

(c) 2026 Benjamin Walkenhorst

The resolver turns a LookupKey into a user name. Running the lookup is
expensive, so the number of lookups in flight is bounded by a LookupGate,
and every lookup is subject to a timeout of its own.

Results are never cached, the owner of a port may change at any time.
"""

import logging
import time
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Final, Optional

from whoisit import common
from whoisit.gate import GateTimeout, LookupGate
from whoisit.lookup import Candidate, LookupFailed, OwnershipLookup
from whoisit.model import (ErrorKind, Failed, Identified, LookupKey,
                           ResolutionResult)

default_opsys: Final[str] = "UNIX"
default_lookup_timeout: Final[float] = 10.0


@dataclass(kw_only=True, slots=True)
class IdentityResolver:
    """IdentityResolver finds the user owning a TCP connection."""

    lookup: OwnershipLookup
    gate: LookupGate
    lookup_timeout: float = default_lookup_timeout
    opsys: str = default_opsys
    clock: Callable[[], float] = time.monotonic
    log: logging.Logger = field(default_factory=lambda: common.get_logger("resolver"))

    def _budget(self, deadline: Optional[float]) -> float:
        if deadline is None:
            return self.lookup_timeout
        return max(0.0, min(self.lookup_timeout, deadline - self.clock()))

    def resolve(self, key: LookupKey, deadline: Optional[float] = None) -> ResolutionResult:
        """Look up the owner of the connection described by <key>.

        <deadline> is an absolute point in time, as returned by the resolver's
        clock, after which there is no point in continuing.
        """
        if not key.valid:
            return Failed(reason=ErrorKind.InvalidPort)

        try:
            with self.gate.slot(self._budget(deadline)) as waited:
                if waited > 1.0:
                    self.log.debug("Waited %.2f seconds for a lookup slot", waited)
                budget: float = self._budget(deadline)
                if budget <= 0:
                    self.log.warning("No time left to look up %s -> %s",
                                     key.local,
                                     key.remote)
                    return Failed(reason=ErrorKind.UnknownError)
                output = self.lookup.lookup(key, budget)
        except GateTimeout:
            self.log.warning("All %d lookup slots are busy, giving up on %s -> %s",
                             self.gate.size,
                             key.local,
                             key.remote)
            return Failed(reason=ErrorKind.UnknownError)
        except LookupFailed as err:
            self.log.error("Lookup for %s -> %s failed: %s",
                           key.local,
                           key.remote,
                           err)
            return Failed(reason=ErrorKind.UnknownError)
        except Exception as err:  # pylint: disable-msg=W0718
            self.log.error("%s looking up %s -> %s: %s\n%s",
                           err.__class__.__name__,
                           key.local,
                           key.remote,
                           err,
                           "\n".join(traceback.format_exception(err)))
            return Failed(reason=ErrorKind.UnknownError)

        matches: list[Candidate] = [c for c in output.candidates
                                    if c.local == key.local and c.remote == key.remote]

        if len(matches) == 0:
            return Failed(reason=ErrorKind.NoUser)

        if len({c.user for c in matches}) > 1:
            self.log.debug("Connection %s -> %s is claimed by several users (%s), using %s",
                           key.local,
                           key.remote,
                           ", ".join(sorted({c.user for c in matches})),
                           matches[0].user)

        return Identified(user_name=matches[0].user, opsys_tag=self.opsys)

# Local Variables: #
# python-indent: 4 #
# End: #
