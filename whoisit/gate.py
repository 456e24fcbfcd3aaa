#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 16:31:12 krylon>
#
# /data/code/python/whoisit/gate.py
# created on 13. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.gate

(c) 2026 Benjamin Walkenhorst
"""

import time
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Condition
from typing import Optional

from whoisit.common import WhoisitError


class GateTimeout(WhoisitError):
    """GateTimeout indicates no slot became available in time."""


@dataclass(kw_only=True, slots=True)
class LookupGate:
    """LookupGate limits how many lookups may run at the same time.

    Callers that find all slots taken wait in the order they arrived.
    """

    size: int
    cond: Condition = field(default_factory=Condition)
    _in_use: int = 0
    _queue: deque = field(default_factory=deque)

    def __post_init__(self) -> None:
        assert self.size > 0, "Gate size must be positive"

    @property
    def in_use(self) -> int:
        """Return the number of slots currently taken."""
        with self.cond:
            return self._in_use

    @property
    def waiting(self) -> int:
        """Return the number of callers waiting for a slot."""
        with self.cond:
            return len(self._queue)

    def acquire(self, timeout: Optional[float] = None) -> bool:
        """Take a slot, waiting at most <timeout> seconds. Return True on success."""
        ticket = object()
        with self.cond:
            self._queue.append(ticket)
            ok: bool = self.cond.wait_for(
                lambda: self._queue[0] is ticket and self._in_use < self.size,
                timeout)
            if not ok:
                self._queue.remove(ticket)
                # Whoever is behind us may be at the head now.
                self.cond.notify_all()
                return False
            self._queue.popleft()
            self._in_use += 1
            self.cond.notify_all()
            return True

    def release(self) -> None:
        """Give back a slot."""
        with self.cond:
            assert self._in_use > 0, "Release without acquire"
            self._in_use -= 1
            self.cond.notify_all()

    @contextmanager
    def slot(self, timeout: Optional[float] = None) -> Iterator[float]:
        """Hold a slot for the duration of the with-block.

        Yields the number of seconds spent waiting. Raises GateTimeout if no slot
        could be had within <timeout> seconds.
        """
        t1: float = time.monotonic()
        if not self.acquire(timeout):
            raise GateTimeout(f"No lookup slot became available within {timeout} seconds")
        try:
            yield time.monotonic() - t1
        finally:
            self.release()

# Local Variables: #
# python-indent: 4 #
# End: #
