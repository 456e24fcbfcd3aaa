#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 16:05:39 krylon>
#
# /data/code/python/whoisit/lookup.py
# created on 13. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.lookup

(c) 2026 Benjamin Walkenhorst

Find out which user owns a TCP connection. We cheat and ask lsof(8), which
already knows how to do this on every Unix we care about.

lsof is run in field output mode (-F), which prints one field per line, the
first character of each line identifying the field:

    p4711
    u1000
    Lalice
    f3
    n127.0.0.1:6193->127.0.0.1:23
"""

import logging
import pwd
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Final, Optional

from whoisit import common
from whoisit.common import WhoisitError
from whoisit.model import Endpoint, LookupKey, canonical_address

lsof_fields: Final[str] = "pLun"


class LookupFailed(WhoisitError):
    """LookupFailed indicates the ownership lookup could not be performed."""


@dataclass(frozen=True, slots=True)
class Candidate:
    """Candidate is a connection reported by the lookup, along with its owner."""

    user: str
    local: Endpoint
    remote: Endpoint
    pid: Optional[int] = None


@dataclass(frozen=True, slots=True)
class LookupOutput:
    """LookupOutput is what a lookup returned, possibly no candidates at all."""

    command: list[str]
    returncode: int
    candidates: list[Candidate]

    @property
    def ok(self) -> bool:
        """Return True if the lookup ran successfully."""
        return self.returncode == 0


class OwnershipLookup(ABC):
    """OwnershipLookup is the interface to whatever mechanism tells us who owns a socket."""

    @abstractmethod
    def lookup(self, key: LookupKey, timeout: Optional[float] = None) -> LookupOutput:
        """List the connections that might match <key>.

        Raise LookupFailed if the mechanism itself fails.
        """


def _parse_endpoint(text: str) -> Endpoint:
    if text.startswith("["):
        host, sep, port = text[1:].partition("]:")
    else:
        host, sep, port = text.rpartition(":")
    if not sep or not port.isdecimal():
        raise ValueError(f"Cannot parse endpoint {text!r}")
    return Endpoint(address=canonical_address(host), port=int(port))


def _user_for_uid(uid: str) -> Optional[str]:
    try:
        return pwd.getpwuid(int(uid)).pw_name
    except (KeyError, ValueError):
        return None


def parse_lsof(text: str) -> list[Candidate]:
    """Extract the connections and their owners from lsof's field output."""
    candidates: list[Candidate] = []
    pid: Optional[int] = None
    login: Optional[str] = None
    uid: Optional[str] = None

    for line in text.splitlines():
        if line == "":
            continue
        tag, value = line[0], line[1:].strip()
        match tag:
            case "p":
                pid = int(value) if value.isdecimal() else None
                login = None
                uid = None
            case "L":
                login = value
            case "u":
                uid = value
            case "n" if "->" in value:
                local, _, remote = value.partition("->")
                try:
                    lep = _parse_endpoint(local)
                    rep = _parse_endpoint(remote.split(" ", 1)[0])
                except ValueError as err:
                    raise LookupFailed(f"Unparsable connection name {value!r}") from err

                user: Optional[str] = login
                if user is None and uid is not None:
                    user = _user_for_uid(uid)
                if user is None:
                    continue

                candidates.append(Candidate(user=user,
                                            local=lep,
                                            remote=rep,
                                            pid=pid))

    return candidates


def lsof_target(key: LookupKey) -> str:
    """Return the argument to lsof's -i option that selects connections to the remote end."""
    addr = key.remote_address
    if addr.version == 6:
        return f"6TCP@[{addr}]:{key.remote_port}"
    return f"4TCP@{addr}:{key.remote_port}"


@dataclass(kw_only=True, slots=True)
class LsofLookup(OwnershipLookup):
    """LsofLookup runs lsof to find connections."""

    path: str = "lsof"
    log: logging.Logger = field(default_factory=lambda: common.get_logger("lookup"))

    def command(self, key: LookupKey) -> list[str]:
        """Return the command line used to look up <key>."""
        return [self.path, "-n", "-P", "-F", lsof_fields, "-i", lsof_target(key)]

    def lookup(self, key: LookupKey, timeout: Optional[float] = None) -> LookupOutput:
        cmd: Final[list[str]] = self.command(key)
        self.log.debug("Run %s", " ".join(cmd))

        try:
            proc = subprocess.run(cmd,
                                  stdin=subprocess.DEVNULL,
                                  capture_output=True,
                                  timeout=timeout,
                                  check=False)
        except subprocess.TimeoutExpired as err:
            raise LookupFailed(f"{self.path} did not finish within {timeout:.1f} seconds") \
                from err
        except (OSError, ValueError) as err:
            raise LookupFailed(f"Cannot run {self.path!r}: {err}") from err

        stdout: str = proc.stdout.decode("utf-8", errors="replace")

        # lsof exits with 1 if it did not find anything.
        match proc.returncode:
            case 0:
                candidates = parse_lsof(stdout)
                self.log.debug("%s found %d candidate(s) for %s -> %s",
                               self.path,
                               len(candidates),
                               key.local,
                               key.remote)
                return LookupOutput(command=cmd,
                                    returncode=proc.returncode,
                                    candidates=candidates)
            case 1 if stdout.strip() == "":
                self.log.debug("%s found nothing for %s -> %s",
                               self.path,
                               key.local,
                               key.remote)
                return LookupOutput(command=cmd,
                                    returncode=proc.returncode,
                                    candidates=[])
            case code:
                stderr: str = proc.stderr.decode("utf-8", errors="replace").strip()
                raise LookupFailed(f"{self.path} exited with status {code}: {stderr}")

# Local Variables: #
# python-indent: 4 #
# End: #
