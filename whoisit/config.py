#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 20:02:37 krylon>
#
# /data/code/python/whoisit/config.py
# created on 15. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.config

(c) 2026 Benjamin Walkenhorst

The configuration file is optional. If it exists, it is a TOML file with a
single table, e.g.:

    [whoisit]
    port = 113
    addresses = ["0.0.0.0", "::"]
    timeout = 30.0
    lookup_timeout = 10.0
    max_lookups = 8
    lsof = "/usr/sbin/lsof"
"""

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Final, Optional, Union

from whoisit import common
from whoisit.common import WhoisitError

section: Final[str] = "whoisit"


class ConfigError(WhoisitError):
    """ConfigError indicates a problem with the configuration."""


@dataclass(kw_only=True, slots=True)
class Config:
    """Config holds the settings of the daemon."""

    addresses: list[str] = field(default_factory=lambda: ["0.0.0.0", "::"])
    port: int = 113
    timeout: float = 30.0
    lookup_timeout: float = 10.0
    max_lookups: int = 8
    max_clients: int = 256
    max_line: int = 1000
    lsof: str = "lsof"
    resolve_peers: bool = True

    @classmethod
    def load(cls, path: Optional[Union[Path, str]] = None) -> "Config":
        """Load the configuration from <path>, or from the default location.

        A missing file is not an error, we just use the defaults.
        """
        if path is None:
            path = common.path.config
        path = Path(path)

        cfg = cls()
        if not path.exists():
            return cfg

        try:
            with open(path, "rb") as fh:
                raw: dict[str, Any] = tomllib.load(fh)
        except (OSError, tomllib.TOMLDecodeError) as err:
            raise ConfigError(f"Cannot read configuration file {path}: {err}") from err

        values = raw.get(section, {})
        if not isinstance(values, dict):
            raise ConfigError(f"[{section}] in {path} must be a table")

        cfg.update(**values)
        return cfg

    def update(self, **values: Any) -> None:
        """Override settings. Values that are None are ignored."""
        known: Final[dict[str, Any]] = {f.name: f.type for f in fields(self)}
        for key, val in values.items():
            if val is None:
                continue
            if key not in known:
                raise ConfigError(f"Unknown configuration option {key!r}")

            match known[key]:
                case t if t is float and isinstance(val, (int, float)) \
                        and not isinstance(val, bool):
                    val = float(val)
                case t if t is int and isinstance(val, int) and not isinstance(val, bool):
                    pass
                case t if t is bool and isinstance(val, bool):
                    pass
                case t if t is str and isinstance(val, str):
                    pass
                case t if t == list[str] and isinstance(val, list) \
                        and all(isinstance(x, str) for x in val):
                    val = list(val)
                case _:
                    raise ConfigError(f"Invalid value for {key}: {val!r}")

            setattr(self, key, val)

    def validate(self) -> None:
        """Check the configuration for consistency. Raise ConfigError if something is wrong."""
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"Port must be between 0 and 65535, not {self.port}")
        if len(self.addresses) == 0:
            raise ConfigError("At least one address to listen on is required")
        if self.timeout <= 0 or self.lookup_timeout <= 0:
            raise ConfigError("Timeouts must be positive")
        if self.lookup_timeout >= self.timeout:
            raise ConfigError(f"The lookup timeout ({self.lookup_timeout}) must be shorter "
                              f"than the connection timeout ({self.timeout})")
        if self.max_lookups < 1 or self.max_clients < 1:
            raise ConfigError("Concurrency limits must be at least 1")
        if self.max_line < 16:
            raise ConfigError(f"Maximum line length {self.max_line} is too short")
        if self.lsof == "":
            raise ConfigError("Path to lsof must not be empty")

# Local Variables: #
# python-indent: 4 #
# End: #
