#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 20:58:41 krylon>
#
# /data/code/python/whoisit/main.py
# created on 15. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.main

(c) 2026 Benjamin Walkenhorst
"""


import argparse
import logging
import pathlib
import sys
import time
from typing import Optional

from whoisit import common
from whoisit.config import Config, ConfigError
from whoisit.listener import ListenError
from whoisit.server import Server


def main(argv: Optional[list[str]] = None) -> int:
    """Run the ident daemon until interrupted. Return the exit status."""
    argp: argparse.ArgumentParser = argparse.ArgumentParser(
        prog=common.AppName,
        description="Answer RFC 1413 ident queries")
    argp.add_argument("-p", "--port",
                      type=int,
                      help="The TCP port to listen on (default 113)")
    argp.add_argument("-a", "--address",
                      action="append",
                      dest="addresses",
                      help="An address to listen on, may be given more than once")
    argp.add_argument("-t", "--timeout",
                      type=float,
                      help="Seconds a client gets to send its query and receive the answer")
    argp.add_argument("-l", "--lookup-timeout",
                      type=float,
                      help="Seconds a single lsof invocation may take")
    argp.add_argument("-c", "--max-lookups",
                      type=int,
                      help="The number of lookups to run in parallel")
    argp.add_argument("-m", "--max-clients",
                      type=int,
                      help="The number of clients to serve at the same time")
    argp.add_argument("--lsof",
                      help="Path to the lsof binary")
    argp.add_argument("-n", "--no-resolve",
                      action="store_true",
                      help="Do not look up the hostnames of clients")
    argp.add_argument("-b", "--basedir",
                      type=pathlib.Path,
                      default=common.path.base(),
                      help="Directory to store application data in")
    argp.add_argument("-f", "--config",
                      type=pathlib.Path,
                      help="The configuration file to use")
    argp.add_argument("-v", "--verbose",
                      action="store_true",
                      help="Print log messages to the terminal")

    args = argp.parse_args(argv)
    common.set_basedir(args.basedir)
    if args.verbose:
        common.set_tty_level(logging.DEBUG)

    log: logging.Logger = common.get_logger("main")

    try:
        cfg: Config = Config.load(args.config)
        cfg.update(port=args.port,
                   addresses=args.addresses,
                   timeout=args.timeout,
                   lookup_timeout=args.lookup_timeout,
                   max_lookups=args.max_lookups,
                   max_clients=args.max_clients,
                   lsof=args.lsof,
                   resolve_peers=False if args.no_resolve else None)
        srv: Server = Server(cfg=cfg)
        srv.start()
    except ConfigError as err:
        log.critical("Invalid configuration: %s", err)
        print(f"Invalid configuration: {err}", file=sys.stderr)
        return 1
    except ListenError as err:
        log.critical("Cannot start: %s", err)
        print(f"Cannot start: {err}", file=sys.stderr)
        return 1

    try:
        while True:
            time.sleep(5)
    except KeyboardInterrupt:
        print("Telling the server to stop.")
        srv.stop()

    return 0


if __name__ == '__main__':
    sys.exit(main())

# Local Variables: #
# python-indent: 4 #
# End: #
