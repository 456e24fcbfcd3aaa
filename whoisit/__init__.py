#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 14:10:26 krylon>
#
# /data/code/python/whoisit/__init__.py
# created on 12. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.__init__

(c) 2026 Benjamin Walkenhorst

whoisit is an ident (RFC 1413) daemon. It relies on lsof(8) to find out who
owns a given TCP connection.
"""

# Local Variables: #
# python-indent: 4 #
# End: #
