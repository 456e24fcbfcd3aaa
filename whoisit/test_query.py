#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 21:15:20 krylon>
#
# /data/code/python/whoisit/test_query.py
# created on 12. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.test_query

(c) 2026 Benjamin Walkenhorst
"""

import unittest
from typing import Final, Optional

from whoisit.model import ConnectionQuery, ErrorKind
from whoisit.query import ParseFailure, parse_query


class TestParseQuery(unittest.TestCase):
    """Test parsing query lines."""

    def test_01_valid(self) -> None:
        """Test that valid queries yield the ports as given."""
        test_cases: Final[list[tuple[str, int, int]]] = [
            ("6193, 23", 6193, 23),
            ("6193,23", 6193, 23),
            ("6193 , 23", 6193, 23),
            ("   6193 ,\t23   ", 6193, 23),
            ("1,65535", 1, 65535),
            ("65535, 1", 65535, 1),
            ("23, 6193", 23, 6193),
            ("113, 113", 113, 113),
            ("0080, 00023", 80, 23),
            ("6193, 23 # asking nicely", 6193, 23),
            ("6193, 23#", 6193, 23),
        ]

        for line, srv, cli in test_cases:
            with self.subTest(line=line):
                q = parse_query(line)
                self.assertIsInstance(q, ConnectionQuery)
                self.assertEqual(q.server_port, srv)
                self.assertEqual(q.client_port, cli)

    def test_02_invalid(self) -> None:
        """Test that anything else is rejected as an invalid port."""
        test_cases: Final[list[str]] = [
            "",
            "   ",
            "abc, 23",
            "6193; 23",
            "6193 23",
            "6193",
            "6193,",
            ",23",
            "6193, 23, 42",
            "+6193, 23",
            "-1, 23",
            "0, 23",
            "6193, 0",
            "65536, 23",
            "6193, 99999",
            "123456, 1",
            "61 93, 23",
            "6193, 23 extra",
            "0x10, 23",
            "6193, 2\x003",
            "٣, 23",
            "6193.0, 23",
            "6193, 23\n",
        ]

        for line in test_cases:
            with self.subTest(line=line):
                q = parse_query(line)
                self.assertIsInstance(q, ParseFailure)
                self.assertEqual(q.reason, ErrorKind.InvalidPort)

    def test_03_recover(self) -> None:
        """Test which port fields are kept for the error response."""
        test_cases: Final[list[tuple[str, Optional[str], Optional[str]]]] = [
            ("abc, 23", "abc", "23"),
            ("  0 ,  23 ", "0", "23"),
            ("99999,1", "99999", "1"),
            ("+1, -1", "+1", "-1"),
            ("", None, None),
            ("garbage", None, None),
            ("1, 2, 3", "1", "2"),
            ("6193, 23, 42 # three", "6193", "23"),
            ("6193 23", "6193", "23"),
            ("6193\t 23", "6193", "23"),
            ("6193", None, None),
            ("6193 23 42", "6193", "23"),
            ("a:b, 23", None, None),
            ("a b, 23", None, None),
            ("6193,", None, None),
            ("\x01, 23", None, None),
        ]

        for line, srv, cli in test_cases:
            with self.subTest(line=line):
                q = parse_query(line)
                self.assertIsInstance(q, ParseFailure)
                self.assertEqual(q.server_text, srv)
                self.assertEqual(q.client_text, cli)
                self.assertEqual(q.recovered, srv is not None)


# Local Variables: #
# python-indent: 4 #
# End: #
