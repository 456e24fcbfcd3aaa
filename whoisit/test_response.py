#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 21:31:02 krylon>
#
# /data/code/python/whoisit/test_response.py
# created on 12. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the whoisit ident daemon. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
whoisit.test_response

(c) 2026 Benjamin Walkenhorst
"""

import unittest
from typing import Final

from whoisit.model import ConnectionQuery, ErrorKind, Failed, Identified
from whoisit.query import parse_query
from whoisit.response import (format_error, format_parse_failure,
                              format_result, safe_user_name)

query: Final[ConnectionQuery] = ConnectionQuery(server_port=6193, client_port=23)


class TestFormatResult(unittest.TestCase):
    """Test rendering lookup results."""

    def test_01_userid(self) -> None:
        """Test a successful lookup."""
        line = format_result(query, Identified(user_name="alice"))
        self.assertEqual(line, b"6193 , 23 : USERID : UNIX : alice\r\n")

    def test_02_errors(self) -> None:
        """Test each of the error responses."""
        test_cases: Final[list[tuple[ErrorKind, bytes]]] = [
            (ErrorKind.InvalidPort, b"6193 , 23 : ERROR : INVALID-PORT\r\n"),
            (ErrorKind.NoUser, b"6193 , 23 : ERROR : NO-USER\r\n"),
            (ErrorKind.HiddenUser, b"6193 , 23 : ERROR : HIDDEN-USER\r\n"),
            (ErrorKind.UnknownError, b"6193 , 23 : ERROR : UNKNOWN-ERROR\r\n"),
        ]

        for kind, expected in test_cases:
            with self.subTest(kind=kind):
                self.assertEqual(format_result(query, Failed(reason=kind)), expected)

    def test_03_unsafe_user_names(self) -> None:
        """Test that user names that would garble the response are not sent."""
        test_cases: Final[list[str]] = [
            "",
            "   ",
            "ali:ce",
            "ali,ce",
            "alice\r\n",
            "al\x00ice",
            "al\x7fice",
            "alice\t",
            "jürgen",
        ]

        for name in test_cases:
            with self.subTest(name=name):
                self.assertFalse(safe_user_name(name))
                line = format_result(query, Identified(user_name=name))
                self.assertEqual(line, b"6193 , 23 : ERROR : UNKNOWN-ERROR\r\n")
                self.assertEqual(line.count(b":"), 2)
                self.assertEqual(line.count(b","), 1)

    def test_04_odd_but_safe(self) -> None:
        """Test that unusual user names that do not break the grammar are sent."""
        for name in ("www-data", "first.last", "nobody4", "_apt", "a b"):
            with self.subTest(name=name):
                self.assertTrue(safe_user_name(name))
                line = format_result(query, Identified(user_name=name))
                self.assertTrue(line.endswith(f": USERID : UNIX : {name}\r\n".encode()))

    def test_05_opsys(self) -> None:
        """Test a different operating system tag, and an unusable one."""
        line = format_result(query, Identified(user_name="bob", opsys_tag="OTHER"))
        self.assertEqual(line, b"6193 , 23 : USERID : OTHER : bob\r\n")
        line = format_result(query, Identified(user_name="bob", opsys_tag="UN:IX"))
        self.assertEqual(line, b"6193 , 23 : ERROR : UNKNOWN-ERROR\r\n")


class TestFormatFailure(unittest.TestCase):
    """Test rendering queries that could not be parsed."""

    def test_01_echo_ports(self) -> None:
        """Test that recognizable port fields are echoed back."""
        line = format_parse_failure(parse_query("abc, 23"))
        self.assertEqual(line, b"abc , 23 : ERROR : INVALID-PORT\r\n")
        self.assertTrue(line.endswith(b": ERROR : INVALID-PORT\r\n"))

        line = format_parse_failure(parse_query("70000,23"))
        self.assertEqual(line, b"70000 , 23 : ERROR : INVALID-PORT\r\n")

    def test_02_garbage(self) -> None:
        """Test that unparsable lines get an error with empty port fields."""
        for text in ("", "HELO", "6193", "a:b,c", "\x01\x02"):
            with self.subTest(text=text):
                line = format_parse_failure(parse_query(text))
                self.assertEqual(line, b" , : ERROR : UNKNOWN-ERROR\r\n")

    def test_03_malformed_ports(self) -> None:
        """Test that surplus fields or a missing comma still get INVALID-PORT."""
        test_cases: Final[list[tuple[str, bytes]]] = [
            ("6193, 23, 42", b"6193 , 23 : ERROR : INVALID-PORT\r\n"),
            ("1,2,3", b"1 , 2 : ERROR : INVALID-PORT\r\n"),
            ("6193 23", b"6193 , 23 : ERROR : INVALID-PORT\r\n"),
        ]

        for text, expected in test_cases:
            with self.subTest(text=text):
                self.assertEqual(format_parse_failure(parse_query(text)), expected)

    def test_04_format_error(self) -> None:
        """Test the generic error line."""
        self.assertEqual(format_error(ErrorKind.UnknownError),
                         b" , : ERROR : UNKNOWN-ERROR\r\n")
        self.assertEqual(format_error(ErrorKind.NoUser, 1, 2),
                         b"1 , 2 : ERROR : NO-USER\r\n")


# Local Variables: #
# python-indent: 4 #
# End: #
