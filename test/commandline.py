"""
Matcher behavioral tests (token grammar, command selection, faults).

Scope
- Validate long/short forms, inline and spaced values, glued short values.
- Validate boolean and no-argument-default flags never consuming the next token.
- Validate raw mode after '--' and command selection rules.
- Validate faults for unknown flags, missing values and rejected values.

Conventions
- Test method names follow CamelCase per project convention.
"""
import ipaddress
import unittest
from unittest import TestCase

from helmsman import Cell, Command, Flag, Kind
from helmsman.commandline import Commandline
from helmsman.faults import (
    FaultCode,
    InvalidValueError,
    MissingValueError,
    UnrecognizedOptionError,
)


def _initialized(*flags):
    for flag in flags:
        flag.initialize()
    return list(flags)


class TestFlagForms(TestCase):
    """Values reach their cells through every accepted spelling."""

    def testMixedLine(self):
        cells = {
            "b": Cell(bool),
            "i": Cell(int),
            "int64": Cell(Kind.INT64),
            "f": Cell(Kind.FLOAT32),
            "s": Cell(str),
            "string-list": Cell(list[str]),
            "int-list": Cell(list[int]),
            "ip": Cell(Kind.IP),
            "ipmask": Cell(Kind.IPMASK),
        }
        flags = _initialized(
            Flag("b", cells["b"]),
            Flag("i, int", cells["i"]),
            Flag("int64", cells["int64"]),
            Flag("f", cells["f"]),
            Flag("s", cells["s"]),
            Flag("string-list", cells["string-list"]),
            Flag("int-list", cells["int-list"]),
            Flag("ip", cells["ip"]),
            Flag("ipmask", cells["ipmask"]),
        )
        line = Commandline(flags).parse([
            "-b",
            "-i=12",
            "--int64", "12345",
            "-f0.1",
            "-s='a b'",
            "--string-list=a",
            "--string-list", "b",
            "--int-list=0",
            "--int-list", "1",
            "--ip=127.0.0.1",
            "--ipmask=255.255.0.0",
        ])
        self.assertEqual(line.args, [])
        self.assertIsNone(line.command)
        self.assertIs(cells["b"].value, True)
        self.assertEqual(cells["i"].value, 12)
        self.assertEqual(cells["int64"].value, 12345)
        self.assertEqual(cells["f"].value, 0.1)
        self.assertEqual(cells["s"].value, "a b")
        self.assertEqual(cells["string-list"].value, ["a", "b"])
        self.assertEqual(cells["int-list"].value, [0, 1])
        self.assertEqual(cells["ip"].value, ipaddress.ip_address("127.0.0.1"))
        self.assertEqual(str(flags[8].value), "ffff0000")
        self.assertTrue(all(flag.visited for flag in flags))

    def testBooleanSpellings(self):
        b1, b2, b3, b4 = (Cell(bool) for _ in range(4))
        flags = _initialized(Flag("b1", b1), Flag("b2", b2), Flag("b3", b3), Flag("b4", b4, default="true"))
        Commandline(flags).parse(["--b1", "--b2=false", "--b3=on"])
        self.assertIs(b1.value, True)
        self.assertIs(b2.value, False)
        self.assertIs(b3.value, True)
        self.assertIs(b4.value, True)
        self.assertFalse(flags[3].visited)

    def testBooleanDoesNotConsumeNextToken(self):
        cell = Cell(bool)
        line = Commandline(_initialized(Flag("v", cell))).parse(["-v", "false"])
        self.assertIs(cell.value, True)
        self.assertEqual(line.args, ["false"])

    def testNoArgDefault(self):
        cell = Cell(str)
        flags = _initialized(Flag("color", cell, noarg="auto"))
        line = Commandline(flags).parse(["--color", "always"])
        self.assertEqual(cell.value, "auto")
        self.assertEqual(line.args, ["always"])
        Commandline(flags).parse(["--color=never"])
        self.assertEqual(cell.value, "never")

    def testEmptyInlineValue(self):
        cell = Cell(str, "x")
        Commandline(_initialized(Flag("name", cell))).parse(["--name="])
        self.assertEqual(cell.value, "")

    def testShortSpacedValue(self):
        cell = Cell(str)
        Commandline(_initialized(Flag("o", cell))).parse(["-o", "out.txt"])
        self.assertEqual(cell.value, "out.txt")

    def testSpacedValueMayLookLikeFlag(self):
        cell = Cell(str)
        Commandline(_initialized(Flag("o", cell), Flag("x", bool))).parse(["-o", "-x"])
        self.assertEqual(cell.value, "-x")

    def testLoneDashIsPositional(self):
        line = Commandline(_initialized(Flag("x", bool))).parse(["-", "-x"])
        self.assertEqual(line.args, ["-"])

    def testPositionalsInterleaveWithFlags(self):
        cell = Cell(int)
        line = Commandline(_initialized(Flag("n", cell))).parse(["a", "-n", "3", "b"])
        self.assertEqual(line.args, ["a", "b"])
        self.assertEqual(cell.value, 3)


class TestRawMode(TestCase):
    """Everything after '--' is positional."""

    def testDoubleDash(self):
        line = Commandline().parse(["--", "-a", "--bb"])
        self.assertEqual(line.args, ["-a", "--bb"])

    def testDoubleDashAfterPositional(self):
        line = Commandline(_initialized(Flag("a", bool))).parse(["x", "--", "-a", "--"])
        self.assertEqual(line.args, ["x", "-a", "--"])


class TestCommandSelection(TestCase):
    """Child commands are matched by exact name while matching is open."""

    def setUp(self):
        self.debug = Command("debug, d")
        self.build = Command("build")

    def testCommandTakesRemainder(self):
        line = Commandline(commands=[self.debug]).parse(["debug", "-a", "--bb"])
        self.assertIs(line.command, self.debug)
        self.assertEqual(line.args, ["-a", "--bb"])

    def testUnknownTokenMatchesNothing(self):
        line = Commandline(commands=[self.debug]).parse(["help"])
        self.assertIsNone(line.command)
        self.assertEqual(line.args, ["help"])

    def testAliasMatches(self):
        line = Commandline(commands=[self.debug, self.build]).parse(["d"])
        self.assertIs(line.command, self.debug)

    def testMatchingIsCaseSensitive(self):
        line = Commandline(commands=[self.build]).parse(["Build"])
        self.assertIsNone(line.command)

    def testFlagsBeforeCommandAreParsed(self):
        cell = Cell(bool)
        line = Commandline(_initialized(Flag("v", cell)), [self.build]).parse(["-v", "build", "-v"])
        self.assertIs(cell.value, True)
        self.assertIs(line.command, self.build)
        self.assertEqual(line.args, ["-v"])

    def testPositionalClosesMatching(self):
        line = Commandline(commands=[self.build]).parse(["x", "build"])
        self.assertIsNone(line.command)
        self.assertEqual(line.args, ["x", "build"])

    def testDoubleDashDisablesMatching(self):
        line = Commandline(commands=[self.build]).parse(["--", "build"])
        self.assertIsNone(line.command)
        self.assertEqual(line.args, ["build"])


class TestFaults(TestCase):
    """Matching faults carry stable messages and codes."""

    def testUnknownLongFlag(self):
        with self.assertRaises(UnrecognizedOptionError) as context:
            Commandline().parse(["--test"])
        self.assertEqual(str(context.exception), "unrecognized option '--test'")
        self.assertEqual(context.exception.code, FaultCode.UNRECOGNIZED_OPTION)

    def testUnknownLongFlagWithValue(self):
        with self.assertRaises(UnrecognizedOptionError) as context:
            Commandline().parse(["--test=1"])
        self.assertEqual(str(context.exception), "unrecognized option '--test=1'")

    def testUnknownShortFlag(self):
        with self.assertRaises(UnrecognizedOptionError) as context:
            Commandline(_initialized(Flag("a", bool))).parse(["-z"])
        self.assertEqual(str(context.exception), "unrecognized option '-z'")

    def testBareDoubleDashEqualsIsUnknown(self):
        with self.assertRaises(UnrecognizedOptionError):
            Commandline().parse(["--=x"])

    def testSuggestionsKeptInOptions(self):
        with self.assertRaises(UnrecognizedOptionError) as context:
            Commandline(_initialized(Flag("output"))).parse(["--outptu", "x"])
        self.assertEqual(context.exception.options["suggestions"], ["--output"])

    def testMissingLongValue(self):
        with self.assertRaises(MissingValueError) as context:
            Commandline(_initialized(Flag("name"))).parse(["--name"])
        self.assertEqual(str(context.exception), "flag needs an argument: '--name'")
        self.assertEqual(context.exception.code, FaultCode.MISSING_VALUE)

    def testMissingShortValue(self):
        with self.assertRaises(MissingValueError) as context:
            Commandline(_initialized(Flag("n, name"))).parse(["-n"])
        self.assertEqual(str(context.exception), "flag needs an argument: '-n'")

    def testInvalidValueNamesFlag(self):
        with self.assertRaises(InvalidValueError) as context:
            Commandline(_initialized(Flag("i, int", int))).parse(["--int=abc"])
        self.assertTrue(str(context.exception).startswith("invalid argument 'abc' for '--int' flag: "))
        self.assertEqual(context.exception.options["literal"], "abc")
        self.assertIs(context.exception.options["kind"], Kind.INT)

    def testInvalidShortValueNamesFlag(self):
        with self.assertRaises(InvalidValueError) as context:
            Commandline(_initialized(Flag("i, int", int))).parse(["-ix"])
        self.assertTrue(str(context.exception).startswith("invalid argument 'x' for '-i' flag: "))


if __name__ == "__main__":
    unittest.main()
