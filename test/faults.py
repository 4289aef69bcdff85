"""
Faults module tests (codes, options, rich rendering).

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from rich.text import Text

from helmsman.faults import *


class TestFaults(TestCase):
    """Fault construction and rendering."""

    def testMessageAndOptions(self):
        fault = MissingValueError("flag needs an argument: '--name'", token="--name")
        self.assertEqual(str(fault), "flag needs an argument: '--name'")
        self.assertEqual(fault.options["token"], "--name")
        self.assertEqual(fault.code, FaultCode.MISSING_VALUE)
        with self.assertRaises(TypeError):
            fault.options["token"] = "x"

    def testMessageMustBeString(self):
        with self.assertRaises(TypeError):
            InvalidValueError(1)

    def testHierarchy(self):
        for fault in (UnrecognizedOptionError, MissingValueError, InvalidValueError, ActionPanicError):
            self.assertTrue(issubclass(fault, CommandException))

    def testRichRendering(self):
        rendered = UnrecognizedOptionError("unrecognized option '--x'").__rich__()
        self.assertIsInstance(rendered, Text)
        self.assertEqual(rendered.plain, "unrecognized option '--x'")

    def testCaptureWrapsException(self):
        error = RuntimeError("boom")
        fault = ActionPanicError.capture(error)
        self.assertEqual(fault.message, "boom")
        self.assertIs(fault.options["cause"], error)
        self.assertIs(fault.__cause__, error)
        self.assertEqual(fault.__rich__().plain, "fatal: boom")

    def testCaptureUsesTypeNameForEmptyMessage(self):
        self.assertEqual(ActionPanicError.capture(KeyboardInterrupt()).message, "KeyboardInterrupt")

    def testCaptureKeepsExistingReport(self):
        fault = ActionPanicError("already")
        self.assertIs(ActionPanicError.capture(fault), fault)


if __name__ == "__main__":
    unittest.main()
