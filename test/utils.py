"""
Utilities tests (sentinel, coalesce, rename, mirror, name/quote helpers).

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from helmsman.utils import *


class TestUnset(TestCase):
    """The Unset sentinel."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsyAndPrintable(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testUnion(self):
        self.assertIsInstance("x", str | Unset)
        self.assertIsInstance(Unset, str | Unset)
        self.assertNotIsInstance(1, str | Unset)

    def testSealed(self):
        with self.assertRaises(TypeError):
            class Sub(UnsetType):
                pass


class TestHelpers(TestCase):
    """Small helpers."""

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertEqual(coalesce("", "fallback"), "")
        self.assertIsNone(coalesce(Unset))

    def testRename(self):
        @rename("renamed")
        def original():
            pass

        self.assertEqual(original.__name__, "renamed")
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename(1, "x")

    def testMirrorDetachesContainers(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = ["a", ["b"]]

        holder = Holder()
        self.assertEqual(holder.items, ("a", ("b",)))
        with self.assertRaises(AttributeError):
            holder.items = ()

    def testSplitNames(self):
        self.assertEqual(splitnames("i, input"), ("i", "input"))
        self.assertEqual(splitnames(" a,,b , "), ("a", "b"))
        self.assertEqual(splitnames(""), ())

    def testUnquote(self):
        self.assertEqual(unquote("'a b'"), "a b")
        self.assertEqual(unquote('"x"'), "x")
        self.assertEqual(unquote("'x\""), "'x\"")
        self.assertEqual(unquote("'"), "'")
        self.assertEqual(unquote("''"), "")


if __name__ == "__main__":
    unittest.main()
