"""
Tests for the internal utilities.

This module verifies:
- The Unset sentinel (singleton, falsy, stable repr, final type).
- rename() in function and decorator forms.
- mirror() freezing containers on the way out.
- program() resolving the displayed program name.
"""
import sys
import unittest
from types import MappingProxyType
from unittest import TestCase
from unittest.mock import patch

from tagopts.utils import Unset, UnsetType, rename, mirror, program


class UnsetTest(TestCase):
    """Test suite for the Unset sentinel."""

    def testSingleton(self) -> None:
        self.assertIs(Unset, UnsetType())

    def testFalsely(self) -> None:
        self.assertFalse(bool(Unset))

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testFinalClass(self) -> None:
        with self.assertRaises(TypeError):
            type("UnsetType", (UnsetType,), {})


class HelpersTest(TestCase):
    """Test suite for the helper functions."""

    def testRenameFunctionForm(self) -> None:
        def work():
            pass

        self.assertIs(rename(work, "job"), work)
        self.assertEqual(work.__name__, "job")
        self.assertEqual(work.__qualname__, "job")

    def testRenameDecoratorForm(self) -> None:
        @rename("job")
        def work():
            pass

        self.assertEqual(work.__name__, "job")

    def testRenameArity(self) -> None:
        with self.assertRaises(TypeError):
            rename()

    def testMirrorFreezesContainers(self) -> None:
        class Holder:
            items = mirror("items")
            table = mirror("table")
            name = mirror("name")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}
                self._name = "holder"

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        self.assertIsInstance(holder.table, MappingProxyType)
        self.assertEqual(holder.name, "holder")
        with self.assertRaises(AttributeError):
            holder.items = []

    def testProgramUsesArgvBasename(self) -> None:
        self.assertEqual(program(["/usr/local/bin/tool", "x"]), "tool")

    def testProgramDefaultsToSysArgv(self) -> None:
        with patch.object(sys, "argv", ["/opt/bin/server", "--verbose"]):
            self.assertEqual(program(), "server")


if __name__ == "__main__":
    unittest.main()
