"""
Tests for the shared helpers (Unset sentinel, coalesce, rename, mirror).

Scope
- Singleton identity, falsy semantics and union support of Unset.
- coalesce() only replaces Unset.
- rename() in both call forms.
- mirror() exposes immutable views of private state.
"""
import unittest
from threading import Thread, Lock
from types import MappingProxyType
from unittest import TestCase

from arbor.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` sentinel.
    """

    def testSingleton(self) -> None:
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsy(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, None)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testUnion(self) -> None:
        """
        `str | Unset` works in isinstance checks from both sides.
        """
        self.assertTrue(isinstance("text", str | Unset))
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance(Unset, Unset | str))
        self.assertFalse(isinstance(1, str | Unset))

    def testFinalClass(self) -> None:
        with self.assertRaises(TypeError):
            type("UnsetType", (UnsetType,), {})

    def testThreadSafetySingleton(self) -> None:
        results = []
        lock = Lock()

        def worker():
            instance = UnsetType()
            with lock:
                results.append(instance)

        threads = [Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(results), 16)
        for instance in results:
            self.assertIs(instance, Unset)


class HelpersTest(TestCase):
    """
    Test suite for coalesce(), rename() and mirror().
    """

    def testCoalesceReplacesUnset(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))

    def testCoalescePreservesFalsyValues(self) -> None:
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce("", "fallback"), "")
        self.assertEqual(coalesce(0, 1), 0)

    def testRenameDirect(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testRenameDecorator(self) -> None:
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")

    def testRenameRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename(1, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 1)
        with self.assertRaises(TypeError):
            rename()

    def testMirrorViews(self) -> None:
        class Holder:
            items = mirror("items")
            table = mirror("table")
            names = mirror("names")
            label = mirror("label")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}
                self._names = {"x"}
                self._label = "text"

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        self.assertIsInstance(holder.table, MappingProxyType)
        self.assertEqual(holder.names, frozenset({"x"}))
        self.assertEqual(holder.label, "text")

        with self.assertRaises(TypeError):
            holder.table["b"] = 2  # type: ignore[index]
        with self.assertRaises(AttributeError):
            holder.items = ()  # type: ignore[misc]

    def testMirrorRejectsNonString(self) -> None:
        with self.assertRaises(TypeError):
            mirror(1)


if __name__ == '__main__':
    unittest.main()
