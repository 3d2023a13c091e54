"""
Utils module tests (sentinel, canonical spellings, ordinals, suggestions).

Scope
- Validate the Unset sentinel and coalesce().
- Validate canonicalize() ordering and de-duplication.
- Validate ordinal() words and suffixes.
- Validate rename() and mirror() helpers.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from fli import Unset, UnsetType, canonicalize, coalesce, mirror, ordinal, rename, suggest


class TestSentinel(TestCase):
    """Unset and coalesce."""

    def testUnsetIsSingletonAndFalsy(self):
        self.assertIs(UnsetType(), Unset)
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testUnsetTypeIsSealed(self):
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})

    def testCoalesceKeepsFalsyValues(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        for value in (None, 0, "", []):
            with self.subTest(value=value):
                self.assertEqual(coalesce(value, "fallback"), value)


class TestCanonicalize(TestCase):
    """Lookup spellings."""

    def testBareName(self):
        self.assertEqual(canonicalize("help"), ("help", "-help", "--help"))

    def testLongFlag(self):
        self.assertEqual(canonicalize("--help"), ("--help", "-help", "help"))

    def testShortFlag(self):
        self.assertEqual(canonicalize("-h"), ("-h", "--h", "h"))

    def testRejectsNonStrings(self):
        with self.assertRaises(TypeError):
            canonicalize(None)


class TestMessages(TestCase):
    """Ordinals and suggestions."""

    def testOrdinalWords(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")

    def testOrdinalSuffixes(self):
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(12), "12th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(111), "111th")

    def testSuggestClosestFirst(self):
        self.assertEqual(suggest("biuld", ["build", "deploy", "test"]), ["build"])
        self.assertEqual(suggest("zzz", ["build"]), [])


class TestHelpers(TestCase):
    """rename and mirror."""

    def testRenameForms(self):
        @rename("handler")
        def anything(data):
            return data

        self.assertEqual(anything.__name__, "handler")
        self.assertEqual(rename(lambda: None, "other").__qualname__, "other")
        with self.assertRaises(TypeError):
            rename("not callable", "name")

    def testMirrorDetachesContainers(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = [["a"], {"b": [1]}]

        holder = Holder()
        copied = holder.items
        copied[0].append("x")
        copied[1]["b"].append(2)
        self.assertEqual(holder._items, [["a"], {"b": [1]}])


if __name__ == "__main__":
    unittest.main()
