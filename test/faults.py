"""
Faults module behavioral tests (payloads, rendering, trigger protocol).

Scope
- Validate default titles/codes/hints and structured payloads.
- Validate copy.replace() merging of rendering options.
- Validate trigger(): raise in library mode, print + exit(1) in shell mode.
- Validate code normalization and the optional docs lookup.

Conventions
- Test method names follow CamelCase per project convention.
- Shell-mode output goes to an in-memory rich console.
"""

from __future__ import annotations

import copy
import io
import unittest
from unittest import TestCase

from rich.console import Console

from fli import FaultCode, FliError, MissingValueError, UnknownOptionError, getdoc, trigger


class TestFaultPayloads(TestCase):
    """Options carried by faults."""

    def testDefaults(self):
        error = MissingValueError("missing required value for option '-o' at first position", option="-o")
        self.assertEqual(error.options["title"], "missing value")
        self.assertEqual(error.code, FaultCode.MISSING_VALUE)
        self.assertIsNone(error.options["hint"])
        self.assertEqual(error.options["option"], "-o")
        self.assertEqual(str(error), "missing required value for option '-o' at first position")

    def testOptionsAreReadOnly(self):
        with self.assertRaises(TypeError):
            MissingValueError("x").options["hint"] = "y"

    def testMessageDefaultsToTitle(self):
        self.assertEqual(str(UnknownOptionError()), "unknown option")

    def testReplaceMergesOptions(self):
        error = UnknownOptionError("unknown option '-x' at first position", input="-x")
        replaced = copy.replace(error, hint="run 'fm --help'", prog="fm")
        self.assertIsInstance(replaced, UnknownOptionError)
        self.assertEqual(replaced.options["input"], "-x")
        self.assertEqual(replaced.options["hint"], "run 'fm --help'")
        self.assertEqual(str(replaced), str(error))

    def testEveryFaultIsAFliError(self):
        self.assertTrue(issubclass(UnknownOptionError, FliError))
        self.assertTrue(issubclass(FliError, Exception))


class TestTrigger(TestCase):
    """Surfacing protocol."""

    def testLibraryModeRaises(self):
        with self.assertRaises(UnknownOptionError) as caught:
            trigger(UnknownOptionError("unknown option '-x'"), shell=False, prog="fm")
        self.assertEqual(caught.exception.options["prog"], "fm")

    def testShellModePrintsAndExits(self):
        console = Console(file=io.StringIO(), width=120)
        with self.assertRaises(SystemExit) as caught:
            trigger(
                UnknownOptionError("unknown option '-x' at first position", hint="run 'fm --help'"),
                shell=True,
                colorful=False,
                prog="fm",
                console=console,
            )
        self.assertEqual(caught.exception.code, 1)
        output = console.file.getvalue()
        self.assertIn("unknown option '-x' at first position", output)
        self.assertIn("run 'fm --help'", output)
        self.assertIn(FaultCode.UNKNOWN_OPTION.normalize(), output)

    def testFancyShellModeUsesPanel(self):
        console = Console(file=io.StringIO(), width=120)
        with self.assertRaises(SystemExit):
            trigger(MissingValueError("missing"), shell=True, fancy=True, colorful=False, console=console)
        self.assertIn("╭", console.file.getvalue())

    def testTriggerNeedsProtocol(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))


class TestFaultCodes(TestCase):
    """Codes and docs."""

    def testCodesAreUnique(self):
        self.assertEqual(len({int(code) for code in FaultCode}), len(FaultCode))

    def testNormalizeIsStable(self):
        self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), FaultCode.UNKNOWN_OPTION.normalize())
        self.assertIsInstance(FaultCode.UNKNOWN_OPTION.normalize(), str)

    def testGetdocWithoutDocs(self):
        self.assertIsNone(getdoc(FaultCode.INTERNAL))
        with self.assertRaises(TypeError):
            getdoc(11151)


if __name__ == "__main__":
    unittest.main()
