"""
App module behavioral tests (facade, prompts, built-ins, fault surfacing).

Scope
- Validate prompt normalization (argv, shell strings, iterables).
- Validate the built-in --version and --help exits.
- Validate fault surfacing in shell mode (stderr, status 1) and library mode.
- Validate the debug option pre-scan and with_debug().
- Validate construction from installed distribution metadata.

Conventions
- Test method names follow CamelCase per project convention.
- Applications write to in-memory rich consoles.
"""

from __future__ import annotations

import io
import logging
import unittest
from importlib.metadata import PackageNotFoundError
from unittest import TestCase

from rich.console import Console

from fli import Command, Context, Fli, NoValue, RequiredSingle, Str, UnknownCommandError, invoke


def _app(shell=False):
    return Fli(
        "fm", "1.2.3", "A small file manager",
        shell=shell,
        colorful=False,
        console=Console(file=io.StringIO(), width=120),
        stderr=Console(file=io.StringIO(), width=120),
    )


def _stdout(app):
    return app.context.console.file.getvalue()


def _stderr(app):
    return app.context.stderr.file.getvalue()


class TestPrompts(TestCase):
    """Token stream normalization."""

    def testShellStringIsSplit(self):
        seen = []
        app = _app()
        app.command("copy").set_expected_positional_args(2).set_callback(lambda data: seen.append(data.get_arguments()))
        app.run("copy 'a b' c")
        self.assertEqual(seen, [["a b", "c"]])

    def testIterableIsKeptVerbatim(self):
        seen = []
        app = _app()
        app.command("ls").set_expected_positional_args(2).set_callback(lambda data: seen.append(data.get_arguments()))
        app.run(["ls", " src ", "docs"])
        self.assertEqual(seen, [[" src ", "docs"]])

    def testEmptyTokenIsAValue(self):
        seen = []
        app = _app()
        app.command("tag") \
            .add_option("label", "Label text", "-l", "--label", RequiredSingle(Str())) \
            .set_callback(lambda data: seen.append(data.get_option_value("label")))
        app.run(["tag", "-l", ""])
        self.assertEqual(seen, [RequiredSingle(Str(""))])

    def testInvalidPromptsRaise(self):
        with self.assertRaises(TypeError):
            _app().run(3)
        with self.assertRaises(TypeError):
            _app().run(["ls", 3])

    def testInvokeUsesProtocol(self):
        app = _app().set_callback(lambda data: "root")
        self.assertEqual(invoke(app, []), "root")
        with self.assertRaises(TypeError):
            invoke(object())


class TestBuiltins(TestCase):
    """Version and help."""

    def testVersionExitsWithZero(self):
        for flag in ("-V", "--version"):
            with self.subTest(flag=flag):
                app = _app()
                with self.assertRaises(SystemExit) as caught:
                    app.run([flag])
                self.assertEqual(caught.exception.code, 0)
                self.assertIn("fm 1.2.3", _stdout(app))

    def testVersionBeatsCallback(self):
        calls = []
        app = _app().set_callback(lambda data: calls.append("main"))
        with self.assertRaises(SystemExit):
            app.run("--version")
        self.assertEqual(calls, [])

    def testRootHelp(self):
        app = _app()
        app.command("ls", "List directory contents")
        with self.assertRaises(SystemExit) as caught:
            app.run("--help")
        self.assertEqual(caught.exception.code, 0)
        for fragment in ("fm", "--version", "ls", "List directory contents"):
            with self.subTest(fragment=fragment):
                self.assertIn(fragment, _stdout(app))

    def testPrintHelp(self):
        app = _app()
        app.print_help()
        self.assertIn("A small file manager", _stdout(app))


class TestFaults(TestCase):
    """Surfacing errors."""

    def testShellModePrintsAndExitsWithOne(self):
        app = _app(shell=True)
        app.command("build")
        with self.assertRaises(SystemExit) as caught:
            app.run("biuld")
        self.assertEqual(caught.exception.code, 1)
        self.assertIn("unknown command 'biuld'", _stderr(app))
        self.assertIn("did you mean 'build'", _stderr(app))

    def testLibraryModeRaises(self):
        app = _app()
        app.command("build")
        with self.assertRaises(UnknownCommandError) as caught:
            app.run("biuld")
        self.assertEqual(caught.exception.options["prog"], "fm")
        self.assertFalse(caught.exception.options["shell"])

    def testNameIsRequired(self):
        with self.assertRaises(TypeError):
            Fli("  ")


class TestDebug(TestCase):
    """Debug switches."""

    def _debuggable(self):
        app = _app().add_debug_option()
        app.command("build") \
            .add_option("release", "Optimized", "-r", "--release", NoValue()) \
            .set_expected_positional_args(1)
        return app

    def testDebugFlagEnablesDebug(self):
        app = self._debuggable()
        app.run("build -D")
        self.assertTrue(app.context.debug)
        self.assertEqual(app.context.logger.level, logging.DEBUG)

    def testDebugFlagAfterBreakIsAnArgument(self):
        app = self._debuggable()
        app.run("build -r -- -D")
        self.assertFalse(app.context.debug)

    def testDebugOffByDefault(self):
        app = self._debuggable()
        app.run("build -r")
        self.assertFalse(app.context.debug)

    def testWithDebug(self):
        self.assertTrue(_app().with_debug().context.debug)

    def testContextsKeepIndependentLevels(self):
        first = Context("fm", debug=True, stderr=Console(file=io.StringIO()))
        second = Context("fm", stderr=Console(file=io.StringIO()))
        self.assertIsNot(first.logger, second.logger)
        self.assertEqual(first.logger.level, logging.DEBUG)
        self.assertEqual(second.logger.level, logging.WARNING)
        second.enable_debug()
        self.assertEqual(len(first.logger.handlers), 1)

    def testSecondApplicationLeavesDebugAlone(self):
        first = _app().with_debug()
        _app()
        self.assertEqual(first.context.logger.level, logging.DEBUG)


class TestComposition(TestCase):
    """Delegation to the root command."""

    def testAddCommand(self):
        seen = []
        app = _app()
        app.add_command(Command("git").set_callback(lambda data: seen.append(data.get_command().route)))
        app.run("git")
        self.assertEqual(seen, ["fm git"])

    def testRootOptionsAndInheritance(self):
        seen = []
        app = _app().add_option("quiet", "Say less", "-q", "--quiet", NoValue()).mark_inheritable("-q")
        app.command("ls").set_callback(lambda data: seen.append(data.is_present("quiet")))
        app.run("ls -q")
        self.assertEqual(seen, [True])

    def testFromDistribution(self):
        app = Fli.from_distribution("rich", shell=False)
        self.assertEqual(app.name.lower(), "rich")
        self.assertTrue(app.version)

    def testFromMissingDistribution(self):
        with self.assertRaises(PackageNotFoundError):
            Fli.from_distribution("surely-not-an-installed-distribution")


if __name__ == "__main__":
    unittest.main()
