"""
Parsing module behavioral tests (chain building, state machine, faults).

Scope
- Validate chains for options, flags, subcommands and positionals.
- Validate `--` handling: legality, absorption and settling of pending options.
- Validate arity consumption and typed re-reading of values.
- Validate faults for unknown/misplaced tokens and missing/invalid values.
- Validate parser lifecycle: idempotent prepare, slicing, not-prepared fault.

Conventions
- Test method names follow CamelCase per project convention.
- Commands are built through the public Command API; the root is unnamed ("").
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from fli import (
    Argument,
    Command,
    CommandMismatchError,
    Float,
    InputArgsParser,
    Int,
    InvalidStateTransitionError,
    InvalidValueError,
    MissingValueError,
    Mode,
    NoValue,
    Option,
    OptionalMultiple,
    OptionalSingle,
    ParserNotPreparedError,
    ParseState,
    PreservedOption,
    RequiredMultiple,
    RequiredSingle,
    Str,
    SubCommand,
    UnexpectedTokenError,
    UnknownCommandError,
    UnknownOptionError,
    ValueCountMismatchError,
)


def _root(expected=0):
    root = Command("")
    root.add_option("verbose", "Talk more", "-v", "--verbose", NoValue())
    root.add_option("output", "Output file", "-o", "--output", RequiredSingle(Str("out.txt")))
    root.add_option("count", "How many", "-c", "--count", OptionalSingle(Int(1)))
    root.add_option("pair", "Two numbers", "-p", "--pair", RequiredMultiple([Int(), Float()], 2))
    root.add_option("items", "Some items", "-i", "--items", OptionalMultiple(None, 2))
    root.add_option("names", "Some names", "-n", "--names", RequiredMultiple([Str()]))
    root.set_expected_positional_args(expected)
    return root


def _parse(command, tokens):
    return InputArgsParser("", tokens).prepare(command).get_parsed_commands_chain()


class TestChains(TestCase):
    """Successful scans."""

    def testRequiredSingleValue(self):
        root = _root()
        self.assertEqual(_parse(root, ["-o", "out.txt"]), [Option("-o", RequiredSingle(Str("out.txt")))])

    def testValuesAreCommittedToTheRegistry(self):
        root = _root()
        _parse(root, ["--output", "log.txt"])
        self.assertEqual(root.get_option_parser().get_option("-o").value, RequiredSingle(Str("log.txt")))

    def testFlagIsRecordedWithNoValue(self):
        self.assertEqual(_parse(_root(), ["-v"]), [Option("-v", NoValue())])

    def testSubcommandDelegation(self):
        root = _root()
        root.subcommand("build", "Build things").add_option("release", "Optimized", "-r", "--release", NoValue())
        self.assertEqual(_parse(root, ["build", "-r"]), [SubCommand("build"), Option("-r", NoValue())])

    def testNestedSubcommands(self):
        root = _root()
        root.subcommand("remote").subcommand("add").set_expected_positional_args(2)
        self.assertEqual(
            _parse(root, ["remote", "add", "origin", "url"]),
            [SubCommand("remote"), SubCommand("add"), Argument("origin"), Argument("url")],
        )

    def testPositionalsBeforeOptions(self):
        self.assertEqual(
            _parse(_root(2), ["a", "b", "-v"]),
            [Argument("a"), Argument("b"), Option("-v", NoValue())],
        )

    def testPositionalsAfterBreak(self):
        self.assertEqual(
            _parse(_root(2), ["-v", "--", "a", "b"]),
            [Option("-v", NoValue()), Argument("a"), Argument("b")],
        )

    def testBreakAbsorbsEverything(self):
        self.assertEqual(
            _parse(_root(1), ["-v", "--", "-v", "--", "build"]),
            [Option("-v", NoValue()), Argument("-v"), Argument("--"), Argument("build")],
        )

    def testOptionalSingleBeforeFlag(self):
        self.assertEqual(
            _parse(_root(), ["-c", "-v"]),
            [Option("-c", OptionalSingle(None)), Option("-v", NoValue())],
        )

    def testOptionalSingleAtEnd(self):
        self.assertEqual(_parse(_root(), ["-c"]), [Option("-c", OptionalSingle(None))])

    def testOptionalSingleSettledByBreak(self):
        self.assertEqual(
            _parse(_root(1), ["-c", "--", "x"]),
            [Option("-c", OptionalSingle(None)), Argument("x")],
        )

    def testOptionalSingleWithValue(self):
        self.assertEqual(_parse(_root(), ["-c", "5"]), [Option("-c", OptionalSingle(Int(5)))])

    def testRequiredMultipleRetypesByPosition(self):
        self.assertEqual(
            _parse(_root(), ["-p", "1", "2.5"]),
            [Option("-p", RequiredMultiple([Int(1), Float(2.5)], 2))],
        )

    def testRequiredMultipleWithoutCountStopsAtFlag(self):
        self.assertEqual(
            _parse(_root(), ["-n", "a", "b", "c", "-v"]),
            [Option("-n", RequiredMultiple([Str("a"), Str("b"), Str("c")])), Option("-v", NoValue())],
        )

    def testOptionalMultipleStopsAtMaximum(self):
        self.assertEqual(
            _parse(_root(), ["-i", "a", "b", "-v"]),
            [Option("-i", OptionalMultiple([Str("a"), Str("b")], 2)), Option("-v", NoValue())],
        )

    def testOptionalMultipleWithoutValues(self):
        self.assertEqual(_parse(_root(), ["-i"]), [Option("-i", OptionalMultiple(None, 2))])

    def testPreservedOptionIsMarked(self):
        self.assertEqual(_parse(_root(), ["--help"]), [PreservedOption("--help")])

    def testPreservedLookupAcceptsBareName(self):
        self.assertEqual(_parse(_root(), ["help"]), [PreservedOption("help")])

    def testEmptyInput(self):
        self.assertEqual(_parse(_root(), []), [])


class TestFaults(TestCase):
    """Rejected scans."""

    def testBreakAtStartRaises(self):
        with self.assertRaises(UnexpectedTokenError) as caught:
            _parse(_root(1), ["--", "a"])
        self.assertEqual(caught.exception.options["position"], 0)

    def testBreakAfterArgumentRaises(self):
        with self.assertRaises(UnexpectedTokenError):
            _parse(_root(2), ["a", "--", "b"])

    def testMissingRequiredValueAtEnd(self):
        with self.assertRaises(MissingValueError) as caught:
            _parse(_root(), ["-o"])
        self.assertEqual(caught.exception.options["option"], "-o")

    def testFlagIsNeverAValue(self):
        with self.assertRaises(MissingValueError):
            _parse(_root(), ["-o", "-v"])

    def testMissingRequiredValueAtBreak(self):
        with self.assertRaises(MissingValueError):
            _parse(_root(1), ["-o", "--", "x"])

    def testWrongValueCount(self):
        with self.assertRaises(ValueCountMismatchError) as caught:
            _parse(_root(), ["-p", "1"])
        self.assertEqual(caught.exception.options["expected"], 2)
        self.assertEqual(caught.exception.options["actual"], 1)

    def testInvalidValue(self):
        with self.assertRaises(InvalidValueError) as caught:
            _parse(_root(), ["-c", "many"])
        self.assertEqual(caught.exception.options["option"], "-c")
        self.assertEqual(caught.exception.options["input"], "many")
        self.assertEqual(caught.exception.options["expected"], "integer")
        self.assertIn("second position", str(caught.exception))

    def testPositionsCountParentTokens(self):
        root = _root()
        root.subcommand("build").add_option("jobs", "", "-j", "--jobs", RequiredSingle(Int(1)))
        with self.assertRaises(InvalidValueError) as caught:
            _parse(root, ["build", "-j", "x"])
        self.assertEqual(caught.exception.options["position"], 2)
        self.assertIn("third position", str(caught.exception))

    def testUnknownCommandSuggests(self):
        root = _root()
        root.subcommand("build")
        with self.assertRaises(UnknownCommandError) as caught:
            _parse(root, ["biuld"])
        self.assertEqual(caught.exception.options["suggestions"], ["build"])
        self.assertIn("'build'", caught.exception.options["hint"])

    def testUnknownSubcommandUnderChild(self):
        root = _root()
        root.subcommand("build")
        with self.assertRaises(UnknownCommandError) as caught:
            _parse(root, ["build", "stray"])
        self.assertIn("subcommand", str(caught.exception))

    def testUnknownCommandListsChildren(self):
        root = _root()
        root.subcommand("start")
        root.subcommand("stop")
        with self.assertRaises(UnknownCommandError) as caught:
            _parse(root, ["bogus"])
        self.assertEqual(caught.exception.options["available"], ["start", "stop"])
        self.assertEqual(caught.exception.options["input"], "bogus")
        self.assertEqual(caught.exception.options["position"], 0)

    def testDashTokenInCommandPositionIsUnknownCommand(self):
        root = _root()
        root.subcommand("start")
        root.subcommand("stop")
        for token in ("-x", "--bogus"):
            with self.subTest(token=token):
                with self.assertRaises(UnknownCommandError) as caught:
                    _parse(root, [token])
                self.assertEqual(caught.exception.options["available"], ["start", "stop"])

    def testMistypedFlagInCommandPositionHintsOption(self):
        with self.assertRaises(UnknownCommandError) as caught:
            _parse(_root(), ["--verbsoe"])
        self.assertEqual(caught.exception.options["available"], [])
        self.assertIn("'--verbose'", caught.exception.options["hint"])

    def testRequiredMultipleWithNothingCollected(self):
        for tokens in (["-n"], ["-n", "-v"]):
            with self.subTest(tokens=tokens):
                with self.assertRaises(MissingValueError) as caught:
                    _parse(_root(), tokens)
                self.assertEqual(caught.exception.options["option"], "-n")

    def testUnknownOptionAfterOption(self):
        with self.assertRaises(UnknownOptionError):
            _parse(_root(1), ["-v", "--bogus"])

    def testArgumentAfterFlagNeedsBreak(self):
        with self.assertRaises(InvalidStateTransitionError) as caught:
            _parse(_root(1), ["-v", "file"])
        self.assertEqual(caught.exception.options["input"], "file")
        self.assertIn("'--'", caught.exception.options["hint"])

    def testArgumentAfterFilledMultipleNeedsBreak(self):
        with self.assertRaises(InvalidStateTransitionError):
            _parse(_root(1), ["-i", "a", "b", "c"])


class TestParserLifecycle(TestCase):
    """Preparation, slicing and guards."""

    def testPrepareIsIdempotent(self):
        root = _root()
        parser = InputArgsParser("", ["-v"])
        first = list(parser.prepare(root).get_parsed_commands_chain())
        self.assertIs(parser.prepare(root), parser)
        self.assertEqual(parser.get_parsed_commands_chain(), first)

    def testChainBeforePrepareRaises(self):
        with self.assertRaises(ParserNotPreparedError):
            InputArgsParser("", ["-v"]).get_parsed_commands_chain()

    def testCommandMismatchRaises(self):
        with self.assertRaises(CommandMismatchError):
            InputArgsParser("other", []).prepare(_root())

    def testDescentUpdatesCommandName(self):
        root = _root()
        root.subcommand("build")
        parser = InputArgsParser("", ["build"]).prepare(root)
        self.assertEqual(parser.get_command(), "build")

    def testWithRemainingChain(self):
        root = _root(1)
        root.subcommand("build").set_expected_positional_args(1)
        parser = InputArgsParser("", ["build", "x"]).prepare(root)
        rest = parser.with_remaining_chain(1, "build")
        self.assertTrue(rest.prepared)
        self.assertEqual(rest.get_command(), "build")
        self.assertEqual(rest.get_command_chain(), [Argument("x")])
        self.assertEqual(parser.with_remaining_chain(10).get_command_chain(), [])

    def testArgsMustBeStrings(self):
        with self.assertRaises(TypeError):
            InputArgsParser("", "-v")
        with self.assertRaises(TypeError):
            InputArgsParser("", ["-v", 3])


class TestParseState(TestCase):
    """Transition table."""

    def testLegalTransitions(self):
        state = ParseState()
        for mode in (Mode.IN_COMMAND, Mode.IN_OPTION, Mode.BREAKING, Mode.IN_ARGUMENT, Mode.END):
            state.advance(mode)
        self.assertIs(state.mode, Mode.END)

    def testOptionToArgumentIsIllegal(self):
        state = ParseState().advance(Mode.IN_COMMAND).advance(Mode.IN_OPTION)
        with self.assertRaises(InvalidStateTransitionError):
            state.advance(Mode.IN_ARGUMENT)
        self.assertIs(state.mode, Mode.IN_OPTION)

    def testAcceptingValueCarriesOption(self):
        state = ParseState().advance(Mode.IN_COMMAND).advance(Mode.IN_OPTION)
        state.advance(Mode.ACCEPTING_VALUE, option="-o", expected=RequiredSingle(Str()))
        self.assertEqual(state.option, "-o")
        state.advance(Mode.IN_OPTION)
        self.assertIsNone(state.option)

    def testNothingReturnsToStart(self):
        for mode in Mode:
            with self.subTest(mode=mode):
                self.assertFalse(ParseState.allows(mode, Mode.START))

    def testBreakOnlyFollowsOptions(self):
        self.assertTrue(ParseState.allows(Mode.IN_OPTION, Mode.BREAKING))
        self.assertTrue(ParseState.allows(Mode.ACCEPTING_VALUE, Mode.BREAKING))
        self.assertFalse(ParseState.allows(Mode.IN_COMMAND, Mode.BREAKING))
        self.assertFalse(ParseState.allows(Mode.IN_ARGUMENT, Mode.BREAKING))


if __name__ == "__main__":
    unittest.main()
